"""
Schema declaration loader.

Builds a SchemaModel from a plain mapping or a YAML file:

    name: MyApp
    version: "0.002"
    tables:
      Bar:
        table: bars
        columns:
          bars_id: {data_type: integer, is_auto_increment: true, primary_key: true}
          height:
            data_type: integer
            is_nullable: true
            versioned: {since: "0.003"}
          weight: {data_type: integer, versioned: {until: "0.3"}}
        relationships:
          foos: {kind: has_many, target: Foo, columns: [bars_id]}
        versioned: {since: "0.001"}

Versioning keys (since, until, till, renamed_from, changes) may sit inside a
"versioned" block or directly on the entity. "since" takes a bare version, a
{version: patch} mapping or a list of (version, patch) pairs; entries with an
empty patch give the creation version and the others become changes.
"""

import dataclasses
from pathlib import Path
from typing import Any, Mapping

import yaml
from loguru import logger

from vschema.core.exceptions import InvalidChangesFormat, SchemaDefinitionError
from vschema.core.version import Version
from vschema.schema.model import (
    ColumnDef,
    RelationshipDef,
    SchemaModel,
    TableDef,
    Validity,
)
from vschema.schema.projector import COLUMN_ATTRIBUTE_ALIASES

VERSIONING_KEYS = {"versioned", "since", "until", "till", "renamed_from", "changes"}

RELATIONSHIP_KINDS = {"belongs_to", "has_many", "has_one", "might_have"}


def _as_pairs(since: Any, entity: str) -> list[tuple[Any, Any]]:
    if isinstance(since, Mapping):
        return list(since.items())

    pairs = []
    for entry in since:
        if isinstance(entry, Mapping) and len(entry) == 1:
            pairs.extend(entry.items())
        elif isinstance(entry, (list, tuple)) and len(entry) == 2:
            pairs.append((entry[0], entry[1]))
        else:
            raise InvalidChangesFormat(entity, f"{entry!r} is not a (version, patch) pair")
    return pairs


def parse_validity(attrs: Mapping[str, Any], entity: str) -> Validity:
    """
    Read versioning metadata from an entity's attribute mapping.

    Args:
        attrs: Attribute mapping of a table, column or relationship
        entity: Entity name used in error messages

    Returns:
        Validity for the entity (empty if it carries no versioning keys)
    """
    meta = attrs.get("versioned")
    if meta is None:
        meta = attrs
    elif not isinstance(meta, Mapping):
        raise SchemaDefinitionError(f"'versioned' for {entity} must be a mapping")

    since = meta.get("since")
    until = meta.get("till", meta.get("until"))
    renamed_from = meta.get("renamed_from")
    changes: list[tuple[Any, Any]] = []

    raw_changes = meta.get("changes")
    if raw_changes:
        if not isinstance(raw_changes, (Mapping, list, tuple)):
            raise InvalidChangesFormat(entity, "changes must be a mapping or a list of pairs")
        changes.extend(_as_pairs(raw_changes, entity))

    since_version = None
    if isinstance(since, (Mapping, list, tuple)):
        for key, patch in _as_pairs(since, entity):
            if patch is None or patch == "":
                patch = {}
            if not isinstance(patch, Mapping):
                raise InvalidChangesFormat(entity, f"patch for {key} is not a mapping")

            patch = dict(patch)
            if "renamed_from" in patch:
                renamed_from = patch.pop("renamed_from")
                # a rename marks the version the entity appears under its new name
                if since_version is None or Version.parse(key) < since_version:
                    since_version = Version.parse(key)

            if patch:
                changes.append((key, patch))
            elif since_version is None or Version.parse(key) < since_version:
                since_version = Version.parse(key)
    elif since is not None:
        since_version = Version.parse(since)

    return Validity(
        since=since_version,
        until=Version.parse(until) if until is not None else None,
        renamed_from=renamed_from,
        changes=tuple(changes),
    )


def _parse_column(name: str, attrs: Mapping[str, Any], entity: str) -> ColumnDef:
    if not isinstance(attrs, Mapping):
        raise SchemaDefinitionError(f"{entity} must be a mapping")

    values: dict[str, Any] = {}
    info: dict[str, Any] = {}
    for key, value in attrs.items():
        if key in VERSIONING_KEYS:
            continue
        key = COLUMN_ATTRIBUTE_ALIASES.get(key, key)
        if key in {"data_type", "size", "nullable", "default", "primary_key", "autoincrement"}:
            values[key] = value
        else:
            info[key] = value

    if "data_type" not in values:
        raise SchemaDefinitionError(f"{entity} has no data_type")

    return ColumnDef(name=name, info=info, validity=parse_validity(attrs, entity), **values)


def _parse_relationship(name: str, attrs: Mapping[str, Any], entity: str) -> RelationshipDef:
    if not isinstance(attrs, Mapping):
        raise SchemaDefinitionError(f"{entity} must be a mapping")

    kind = attrs.get("kind", attrs.get("type", "belongs_to"))
    if kind not in RELATIONSHIP_KINDS:
        raise SchemaDefinitionError(f"{entity} has unknown kind {kind!r}")
    if "target" not in attrs:
        raise SchemaDefinitionError(f"{entity} has no target")

    columns = attrs.get("columns", ())
    if isinstance(columns, str):
        columns = (columns,)
    foreign_columns = attrs.get("foreign_columns", ())
    if isinstance(foreign_columns, str):
        foreign_columns = (foreign_columns,)

    return RelationshipDef(
        name=name,
        kind=kind,
        target=attrs["target"],
        columns=tuple(columns),
        foreign_columns=tuple(foreign_columns),
        validity=parse_validity(attrs, entity),
    )


def _parse_table(name: str, attrs: Mapping[str, Any]) -> TableDef:
    if not isinstance(attrs, Mapping):
        raise SchemaDefinitionError(f"Table {name} must be a mapping")

    primary_key = attrs.get("primary_key", ())
    if isinstance(primary_key, str):
        primary_key = (primary_key,)

    columns = []
    for column_name, column_attrs in (attrs.get("columns") or {}).items():
        column = _parse_column(column_name, column_attrs, f"{name} column {column_name}")
        if column_name in primary_key and not column.primary_key:
            column = dataclasses.replace(column, primary_key=True)
        columns.append(column)

    relationships = [
        _parse_relationship(rel_name, rel_attrs, f"{name} relationship {rel_name}")
        for rel_name, rel_attrs in (attrs.get("relationships") or {}).items()
    ]

    return TableDef(
        name=name,
        table_name=attrs.get("table", name.lower()),
        columns=tuple(columns),
        relationships=tuple(relationships),
        validity=parse_validity(attrs, name),
    )


def load_schema(declaration: Mapping[str, Any]) -> SchemaModel:
    """
    Build a SchemaModel from a declaration mapping.

    Args:
        declaration: Mapping with "name", "version" and "tables"

    Returns:
        Immutable SchemaModel

    Raises:
        SchemaDefinitionError: If the declaration is malformed
        InvalidVersionFormat: If a version literal cannot be parsed
    """
    if not isinstance(declaration, Mapping) or "tables" not in declaration:
        raise SchemaDefinitionError("Schema declaration must be a mapping with 'tables'")

    tables = tuple(_parse_table(n, a) for n, a in (declaration["tables"] or {}).items())
    names = {t.name for t in tables}
    for table in tables:
        for rel in table.relationships:
            if rel.target not in names:
                raise SchemaDefinitionError(
                    f"{table.name} relationship {rel.name} targets unknown table {rel.target!r}"
                )

    version = declaration.get("version")
    model = SchemaModel(
        name=declaration.get("name", "schema"),
        version=Version.parse(version) if version is not None else None,
        tables=tables,
    )
    logger.debug(f"Loaded schema {model.name} ({len(tables)} tables, version {model.version})")
    return model


def load_schema_file(path: str | Path | None = None) -> SchemaModel:
    """
    Load a SchemaModel from a YAML file.

    Args:
        path: YAML file path (defaults to the configured schema_file)

    Returns:
        Immutable SchemaModel
    """
    if path is None:
        from vschema.config import get_config

        path = get_config().schema_file
        if path is None:
            raise SchemaDefinitionError("No schema file given and no schema_file configured")

    with open(path) as f:
        declaration = yaml.safe_load(f)

    return load_schema(declaration or {})
