"""
Version projection.

Derives the concrete schema valid at one version from a versioned template.
For each table, columns are evaluated first, then relationships, then the
table's own validity, so that version literals on tables that end up dropped
are still discovered.
"""

import dataclasses
from typing import Any, Mapping

from loguru import logger

from vschema.core.exceptions import InvalidChangesFormat, InvalidRangeError
from vschema.core.version import Version, VersionSet
from vschema.schema.model import (
    ColumnDef,
    ProjectedSchema,
    ProjectedTable,
    SchemaModel,
    Validity,
)

# Declaration spellings accepted in change patches
COLUMN_ATTRIBUTE_ALIASES = {
    "dataType": "data_type",
    "is_nullable": "nullable",
    "default_value": "default",
    "is_auto_increment": "autoincrement",
    "is_primary_key": "primary_key",
}

_COLUMN_FIELDS = {f.name for f in dataclasses.fields(ColumnDef)} - {"name", "validity", "info"}


def normalize_changes(changes: Any, entity: str) -> list[tuple[Version, dict[str, Any]]]:
    """
    Validate a changes overlay and return it as ascending (version, patch) pairs.

    Args:
        changes: Mapping of version -> patch, or a sequence of (version, patch) pairs
        entity: Entity name used in error messages

    Returns:
        List of (Version, patch) sorted by version. Patches for equal versions
        are merged in declaration order.

    Raises:
        InvalidChangesFormat: If the overlay is not made of version/patch pairs
        InvalidVersionFormat: If a key is not a valid version
    """
    if not changes:
        return []

    if isinstance(changes, Mapping):
        items = list(changes.items())
    elif isinstance(changes, (list, tuple)):
        items = []
        for entry in changes:
            if not isinstance(entry, (list, tuple)) or len(entry) != 2:
                raise InvalidChangesFormat(entity, f"{entry!r} is not a (version, patch) pair")
            items.append((entry[0], entry[1]))
    else:
        raise InvalidChangesFormat(entity, f"expected a mapping, got {type(changes).__name__}")

    merged: dict[Version, dict[str, Any]] = {}
    for key, patch in items:
        if patch is None:
            patch = {}
        if not isinstance(patch, Mapping):
            raise InvalidChangesFormat(entity, f"patch for {key} is not a mapping")
        version = Version.parse(key)
        merged.setdefault(version, {}).update(patch)

    return sorted(merged.items(), key=lambda item: item[0])


def apply_column_patch(column: ColumnDef, patch: Mapping[str, Any]) -> ColumnDef:
    """
    Overlay an attribute patch onto a column definition.

    Unknown attributes are kept in ColumnDef.info. renamed_from is versioning
    metadata and is not applied as an attribute.
    """
    updates: dict[str, Any] = {}
    info = dict(column.info)

    for key, value in patch.items():
        if key == "renamed_from":
            continue
        attr = COLUMN_ATTRIBUTE_ALIASES.get(key, key)
        if attr in _COLUMN_FIELDS:
            updates[attr] = value
        else:
            info[key] = value

    if not updates and info == column.info:
        return column
    return dataclasses.replace(column, info=info, **updates)


class SchemaProjector:
    """
    Projects a SchemaModel onto a single version.

    Usage:
        projector = SchemaProjector()
        projected, versions = projector.project(model, "0.003")
    """

    def project(self, model: SchemaModel, target: Any) -> tuple[ProjectedSchema, VersionSet]:
        """
        Produce the schema valid at the target version.

        Args:
            model: Versioned schema template (never mutated)
            target: Version to project onto

        Returns:
            Tuple of (projected schema, every version literal found in the model)

        Raises:
            InvalidRangeError: If an entity declares since > until
            InvalidChangesFormat: If a changes overlay is malformed
            InvalidVersionFormat: If the target or a change key cannot be parsed
        """
        version = Version.parse(target)
        versions = VersionSet()
        if model.version is not None:
            versions.add(model.version)

        projected = ProjectedSchema.from_model(model, version)
        logger.debug(f"Projecting schema {model.name} at version {version}")

        for table_name in list(projected.tables):
            table = projected.tables[table_name]

            for column_name in list(table.columns):
                self._project_column(table, column_name, version, versions)

            for rel_name in list(table.relationships):
                rel = table.relationships[rel_name]
                entity = f"{table_name} relationship {rel_name}"
                self._record_changes(rel.validity, entity, versions)
                if not self._is_valid(rel.validity, version, versions, entity):
                    table.remove_relationship(rel_name)
                    logger.debug(f"Dropped relationship {table_name}.{rel_name} at {version}")

            self._record_changes(table.validity, table_name, versions)
            if not self._is_valid(table.validity, version, versions, table_name):
                projected.remove_table(table_name)
                logger.debug(f"Dropped table {table_name} at {version}")

        logger.debug(f"Discovered versions for {model.name}: {versions}")
        return projected, versions

    def _project_column(
        self,
        table: ProjectedTable,
        column_name: str,
        version: Version,
        versions: VersionSet,
    ) -> None:
        column = table.columns[column_name]
        entity = f"{table.name} column {column_name}"

        # Record change keys before the interval test can drop the column
        changes = normalize_changes(column.validity.changes, entity)
        versions.update(v for v, _ in changes)

        if not self._is_valid(column.validity, version, versions, entity):
            table.remove_column(column_name)
            logger.debug(f"Dropped column {table.name}.{column_name} at {version}")
            return

        for change_version, patch in changes:
            if change_version > version:
                break
            column = apply_column_patch(column, patch)

        table.replace_column(column)

    def _record_changes(self, validity: Validity, entity: str, versions: VersionSet) -> None:
        changes = normalize_changes(validity.changes, entity)
        versions.update(v for v, _ in changes)

    def _is_valid(
        self,
        validity: Validity,
        version: Version,
        versions: VersionSet,
        entity: str,
    ) -> bool:
        """
        Apply the since/until interval test.

        until is absolute and checked first: an entity is gone at any version
        above its until, whatever its since says.
        """
        since = versions.add(validity.since) if validity.since is not None else None
        until = versions.add(validity.until) if validity.until is not None else None

        if since is not None and until is not None and since > until:
            raise InvalidRangeError(entity, since, until)

        if until is not None and version > until:
            return False
        if since is not None and version < since:
            return False
        return True


_default_projector = SchemaProjector()


def project(model: SchemaModel, target: Any) -> tuple[ProjectedSchema, VersionSet]:
    """Project a model onto a version using the default projector."""
    return _default_projector.project(model, target)


