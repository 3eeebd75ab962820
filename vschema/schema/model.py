"""
Data models for versioned schema templates and their projections.

A SchemaModel is the immutable template: every table, column and
relationship carries a Validity describing the versions at which it exists
and how its attributes change over time. A ProjectedSchema is the mutable,
version-specific copy the projector derives from it.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Mapping

from vschema.core.version import Version


@dataclass(frozen=True)
class Validity:
    """
    Versioning metadata attached to a table, column or relationship.

    Attributes:
        since: Version at which the entity was introduced (None = always existed)
        until: Last version at which the entity exists (None = never removed)
        renamed_from: Previous name of the entity (metadata only, no data is moved)
        changes: Version -> attribute patch overlays, either a mapping or a
            sequence of (version, patch) pairs. Validated at projection time.
            Patches only apply to columns; on tables and relationships the
            keys are still recorded as version stops.
    """

    since: Version | None = None
    until: Version | None = None
    renamed_from: str | None = None
    changes: Any = ()

    @property
    def is_versioned(self) -> bool:
        return bool(self.since or self.until or self.renamed_from or self.changes)


ALWAYS = Validity()


@dataclass(frozen=True)
class ColumnDef:
    """
    A column definition.

    Attributes:
        name: Column name
        data_type: Type name ("integer", "varchar", "numeric", ...)
        size: Optional size (int, or (precision, scale) for numerics)
        nullable: Whether NULL is allowed
        default: Server default value
        primary_key: Whether the column is part of the primary key
        autoincrement: Whether the column auto-increments
        info: Extra attributes with no structural meaning
        validity: Versioning metadata
    """

    name: str
    data_type: str
    size: Any = None
    nullable: bool = True
    default: Any = None
    primary_key: bool = False
    autoincrement: bool = False
    info: Mapping[str, Any] = field(default_factory=dict)
    validity: Validity = ALWAYS


@dataclass(frozen=True)
class RelationshipDef:
    """
    A relationship between two tables.

    Only belongs_to relationships produce DDL (a foreign key from the local
    columns to the target's primary key or foreign_columns).

    Attributes:
        name: Relationship accessor name
        kind: "belongs_to", "has_many", "has_one" or "might_have"
        target: Source name of the related table
        columns: Local columns taking part in the relationship
        foreign_columns: Referenced columns (defaults to the target's primary key)
        validity: Versioning metadata
    """

    name: str
    kind: str
    target: str
    columns: tuple[str, ...] = ()
    foreign_columns: tuple[str, ...] = ()
    validity: Validity = ALWAYS


@dataclass(frozen=True)
class TableDef:
    """
    A table definition.

    Attributes:
        name: Source name used to refer to the table ("Bar")
        table_name: SQL table name ("bars")
        columns: Column definitions in declaration order
        relationships: Relationship definitions in declaration order
        validity: Versioning metadata for the whole table
    """

    name: str
    table_name: str
    columns: tuple[ColumnDef, ...] = ()
    relationships: tuple[RelationshipDef, ...] = ()
    validity: Validity = ALWAYS


@dataclass(frozen=True)
class SchemaModel:
    """
    Immutable versioned schema template.

    Attributes:
        name: Schema name (used in logs)
        version: The version this template declares as current
        tables: Table definitions in declaration order
    """

    name: str
    version: Version | None
    tables: tuple[TableDef, ...] = ()

    def table(self, name: str) -> TableDef | None:
        for table in self.tables:
            if table.name == name:
                return table
        return None


@dataclass
class ProjectedTable:
    """A table as it exists at one version."""

    name: str
    table_name: str
    columns: dict[str, ColumnDef] = field(default_factory=dict)
    relationships: dict[str, RelationshipDef] = field(default_factory=dict)
    validity: Validity = ALWAYS

    @classmethod
    def from_def(cls, table: TableDef) -> "ProjectedTable":
        return cls(
            name=table.name,
            table_name=table.table_name,
            columns={c.name: replace(c, info=dict(c.info)) for c in table.columns},
            relationships={r.name: r for r in table.relationships},
            validity=table.validity,
        )

    @property
    def primary_key(self) -> list[str]:
        return [c.name for c in self.columns.values() if c.primary_key]

    def remove_column(self, name: str) -> None:
        """Remove a column from this projection."""
        del self.columns[name]

    def remove_relationship(self, name: str) -> None:
        """Remove a relationship from this projection."""
        del self.relationships[name]

    def replace_column(self, column: ColumnDef) -> None:
        """Replace a column definition, keeping its position."""
        if column.name not in self.columns:
            raise KeyError(column.name)
        self.columns[column.name] = column


@dataclass
class ProjectedSchema:
    """
    Concrete schema shape valid at a single version.

    Created by the projector from a SchemaModel; the model itself is never
    mutated.
    """

    name: str
    version: Version
    tables: dict[str, ProjectedTable] = field(default_factory=dict)

    @classmethod
    def from_model(cls, model: SchemaModel, version: Version) -> "ProjectedSchema":
        return cls(
            name=model.name,
            version=version,
            tables={t.name: ProjectedTable.from_def(t) for t in model.tables},
        )

    def table(self, name: str) -> ProjectedTable | None:
        return self.tables.get(name)

    def remove_table(self, name: str) -> None:
        """Remove a table, with its columns and relationships, from this projection."""
        del self.tables[name]

    def __contains__(self, name: object) -> bool:
        return name in self.tables

    def describe(self) -> dict[str, list[str]]:
        """Return {table name: [column names]} for quick inspection."""
        return {name: list(t.columns) for name, t in self.tables.items()}
