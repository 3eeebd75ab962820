"""
Conversion of projected schemas into SQLAlchemy metadata.

The SQLAlchemy MetaData built here is what DDL is compiled from: CREATE TABLE
on deploy, and the per-column and per-constraint statements of a diff.
"""

from typing import Any

import sqlalchemy as sa
from loguru import logger

from vschema.core.exceptions import SchemaDefinitionError
from vschema.schema.model import ColumnDef, ProjectedSchema, ProjectedTable

# Deterministic constraint names so that diffs can drop what they created
NAMING_CONVENTION = {
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
}

_SIMPLE_TYPES: dict[str, Any] = {
    "integer": sa.Integer,
    "int": sa.Integer,
    "bigint": sa.BigInteger,
    "smallint": sa.SmallInteger,
    "boolean": sa.Boolean,
    "bool": sa.Boolean,
    "text": sa.Text,
    "date": sa.Date,
    "time": sa.Time,
    "datetime": sa.DateTime,
    "timestamp": sa.DateTime,
    "float": sa.Float,
    "real": sa.Float,
    "double precision": sa.Float,
    "blob": sa.LargeBinary,
    "json": sa.JSON,
}

_SIZED_TYPES: dict[str, Any] = {
    "varchar": sa.String,
    "string": sa.String,
    "char": sa.CHAR,
}

_NUMERIC_TYPES = {"numeric", "decimal"}


def column_type(column: ColumnDef) -> Any:
    """
    Resolve a column's data_type and size into a SQLAlchemy type.

    Raises:
        SchemaDefinitionError: If the data type is not known
    """
    data_type = str(column.data_type).lower().strip()
    size = column.size

    if data_type in _NUMERIC_TYPES:
        if isinstance(size, (list, tuple)):
            return sa.Numeric(*size)
        if size is not None:
            return sa.Numeric(size)
        return sa.Numeric()

    if data_type in _SIZED_TYPES:
        type_cls = _SIZED_TYPES[data_type]
        if isinstance(size, (list, tuple)):
            size = size[0]
        return type_cls(size) if size is not None else type_cls()

    if data_type in _SIMPLE_TYPES:
        return _SIMPLE_TYPES[data_type]()

    raise SchemaDefinitionError(f"Unknown data type {column.data_type!r} for column {column.name}")


def _server_default(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, bool):
        return sa.true() if value else sa.false()
    if isinstance(value, (int, float)):
        return sa.text(str(value))
    return str(value)


def build_column(column: ColumnDef) -> sa.Column:
    """Build a SQLAlchemy Column from a column definition."""
    return sa.Column(
        column.name,
        column_type(column),
        primary_key=column.primary_key,
        nullable=False if column.primary_key else column.nullable,
        autoincrement=True if column.autoincrement else "auto",
        server_default=_server_default(column.default),
    )


def _foreign_keys(table: ProjectedTable, schema: ProjectedSchema) -> list[sa.ForeignKeyConstraint]:
    constraints = []
    for rel in table.relationships.values():
        if rel.kind != "belongs_to" or not rel.columns:
            continue

        target = schema.table(rel.target)
        if target is None:
            logger.debug(
                f"Skipping foreign key {table.name}.{rel.name}: "
                f"{rel.target} does not exist at {schema.version}"
            )
            continue

        missing = [c for c in rel.columns if c not in table.columns]
        if missing:
            logger.debug(
                f"Skipping foreign key {table.name}.{rel.name}: "
                f"columns {missing} do not exist at {schema.version}"
            )
            continue

        referred = list(rel.foreign_columns) or target.primary_key
        if len(referred) != len(rel.columns):
            raise SchemaDefinitionError(
                f"{table.name} relationship {rel.name} has {len(rel.columns)} columns "
                f"but references {len(referred)}"
            )

        constraints.append(
            sa.ForeignKeyConstraint(
                list(rel.columns),
                [f"{target.table_name}.{c}" for c in referred],
            )
        )
    return constraints


def to_metadata(schema: ProjectedSchema) -> sa.MetaData:
    """
    Build SQLAlchemy MetaData for a projected schema.

    Args:
        schema: Projected schema

    Returns:
        MetaData holding one Table per projected table
    """
    metadata = sa.MetaData(naming_convention=NAMING_CONVENTION)
    for table in schema.tables.values():
        sa.Table(
            table.table_name,
            metadata,
            *(build_column(c) for c in table.columns.values()),
            *_foreign_keys(table, schema),
        )
    return metadata
