"""
DDL diff between two projected schemas.

SchemaDiffer compares the SQLAlchemy metadata of two projections and returns
the ordered statements that turn the first into the second, compiled for one
SQL dialect. Constraint names are ignored when comparing foreign keys.

The output starts with a comment and a BEGIN marker and ends with COMMIT,
like a standalone upgrade script. Callers that manage their own transaction
strip these with is_boilerplate().
"""

import re
from typing import Any

import sqlalchemy as sa
from loguru import logger
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.engine import Dialect
from sqlalchemy.schema import AddConstraint, CreateTable, DropConstraint, DropTable

from vschema.core.exceptions import DiffGenerationError, SchemaDefinitionError
from vschema.schema.metadata import to_metadata
from vschema.schema.model import ProjectedSchema

SUPPORTED_DIALECTS = {
    "sqlite": sqlite.dialect,
    "postgresql": postgresql.dialect,
    "mysql": mysql.dialect,
}

_TRANSACTION_MARKER_RE = re.compile(
    r"^(BEGIN|COMMIT|START\s+TRANSACTION)(\s+(TRANSACTION|WORK))?\s*;?$",
    re.IGNORECASE,
)


def get_dialect(name: str) -> Dialect:
    """
    Get a SQLAlchemy dialect instance by name.

    Raises:
        ValueError: If the dialect is not supported
    """
    try:
        return SUPPORTED_DIALECTS[name]()
    except KeyError:
        raise ValueError(
            f"Unsupported dialect: {name}. Supported dialects: {', '.join(SUPPORTED_DIALECTS)}"
        ) from None


def is_boilerplate(statement: str) -> bool:
    """Return True for blank lines, pure comments and transaction markers."""
    text = statement.strip()
    return not text or text.startswith("--") or bool(_TRANSACTION_MARKER_RE.match(text))


def render_script(statements: list[str]) -> str:
    """Join diff statements into a SQL script."""
    lines = []
    for statement in statements:
        text = statement.strip()
        lines.append(text if is_boilerplate(text) else f"{text};")
    return "\n".join(lines) + "\n"


def _fk_signature(fk: sa.ForeignKeyConstraint) -> tuple[tuple[str, ...], tuple[str, ...]]:
    return tuple(fk.column_keys), tuple(e.target_fullname for e in fk.elements)


class SchemaDiffer:
    """
    Computes DDL transforming one projected schema into another.

    Usage:
        differ = SchemaDiffer()
        statements = differ.diff(current, target, "postgresql")
    """

    def diff(self, source: ProjectedSchema, target: ProjectedSchema, dialect: str) -> list[str]:
        """
        Compute the ordered DDL statements from source to target.

        Args:
            source: Projection the database currently matches
            target: Projection to reach
            dialect: SQL dialect name ("sqlite", "postgresql", "mysql")

        Returns:
            Ordered statements, including leading comment and BEGIN/COMMIT markers

        Raises:
            DiffGenerationError: If the diff cannot be produced for this dialect
        """
        try:
            body = self._diff(source, target, get_dialect(dialect))
        except (ValueError, SchemaDefinitionError, sa.exc.SQLAlchemyError) as e:
            raise DiffGenerationError(
                f"Could not diff {source.version} -> {target.version}: {e}",
                source.version,
                target.version,
            ) from e

        return [
            f"-- Convert schema '{source.version}' to '{target.version}':;",
            "BEGIN;",
            *body,
            "COMMIT;",
        ]

    def _diff(self, source: ProjectedSchema, target: ProjectedSchema, dialect: Dialect) -> list[str]:
        old_md = to_metadata(source)
        new_md = to_metadata(target)
        ddl = dialect.ddl_compiler(dialect, None)
        prep = dialect.identifier_preparer

        drop_fks: list[str] = []
        create_tables: list[str] = []
        add_columns: list[str] = []
        alter_columns: list[str] = []
        add_fks: list[str] = []
        drop_columns: list[str] = []
        drop_tables: list[str] = []

        for table in new_md.sorted_tables:
            if table.name not in old_md.tables:
                create_tables.append(self._compile(CreateTable(table), dialect))
                continue

            old = old_md.tables[table.name]
            table_sql = prep.format_table(table)

            for column in table.columns:
                if column.name not in old.c:
                    add_columns.append(
                        f"ALTER TABLE {table_sql} ADD COLUMN {ddl.get_column_specification(column)}"
                    )
                else:
                    alter_columns.extend(
                        self._alter_column(table, old.c[column.name], column, dialect)
                    )

            dropped = [c for c in old.columns if c.name not in table.c]
            for column in dropped:
                drop_columns.append(f"ALTER TABLE {table_sql} DROP COLUMN {prep.format_column(column)}")

            self._log_renames(target, table.name, {c.name for c in dropped})

            old_fks = {_fk_signature(fk): fk for fk in old.foreign_key_constraints}
            new_fks = {_fk_signature(fk): fk for fk in table.foreign_key_constraints}
            for signature, fk in new_fks.items():
                if signature not in old_fks:
                    add_fks.extend(self._constraint(AddConstraint(fk), table.name, dialect))
            for signature, fk in old_fks.items():
                if signature not in new_fks:
                    drop_fks.extend(self._constraint(DropConstraint(fk), table.name, dialect))

        for table in reversed(old_md.sorted_tables):
            if table.name not in new_md.tables:
                drop_tables.append(self._compile(DropTable(table), dialect))

        return (
            drop_fks
            + create_tables
            + add_columns
            + alter_columns
            + add_fks
            + drop_columns
            + drop_tables
        )

    def _compile(self, element: Any, dialect: Dialect) -> str:
        return str(element.compile(dialect=dialect)).strip()

    def _constraint(self, element: Any, table_name: str, dialect: Dialect) -> list[str]:
        if dialect.name == "sqlite":
            logger.warning(
                f"SQLite cannot alter constraints on existing table {table_name}; "
                f"foreign key change skipped"
            )
            return []
        return [self._compile(element, dialect)]

    def _alter_column(
        self,
        table: sa.Table,
        old: sa.Column,
        new: sa.Column,
        dialect: Dialect,
    ) -> list[str]:
        ddl = dialect.ddl_compiler(dialect, None)
        prep = dialect.identifier_preparer

        old_type = old.type.compile(dialect=dialect)
        new_type = new.type.compile(dialect=dialect)
        old_default = ddl.get_column_default_string(old)
        new_default = ddl.get_column_default_string(new)

        type_changed = old_type != new_type
        null_changed = old.nullable != new.nullable
        default_changed = old_default != new_default

        if not (type_changed or null_changed or default_changed):
            return []

        if dialect.name == "sqlite":
            raise ValueError(f"SQLite cannot alter column {table.name}.{new.name} in place")

        table_sql = prep.format_table(table)
        column_sql = prep.format_column(new)

        if dialect.name == "mysql":
            return [f"ALTER TABLE {table_sql} MODIFY {ddl.get_column_specification(new)}"]

        prefix = f"ALTER TABLE {table_sql} ALTER COLUMN {column_sql}"
        statements = []
        if type_changed:
            statements.append(f"{prefix} TYPE {new_type}")
        if null_changed:
            statements.append(f"{prefix} {'DROP' if new.nullable else 'SET'} NOT NULL")
        if default_changed:
            statements.append(
                f"{prefix} SET DEFAULT {new_default}" if new_default is not None else f"{prefix} DROP DEFAULT"
            )
        return statements

    def _log_renames(self, target: ProjectedSchema, table_name: str, dropped: set[str]) -> None:
        for projected in target.tables.values():
            if projected.table_name != table_name:
                continue
            for column in projected.columns.values():
                if column.validity.renamed_from in dropped:
                    logger.info(
                        f"Column {table_name}.{column.name} is renamed from "
                        f"{column.validity.renamed_from}; no data is carried over"
                    )
