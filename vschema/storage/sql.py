"""
SQL version record store.

Keeps one row per applied version in a small table (schema_versions by
default). The current version is the most recently inserted row.
"""

from datetime import UTC, datetime

import sqlalchemy as sa
from loguru import logger
from sqlalchemy.engine import Connection

from vschema.core.version import Version
from vschema.storage.base import VersionRecord, VersionStore


class SQLVersionStore(VersionStore):
    """
    Version store backed by a table in the migrated database.

    The table lives in its own MetaData so it never appears in schema diffs.
    """

    def __init__(self, table_name: str = "schema_versions") -> None:
        self.table_name = table_name
        self.metadata = sa.MetaData()
        self.table = sa.Table(
            table_name,
            self.metadata,
            sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
            sa.Column("version", sa.String(32), nullable=False),
            sa.Column("applied_at", sa.DateTime, nullable=False),
        )

    def ensure_table(self, connection: Connection) -> None:
        self.metadata.create_all(connection, checkfirst=True)
        logger.debug(f"Version table {self.table_name} ready")

    def exists(self, connection: Connection) -> bool:
        return sa.inspect(connection).has_table(self.table_name)

    def get_version(self, connection: Connection) -> Version | None:
        if not self.exists(connection):
            return None

        row = connection.execute(
            sa.select(self.table.c.version).order_by(self.table.c.id.desc()).limit(1)
        ).first()
        return Version.parse(row[0]) if row else None

    def set_version(self, connection: Connection, version: Version) -> VersionRecord:
        self.ensure_table(connection)
        record = VersionRecord(version=version, applied_at=datetime.now(UTC))
        connection.execute(
            self.table.insert().values(
                version=str(version),
                applied_at=record.applied_at.replace(tzinfo=None),
            )
        )
        logger.debug(f"Recorded schema version {version}")
        return record

    def history(self, connection: Connection) -> list[VersionRecord]:
        if not self.exists(connection):
            return []

        rows = connection.execute(
            sa.select(self.table.c.version, self.table.c.applied_at).order_by(self.table.c.id)
        ).all()
        return [
            VersionRecord(version=Version.parse(v), applied_at=applied.replace(tzinfo=UTC))
            for v, applied in rows
        ]
