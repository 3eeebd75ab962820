"""
Schema context.

A SchemaContext binds a versioned schema template to a database engine and
to the version it should be viewed at:

    model = load_schema_file("schema.yaml")
    ctx = SchemaContext.connect(model, "sqlite:///app.db")
    ctx.deploy()            # fresh database: create tables, record version
    ctx.upgrade()           # existing database: walk up to model.version

The live context is projected at the version stored in the database. A
context for a future version is built with check_version=False, which skips
the database/schema version mismatch check for that one construction.
"""

from typing import Any

import sqlalchemy as sa
from loguru import logger
from sqlalchemy.engine import Engine

from vschema.config import get_config
from vschema.core.exceptions import MissingBaseVersionError, SchemaVersionMismatchError
from vschema.core.version import Version, VersionSet
from vschema.migrations.hooks import UpgradeHooks
from vschema.schema.metadata import to_metadata
from vschema.schema.model import ProjectedSchema, SchemaModel
from vschema.schema.projector import SchemaProjector
from vschema.storage.base import VersionStore
from vschema.storage.engine import create_engine
from vschema.storage.sql import SQLVersionStore


class SchemaContext:
    """
    A schema template viewed at one version against one database.

    Attributes:
        model: Versioned schema template
        engine: SQLAlchemy engine for the database
        version: Version this context is projected at
        projected: Projected schema at version
        versions: Every version literal discovered while projecting
        hooks: Upgrade hooks for this schema
        store: Version record store
    """

    def __init__(
        self,
        model: SchemaModel,
        engine: Engine,
        version: Any = None,
        *,
        hooks: UpgradeHooks | None = None,
        store: VersionStore | None = None,
        check_version: bool = True,
        projector: SchemaProjector | None = None,
    ) -> None:
        """
        Initialize the context.

        Args:
            model: Versioned schema template
            engine: Engine connected to the database
            version: Version to project at (defaults to the database version,
                then to the schema's own version)
            hooks: Upgrade hooks (defaults to an empty registry)
            store: Version store (defaults to SQLVersionStore on the configured table)
            check_version: Compare database and schema versions on construction
            projector: Projector to use (defaults to SchemaProjector())

        Raises:
            MissingBaseVersionError: If no version is given, stored or declared
            SchemaVersionMismatchError: If versions differ and strict checking is on
        """
        self.model = model
        self.engine = engine
        self.hooks = hooks or UpgradeHooks()
        self.store = store or SQLVersionStore(get_config().version_table)
        self.projector = projector or SchemaProjector()

        db_version = None
        if version is None or check_version:
            db_version = self.get_db_version()

        if check_version:
            self._check_version(db_version)

        if version is None:
            version = db_version if db_version is not None else model.version
        if version is None:
            raise MissingBaseVersionError(
                f"Schema {model.name} declares no version and the database is unversioned"
            )

        self.version = Version.parse(version)
        self.projected, self.versions = self.projector.project(model, self.version)

    @classmethod
    def connect(
        cls,
        model: SchemaModel,
        url: str | None = None,
        version: Any = None,
        **kwargs: Any,
    ) -> "SchemaContext":
        """
        Create a context with a new engine.

        Args:
            model: Versioned schema template
            url: Database URL (defaults to the configured database_url)
            version: Version to project at
            **kwargs: Passed to SchemaContext()
        """
        url = url or get_config().database_url
        if not url:
            raise ValueError("No database URL given and no database_url configured")
        return cls(model, create_engine(url), version, **kwargs)

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    def _check_version(self, db_version: Version | None) -> None:
        schema_version = self.model.version
        if db_version is None:
            logger.warning(
                f"Database is unversioned; call deploy() or install() for schema {self.model.name}"
            )
            return
        if schema_version is None or db_version == schema_version:
            return

        if get_config().strict_version_check:
            raise SchemaVersionMismatchError(schema_version, db_version)
        logger.warning(
            f"Versions out of sync: schema {self.model.name} is {schema_version}, "
            f"database contains version {db_version}; call upgrade()"
        )

    def get_db_version(self) -> Version | None:
        """Read the version currently recorded in the database."""
        with self.engine.connect() as connection:
            return self.store.get_version(connection)

    def project(self, version: Any) -> tuple[ProjectedSchema, VersionSet]:
        """Project this context's model at another version."""
        return self.projector.project(self.model, version)

    def for_version(self, version: Any) -> "SchemaContext":
        """
        Build an independent context for another version on the same engine.

        The version mismatch check is skipped for this construction only.
        """
        return SchemaContext(
            self.model,
            self.engine,
            version,
            hooks=self.hooks,
            store=self.store,
            check_version=False,
            projector=self.projector,
        )

    def metadata(self) -> sa.MetaData:
        """SQLAlchemy metadata for the projected schema."""
        return to_metadata(self.projected)

    def deploy(self) -> Version:
        """
        Create every projected table and record this context's version.

        Runs in one transaction.

        Returns:
            The recorded version
        """
        with self.engine.begin() as connection:
            self.metadata().create_all(connection)
            self.store.ensure_table(connection)
            self.store.set_version(connection, self.version)

        logger.info(f"Deployed schema {self.model.name} at version {self.version}")
        return self.version

    def install(self, version: Any = None) -> Version:
        """
        Record a baseline version for a database whose tables already exist.

        No DDL is run.

        Args:
            version: Version to record (defaults to this context's version)
        """
        baseline = Version.parse(version) if version is not None else self.version
        with self.engine.begin() as connection:
            self.store.ensure_table(connection)
            self.store.set_version(connection, baseline)

        logger.info(f"Installed baseline version {baseline} for schema {self.model.name}")
        return baseline

    def upgrade(self, target: Any = None) -> list[Any]:
        """
        Upgrade the database to target (defaults to the schema's version).

        See MigrationRunner.run().
        """
        from vschema.migrations.runner import MigrationRunner

        return MigrationRunner(self).run(target)

    def dispose(self) -> None:
        self.engine.dispose()

    def __repr__(self) -> str:
        return f"<SchemaContext {self.model.name} at {self.version} ({self.dialect})>"
