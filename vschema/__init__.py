"""
vschema - Versioned schema projection and migrations

A schema is declared once, with every table, column and relationship tagged
with the versions it exists in. vschema projects that template at any
version, diffs two projections into DDL and walks a database forward one
version at a time, each step in a single transaction.

Quick Start:
    >>> import vschema
    >>> from vschema import SchemaContext, load_schema_file
    >>>
    >>> model = load_schema_file("schema.yaml")
    >>> ctx = SchemaContext.connect(model, "sqlite:///app.db")
    >>>
    >>> @ctx.hooks.after_hook("0.002")
    >>> def backfill(connection):
    >>>     ...
    >>>
    >>> ctx.upgrade()
"""

__version__ = "0.1.0"

# Configuration
from vschema.config import configure, get_config, reset_config

# Versions
from vschema.core.version import Version, VersionSet, compare, parse

# Exceptions
from vschema.core.exceptions import (
    DiffGenerationError,
    InvalidChangesFormat,
    InvalidRangeError,
    InvalidVersionFormat,
    MigrationPlanError,
    MissingBaseVersionError,
    NoOpNotice,
    SchemaDefinitionError,
    SchemaVersionMismatchError,
    StepError,
    StepExecutionError,
    VSchemaError,
)

# Schema templates and projection
from vschema.schema import (
    ColumnDef,
    ProjectedSchema,
    ProjectedTable,
    RelationshipDef,
    SchemaModel,
    SchemaProjector,
    TableDef,
    Validity,
    load_schema,
    load_schema_file,
    project,
    to_metadata,
)

# Migrations
from vschema.migrations import (
    AppliedStep,
    MigrationPlanner,
    MigrationRunner,
    SchemaDiffer,
    render_script,
    StepExecutor,
    UpgradeHooks,
)

# Context
from vschema.context import SchemaContext

# Storage
from vschema.storage import SQLVersionStore, VersionRecord, VersionStore, create_engine

# Logging
from vschema.observability import (
    configure_logging,
    configure_logging_from_config,
    configure_logging_from_env,
    get_logger,
)

__all__ = [
    "__version__",
    "configure",
    "get_config",
    "reset_config",
    "Version",
    "VersionSet",
    "parse",
    "compare",
    "VSchemaError",
    "InvalidVersionFormat",
    "SchemaDefinitionError",
    "InvalidRangeError",
    "InvalidChangesFormat",
    "MissingBaseVersionError",
    "SchemaVersionMismatchError",
    "MigrationPlanError",
    "StepError",
    "DiffGenerationError",
    "StepExecutionError",
    "NoOpNotice",
    "SchemaModel",
    "TableDef",
    "ColumnDef",
    "RelationshipDef",
    "Validity",
    "ProjectedSchema",
    "ProjectedTable",
    "SchemaProjector",
    "project",
    "load_schema",
    "load_schema_file",
    "to_metadata",
    "SchemaDiffer",
    "render_script",
    "UpgradeHooks",
    "MigrationPlanner",
    "StepExecutor",
    "AppliedStep",
    "MigrationRunner",
    "SchemaContext",
    "VersionRecord",
    "VersionStore",
    "SQLVersionStore",
    "create_engine",
    "configure_logging",
    "configure_logging_from_env",
    "configure_logging_from_config",
    "get_logger",
]
