"""
Exception classes for vschema.

Structural errors (bad version literals, invalid ranges, malformed changes)
are raised while loading or projecting a schema, before any database is
touched. Step errors are raised while applying a single migration step and
always leave the database at the step's starting version.
"""

from typing import Any


class VSchemaError(Exception):
    """Base exception for all vschema errors."""

    pass


class InvalidVersionFormat(VSchemaError, ValueError):
    """
    Raised when a version literal cannot be parsed.

    Attributes:
        value: The offending value
    """

    def __init__(self, value: Any) -> None:
        super().__init__(f"Invalid version format: {value!r}")
        self.value = value


class SchemaDefinitionError(VSchemaError):
    """Raised when a schema declaration is malformed."""

    pass


class InvalidRangeError(SchemaDefinitionError):
    """
    Raised when an entity declares a since version greater than its until version.

    Attributes:
        entity: Name of the table, column or relationship
        since: Declared since version
        until: Declared until version
    """

    def __init__(self, entity: str, since: Any, until: Any) -> None:
        super().__init__(f"{entity} has since greater than until ({since} > {until})")
        self.entity = entity
        self.since = since
        self.until = until


class InvalidChangesFormat(SchemaDefinitionError):
    """
    Raised when a changes overlay is not a sequence of version/patch pairs.

    Attributes:
        entity: Name of the entity carrying the changes
    """

    def __init__(self, entity: str, detail: str) -> None:
        super().__init__(f"Invalid changes for {entity}: {detail}")
        self.entity = entity


class MissingBaseVersionError(VSchemaError):
    """Raised when a schema declares no version and none can be inferred."""

    pass


class SchemaVersionMismatchError(VSchemaError):
    """
    Raised when the database version differs from the schema version.

    Only raised when strict version checking is enabled; otherwise the
    mismatch is logged as a warning.
    """

    def __init__(self, schema_version: Any, db_version: Any) -> None:
        super().__init__(
            f"Versions out of sync: schema is {schema_version}, "
            f"database contains version {db_version}"
        )
        self.schema_version = schema_version
        self.db_version = db_version


class MigrationPlanError(VSchemaError):
    """Raised when no forward upgrade path exists between two versions."""

    pass


class StepError(VSchemaError):
    """
    Base class for errors raised while applying one migration step.

    Attributes:
        current: Version the step started from
        target: Version the step was moving to
    """

    def __init__(self, message: str, current: Any, target: Any) -> None:
        super().__init__(message)
        self.current = current
        self.target = target

    @property
    def last_committed(self) -> Any:
        """The last version successfully recorded in the database."""
        return self.current


class DiffGenerationError(StepError):
    """Raised when the DDL diff between two projections cannot be produced."""

    pass


class StepExecutionError(StepError):
    """
    Raised when a statement or hook fails inside a step transaction.

    The transaction has been rolled back when this is raised.

    Attributes:
        statement: SQL statement that failed (None if a hook failed)
        hook: Name of the hook that failed (None if a statement failed)
        cause: Underlying driver or hook exception
    """

    def __init__(
        self,
        current: Any,
        target: Any,
        cause: BaseException,
        statement: str | None = None,
        hook: str | None = None,
    ) -> None:
        failed = f"statement {statement!r}" if statement is not None else f"hook {hook!r}"
        super().__init__(
            f"Upgrade from {current} to {target} failed at {failed}: {cause}",
            current,
            target,
        )
        self.statement = statement
        self.hook = hook
        self.cause = cause


class NoOpNotice(UserWarning):
    """Issued when a step is requested between two equal versions."""

    pass
