"""
Single-step migration executor.

Applies one (current, target) step: projects the schema at both versions,
diffs the projections, runs the upgrade hooks and executes the DDL. The
before-hooks, the raw hook SQL, the DDL, the after-hooks and the version
record write share one transaction, so a failing step leaves the database
exactly as it was.
"""

import warnings
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from loguru import logger
from sqlalchemy.engine import Connection
from sqlalchemy.exc import DBAPIError

from vschema.core.exceptions import NoOpNotice, StepExecutionError
from vschema.core.version import Version
from vschema.migrations.diff import SchemaDiffer, is_boilerplate
from vschema.migrations.hooks import HookFunc, UpgradeHooks
from vschema.observability.logging import migration_logging_context

if TYPE_CHECKING:
    from vschema.context import SchemaContext


@dataclass
class AppliedStep:
    """
    Record of an applied migration step.

    Attributes:
        from_version: Version the step started from
        to_version: Version the step reached
        statements: SQL executed inside the step transaction, in order
        applied_at: When the step committed
    """

    from_version: Version
    to_version: Version
    statements: list[str] = field(default_factory=list)
    applied_at: datetime = field(default_factory=lambda: datetime.now(UTC))


def _hook_name(hook: HookFunc) -> str:
    return getattr(hook, "__qualname__", None) or repr(hook)


class StepExecutor:
    """
    Applies one migration step to the database of a SchemaContext.

    Usage:
        executor = StepExecutor(ctx)
        executor.apply_step("0.001", "0.002")
    """

    def __init__(
        self,
        context: "SchemaContext",
        differ: SchemaDiffer | None = None,
        hooks: UpgradeHooks | None = None,
    ) -> None:
        """
        Initialize the executor.

        Args:
            context: Live schema context (engine, model, version store)
            differ: DDL differ (defaults to SchemaDiffer())
            hooks: Upgrade hooks (defaults to the context's hooks)
        """
        self.context = context
        self.differ = differ or SchemaDiffer()
        self.hooks = hooks if hooks is not None else context.hooks

    def apply_step(self, current: Any, target: Any) -> AppliedStep | None:
        """
        Upgrade the database from current to target.

        Args:
            current: Version the database is at
            target: Version to reach

        Returns:
            AppliedStep, or None if current equals target

        Raises:
            DiffGenerationError: If the DDL cannot be generated (nothing was run)
            StepExecutionError: If a hook or statement failed (step rolled back)
        """
        current = Version.parse(current)
        target = Version.parse(target)
        schema_name = self.context.model.name

        if current == target:
            warnings.warn(
                NoOpNotice(f"Schema {schema_name} is already at version {target}"),
                stacklevel=2,
            )
            logger.info(f"Nothing to do: schema {schema_name} is already at {target}")
            return None

        with migration_logging_context(schema_name, current, target):
            source, _ = self.context.project(current)
            destination = self.context.for_version(target).projected

            # Raises DiffGenerationError before anything touches the database
            diff = self.differ.diff(source, destination, self.context.dialect)
            ddl = [s for s in diff if not is_boilerplate(s)]

            statements = self.hooks.upgrade_to(target, self.context.dialect) + ddl
            logger.info(f"Upgrading {schema_name} from {current} to {target}")

            with self.context.engine.begin() as connection:
                for hook in self.hooks.before(target):
                    self._run_hook(connection, hook, current, target)

                for statement in statements:
                    self._execute(connection, statement, current, target)

                for hook in self.hooks.after(target):
                    self._run_hook(connection, hook, current, target)

                record = self.context.store.set_version(connection, target)

            logger.info(f"Schema {schema_name} is now at version {target}")
            return AppliedStep(
                from_version=current,
                to_version=target,
                statements=statements,
                applied_at=record.applied_at,
            )

    def _execute(
        self, connection: Connection, statement: str, current: Version, target: Version
    ) -> None:
        logger.debug(f"Executing: {statement}")
        try:
            connection.exec_driver_sql(statement)
        except DBAPIError as e:
            logger.error(f"Statement failed, rolling back: {statement}")
            raise StepExecutionError(current, target, e.orig or e, statement=statement) from e

    def _run_hook(
        self, connection: Connection, hook: HookFunc, current: Version, target: Version
    ) -> None:
        name = _hook_name(hook)
        logger.debug(f"Running upgrade hook {name}")
        try:
            hook(connection)
        except Exception as e:
            logger.error(f"Upgrade hook {name} failed: {e}")
            raise StepExecutionError(current, target, e, hook=name) from e
