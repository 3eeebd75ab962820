"""
Migration runner.

Plans the walk from the database version to a target version and applies it
one step at a time. A failing step stops the run; steps committed before it
stay applied, and the raised StepError names the last committed version so
the run can be retried from there.

Only one run may be in flight per database at a time. The runner takes no
lock; callers enforce this.
"""

from typing import TYPE_CHECKING, Any

from loguru import logger

from vschema.core.exceptions import MigrationPlanError, StepError
from vschema.core.version import Version
from vschema.migrations.diff import SchemaDiffer
from vschema.migrations.executor import AppliedStep, StepExecutor
from vschema.migrations.hooks import UpgradeHooks
from vschema.migrations.planner import MigrationPlanner

if TYPE_CHECKING:
    from vschema.context import SchemaContext


class MigrationRunner:
    """
    Upgrades a database through every intermediate version.

    Usage:
        runner = MigrationRunner(ctx)
        applied = runner.run()          # up to the schema's version
        applied = runner.run("0.4")     # or to an explicit version
    """

    def __init__(
        self,
        context: "SchemaContext",
        hooks: UpgradeHooks | None = None,
        differ: SchemaDiffer | None = None,
    ) -> None:
        self.context = context
        self.hooks = hooks if hooks is not None else context.hooks
        self.executor = StepExecutor(context, differ=differ, hooks=self.hooks)

    def planner(self) -> MigrationPlanner:
        return MigrationPlanner(
            self.context.get_db_version(),
            self.context.model.version,
            hook_versions=self.hooks.ordered_versions(),
            discovered=self.context.versions,
        )

    def plan(self, target: Any = None) -> list[tuple[Version, Version]]:
        """
        Get the steps from the database version to target.

        Args:
            target: Version to reach (defaults to the schema's version)

        Raises:
            MigrationPlanError: If the database is unversioned, no target is
                known, or target is older than the database version
        """
        planner = self.planner()
        if planner.db_version is None:
            raise MigrationPlanError(
                f"Database for schema {self.context.model.name} is unversioned; "
                "call deploy() or install() first"
            )

        target = target if target is not None else planner.schema_version
        if target is None:
            raise MigrationPlanError(
                f"No target version given and schema {self.context.model.name} declares none"
            )

        return planner.plan(planner.db_version, target)

    def run(self, target: Any = None) -> list[AppliedStep]:
        """
        Apply every planned step in order.

        Args:
            target: Version to reach (defaults to the schema's version)

        Returns:
            List of applied steps, empty if already at target

        Raises:
            MigrationPlanError: If no upgrade path exists
            StepError: If a step fails; earlier steps remain committed
        """
        steps = self.plan(target)
        if not steps:
            logger.info(f"Schema {self.context.model.name} is up to date")
            return []

        logger.info(
            f"Upgrading {self.context.model.name} through {len(steps)} step(s): "
            + " -> ".join(str(v) for v in [steps[0][0], *(t for _, t in steps)])
        )

        applied: list[AppliedStep] = []
        for current, target_version in steps:
            try:
                step = self.executor.apply_step(current, target_version)
            except StepError as e:
                logger.error(
                    f"Upgrade stopped at {e.target}; database remains at "
                    f"version {e.last_committed}: {e}"
                )
                raise
            if step is not None:
                applied.append(step)

        logger.info(f"Applied {len(applied)} step(s)")
        return applied
