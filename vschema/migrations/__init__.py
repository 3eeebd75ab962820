"""
Migration planning and execution.

Provides the DDL differ, upgrade hook registry, planner, single-step
executor and the runner that chains steps together.
"""

from vschema.migrations.diff import SchemaDiffer, is_boilerplate, render_script
from vschema.migrations.executor import AppliedStep, StepExecutor
from vschema.migrations.hooks import UpgradeHooks
from vschema.migrations.planner import MigrationPlanner
from vschema.migrations.runner import MigrationRunner

__all__ = [
    "SchemaDiffer",
    "is_boilerplate",
    "render_script",
    "UpgradeHooks",
    "MigrationPlanner",
    "StepExecutor",
    "AppliedStep",
    "MigrationRunner",
]
