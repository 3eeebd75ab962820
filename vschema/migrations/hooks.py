"""
Upgrade hooks.

Hooks attach data changes to the moment a migration step reaches a version:

    hooks = UpgradeHooks()

    @hooks.before_hook("0.3.3")
    def clear_bar(connection):
        connection.execute(sa.text("UPDATE foos SET bar = ''"))

    @hooks.after_hook("0.3.3")
    def backfill(connection):
        ...

    hooks.add_sql("0.3.3", "UPDATE foos SET width = 0", dialect="postgresql")

Before-hooks, raw SQL, the generated DDL and after-hooks share the step
transaction, in that order.
Every callback receives a SQLAlchemy Connection.
"""

from collections import defaultdict
from typing import Any, Callable

from sqlalchemy.engine import Connection

from vschema.core.version import Version, VersionSet

HookFunc = Callable[[Connection], Any]


class UpgradeHooks:
    """Registry of before/after callbacks and raw SQL keyed by version."""

    def __init__(self) -> None:
        self._before: dict[Version, list[HookFunc]] = defaultdict(list)
        self._after: dict[Version, list[HookFunc]] = defaultdict(list)
        self._sql: dict[Version, list[tuple[str | None, str]]] = defaultdict(list)
        self._versions = VersionSet()

    def before_hook(self, version: Any) -> Callable[[HookFunc], HookFunc]:
        """Decorator registering a callback to run before upgrading to version."""

        def decorator(func: HookFunc) -> HookFunc:
            self._before[self._versions.add(version)].append(func)
            return func

        return decorator

    def after_hook(self, version: Any) -> Callable[[HookFunc], HookFunc]:
        """Decorator registering a callback to run inside the step transaction."""

        def decorator(func: HookFunc) -> HookFunc:
            self._after[self._versions.add(version)].append(func)
            return func

        return decorator

    def add_sql(self, version: Any, *statements: str, dialect: str | None = None) -> None:
        """
        Register raw statements to run ahead of the generated diff.

        Args:
            version: Version the statements belong to
            statements: SQL statements
            dialect: Only run for this dialect (None = every dialect)
        """
        key = self._versions.add(version)
        self._sql[key].extend((dialect, s) for s in statements)

    def before(self, version: Any) -> list[HookFunc]:
        return list(self._before.get(Version.parse(version), ()))

    def after(self, version: Any) -> list[HookFunc]:
        return list(self._after.get(Version.parse(version), ()))

    def upgrade_to(self, version: Any, dialect: str) -> list[str]:
        """Return the raw statements registered for version and dialect."""
        return [
            statement
            for stmt_dialect, statement in self._sql.get(Version.parse(version), ())
            if stmt_dialect is None or stmt_dialect == dialect
        ]

    def ordered_versions(self) -> list[Version]:
        """Return every version a hook or statement is registered for, ascending."""
        return self._versions.sorted()
