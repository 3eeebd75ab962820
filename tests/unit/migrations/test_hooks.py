"""
Unit tests for the upgrade hook registry.
"""

from vschema.core.version import Version
from vschema.migrations.hooks import UpgradeHooks


class TestUpgradeHooks:
    """Test UpgradeHooks."""

    def test_before_and_after_decorators(self):
        """Test decorators register callbacks and return them unchanged."""
        hooks = UpgradeHooks()

        @hooks.before_hook("0.002")
        def prepare(connection):
            pass

        @hooks.after_hook("v0.002")
        def backfill(connection):
            pass

        assert hooks.before("0.002") == [prepare]
        assert hooks.after("0.002") == [backfill]
        assert callable(prepare)

    def test_registration_order_kept(self):
        """Test several callbacks for one version run in registration order."""
        hooks = UpgradeHooks()
        first = hooks.after_hook("0.002")(lambda c: None)
        second = hooks.after_hook("0.002")(lambda c: None)

        assert hooks.after("0.002") == [first, second]

    def test_no_hooks(self):
        """Test versions without hooks return empty lists."""
        hooks = UpgradeHooks()

        assert hooks.before("0.002") == []
        assert hooks.after("0.002") == []
        assert hooks.upgrade_to("0.002", "sqlite") == []

    def test_returned_lists_are_copies(self):
        """Test callers cannot modify the registry through returned lists."""
        hooks = UpgradeHooks()
        hooks.before_hook("0.002")(lambda c: None)

        hooks.before("0.002").clear()

        assert len(hooks.before("0.002")) == 1

    def test_add_sql_by_dialect(self):
        """Test raw statements are filtered by dialect."""
        hooks = UpgradeHooks()
        hooks.add_sql("0.003", "UPDATE foos SET width = 0")
        hooks.add_sql("0.003", "VACUUM", dialect="sqlite")
        hooks.add_sql("0.003", "ANALYZE foos", dialect="postgresql")

        assert hooks.upgrade_to("0.003", "sqlite") == ["UPDATE foos SET width = 0", "VACUUM"]
        assert hooks.upgrade_to("0.003", "postgresql") == [
            "UPDATE foos SET width = 0",
            "ANALYZE foos",
        ]

    def test_ordered_versions(self):
        """Test every registered version is listed once, ascending."""
        hooks = UpgradeHooks()
        hooks.after_hook("0.4")(lambda c: None)
        hooks.before_hook("0.002")(lambda c: None)
        hooks.add_sql("v0.4", "SELECT 1")

        assert hooks.ordered_versions() == [Version.parse("0.002"), Version.parse("0.4")]
