"""
Unit tests for migration planning.
"""

import pytest

from vschema.core.exceptions import InvalidVersionFormat, MigrationPlanError
from vschema.core.version import Version
from vschema.migrations.planner import MigrationPlanner


def _steps(plan):
    return [(str(a), str(b)) for a, b in plan]


class TestOrderedVersions:
    """Test MigrationPlanner.ordered_versions()."""

    def test_union_sorted_and_deduplicated(self):
        """Test database, schema, hook and discovered versions are merged."""
        planner = MigrationPlanner(
            "0.001",
            "0.4",
            hook_versions=["0.3", "v0.001"],
            discovered=["0.003", "0.3"],
        )

        assert [str(v) for v in planner.ordered_versions()] == ["0.001", "0.003", "0.3", "0.4"]

    def test_unversioned_database(self):
        """Test a None database version is left out."""
        planner = MigrationPlanner(None, "0.002")
        assert planner.ordered_versions() == [Version.parse("0.002")]


class TestPlan:
    """Test MigrationPlanner.plan()."""

    def test_adjacent_steps(self):
        """Test 0.001 -> 0.003 walks through 0.002."""
        planner = MigrationPlanner("0.001", "0.003", hook_versions=["0.002"])

        assert _steps(planner.plan("0.001", "0.003")) == [("0.001", "0.002"), ("0.002", "0.003")]

    def test_equal_versions_empty_plan(self):
        """Test planning between equal versions is a no-op, not an error."""
        planner = MigrationPlanner("0.002", "0.002")

        assert planner.plan("0.002", "v0.002") == []

    def test_versions_outside_range_ignored(self):
        """Test only versions strictly between the endpoints become stops."""
        planner = MigrationPlanner("0.002", "0.4", hook_versions=["0.001", "0.3", "0.5"])

        assert _steps(planner.plan("0.002", "0.4")) == [("0.002", "0.3"), ("0.3", "0.4")]

    def test_endpoints_need_not_be_known(self):
        """Test endpoints not in ordered_versions still start and end the chain."""
        planner = MigrationPlanner("0.001", "0.003", hook_versions=["0.002"])

        assert _steps(planner.plan("0.0015", "0.0025")) == [("0.0015", "0.002"), ("0.002", "0.0025")]

    def test_single_step(self):
        """Test a plan with nothing in between."""
        planner = MigrationPlanner("0.001", "0.002")
        assert _steps(planner.plan("0.001", "0.002")) == [("0.001", "0.002")]

    def test_steps_are_strictly_increasing(self):
        """Test every step moves forward and steps chain together."""
        planner = MigrationPlanner("0.001", "1.0", discovered=["0.5", "0.002", "0.03", "0.5"])
        plan = planner.plan("0.001", "1.0")

        assert all(a < b for a, b in plan)
        assert all(plan[i][1] == plan[i + 1][0] for i in range(len(plan) - 1))
        assert len(plan) == 4

    def test_downgrade_rejected(self):
        """Test planning backwards raises MigrationPlanError."""
        planner = MigrationPlanner("0.003", "0.003", hook_versions=["0.002"])

        with pytest.raises(MigrationPlanError, match="downgrade"):
            planner.plan("0.003", "0.001")

    def test_invalid_version(self):
        """Test invalid endpoints fail to parse."""
        with pytest.raises(InvalidVersionFormat):
            MigrationPlanner("0.001", "0.002").plan("0.001", "latest")
