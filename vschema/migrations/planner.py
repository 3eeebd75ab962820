"""
Migration planning.

Given the version stored in the database, the version the schema declares
and the versions known to upgrade hooks (plus any discovered by projection),
the planner builds the chain of adjacent version pairs an upgrade walks
through.
"""

from typing import Any, Iterable

from vschema.core.exceptions import MigrationPlanError
from vschema.core.version import Version, VersionSet


class MigrationPlanner:
    """
    Plans the steps between two versions.

    Usage:
        planner = MigrationPlanner("0.001", "0.003", hook_versions=["0.002"])
        planner.plan("0.001", "0.003")
        # [(Version('0.001'), Version('0.002')), (Version('0.002'), Version('0.003'))]
    """

    def __init__(
        self,
        db_version: Any,
        schema_version: Any,
        hook_versions: Iterable[Any] = (),
        discovered: Iterable[Any] = (),
    ) -> None:
        """
        Initialize the planner.

        Args:
            db_version: Version currently stored in the database (None if unversioned)
            schema_version: Version the schema declares (None if undeclared)
            hook_versions: Versions declared by upgrade hooks
            discovered: Versions discovered while projecting the schema
        """
        self.db_version = Version.parse(db_version) if db_version is not None else None
        self.schema_version = Version.parse(schema_version) if schema_version is not None else None
        self.hook_versions = list(hook_versions)
        self.discovered = list(discovered)

    def ordered_versions(self) -> list[Version]:
        """
        Get every known version, deduplicated and ascending.

        Returns:
            Union of the database version, schema version, hook versions and
            discovered versions
        """
        versions = VersionSet()
        if self.db_version is not None:
            versions.add(self.db_version)
        if self.schema_version is not None:
            versions.add(self.schema_version)
        versions.update(self.hook_versions)
        versions.update(self.discovered)
        return versions.sorted()

    def plan(self, from_version: Any, to_version: Any) -> list[tuple[Version, Version]]:
        """
        Get the ordered steps from one version to another.

        Args:
            from_version: Starting version
            to_version: Version to reach

        Returns:
            Adjacent (current, target) pairs, empty if the versions are equal

        Raises:
            MigrationPlanError: If to_version is older than from_version
        """
        start = Version.parse(from_version)
        end = Version.parse(to_version)

        if start == end:
            return []
        if end < start:
            raise MigrationPlanError(
                f"Cannot downgrade from {start} to {end}: downgrades are not supported"
            )

        chain = [start]
        chain.extend(v for v in self.ordered_versions() if start < v < end)
        chain.append(end)

        return list(zip(chain, chain[1:]))
