"""
Abstract base class for version record stores.

A version store persists the VersionRecord: the schema version currently
applied to a database. All methods take an open SQLAlchemy Connection so that
the record can be written inside the same transaction as a step's DDL.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.engine import Connection

from vschema.core.version import Version


@dataclass
class VersionRecord:
    """
    A recorded schema version.

    Attributes:
        version: Applied version
        applied_at: When it was recorded
    """

    version: Version
    applied_at: datetime


class VersionStore(ABC):
    """Persists which schema version a database is at."""

    @abstractmethod
    def ensure_table(self, connection: Connection) -> None:
        """Create the version table if it doesn't exist."""
        pass

    @abstractmethod
    def get_version(self, connection: Connection) -> Version | None:
        """
        Get the current version.

        Returns:
            Latest recorded version, or None if the database is unversioned
        """
        pass

    @abstractmethod
    def set_version(self, connection: Connection, version: Version) -> VersionRecord:
        """
        Record a new current version.

        Args:
            connection: Connection, usually inside the step transaction
            version: Version to record

        Returns:
            The stored record
        """
        pass

    @abstractmethod
    def history(self, connection: Connection) -> list[VersionRecord]:
        """Get every recorded version, oldest first."""
        pass
