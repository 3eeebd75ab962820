"""
Persistence of the applied schema version.

Provides the VersionStore interface, the SQL implementation and the engine
factory used to connect to migrated databases.
"""

from vschema.storage.base import VersionRecord, VersionStore
from vschema.storage.engine import create_engine
from vschema.storage.sql import SQLVersionStore

__all__ = ["VersionRecord", "VersionStore", "SQLVersionStore", "create_engine"]
