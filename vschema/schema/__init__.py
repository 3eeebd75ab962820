"""
Versioned schema templates and their projections.
"""

from vschema.schema.loader import load_schema, load_schema_file
from vschema.schema.metadata import to_metadata
from vschema.schema.model import (
    ALWAYS,
    ColumnDef,
    ProjectedSchema,
    ProjectedTable,
    RelationshipDef,
    SchemaModel,
    TableDef,
    Validity,
)
from vschema.schema.projector import SchemaProjector, project

__all__ = [
    "ALWAYS",
    "ColumnDef",
    "ProjectedSchema",
    "ProjectedTable",
    "RelationshipDef",
    "SchemaModel",
    "TableDef",
    "Validity",
    "SchemaProjector",
    "project",
    "load_schema",
    "load_schema_file",
    "to_metadata",
]
