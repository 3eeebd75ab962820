"""Shared fixtures for vschema tests."""

import pytest

from vschema.config import reset_config
from vschema.schema.loader import load_schema

SHOP_DECLARATION = {
    "name": "Shop",
    "version": "0.4",
    "tables": {
        "Bar": {
            "table": "bars",
            "columns": {
                "bars_id": {"data_type": "integer", "primary_key": True, "is_auto_increment": True},
                "height": {"data_type": "integer", "versioned": {"since": "0.003"}},
                "weight": {"data_type": "integer", "versioned": {"until": "0.3"}},
            },
            "relationships": {
                "foos": {"kind": "has_many", "target": "Foo", "columns": ["bars_id"]},
            },
        },
        "Foo": {
            "table": "foos",
            "columns": {
                "foos_id": {"data_type": "integer", "primary_key": True, "is_auto_increment": True},
                "bars_id": {"data_type": "integer"},
                "width": {
                    "data_type": "integer",
                    "versioned": {
                        "changes": {
                            "0.4": {"data_type": "numeric"},
                            "0.401": {"is_nullable": False},
                        }
                    },
                },
            },
            "relationships": {
                "bar": {"kind": "belongs_to", "target": "Bar", "columns": ["bars_id"]},
            },
            "versioned": {"since": "0.002"},
        },
    },
}


@pytest.fixture(autouse=True)
def clean_config(monkeypatch, tmp_path):
    """Isolate every test from a vschema.config.yaml in the working directory."""
    monkeypatch.chdir(tmp_path)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def shop_model():
    """Two-table schema: Bar from the start, Foo since 0.002."""
    return load_schema(SHOP_DECLARATION)
