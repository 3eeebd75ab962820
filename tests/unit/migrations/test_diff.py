"""
Unit tests for the DDL differ.
"""

import pytest

from vschema.core.exceptions import DiffGenerationError
from vschema.core.version import Version
from vschema.migrations.diff import SchemaDiffer, get_dialect, is_boilerplate, render_script
from vschema.schema.loader import load_schema
from vschema.schema.projector import project


def _diff(model, source, target, dialect="postgresql"):
    return SchemaDiffer().diff(project(model, source)[0], project(model, target)[0], dialect)


def _body(statements):
    return [s for s in statements if not is_boilerplate(s)]


@pytest.fixture
def linked_model():
    """B gains a foreign key to A at 0.002."""
    return load_schema(
        {
            "version": "0.002",
            "tables": {
                "A": {"table": "a", "columns": {"id": {"data_type": "integer", "primary_key": True}}},
                "B": {
                    "table": "b",
                    "columns": {
                        "id": {"data_type": "integer", "primary_key": True},
                        "a_id": {"data_type": "integer"},
                    },
                    "relationships": {
                        "a": {"kind": "belongs_to", "target": "A", "columns": ["a_id"], "since": "0.002"}
                    },
                },
            },
        }
    )


class TestBoilerplate:
    """Test is_boilerplate() and render_script()."""

    @pytest.mark.parametrize(
        "statement",
        ["", "   ", "-- Convert schema", "BEGIN;", "begin transaction", "COMMIT;", "START TRANSACTION;"],
    )
    def test_boilerplate(self, statement):
        """Test comments, blanks and transaction markers are boilerplate."""
        assert is_boilerplate(statement)

    @pytest.mark.parametrize(
        "statement",
        ["ALTER TABLE bars ADD COLUMN height INTEGER", "CREATE TABLE begin_log (id INTEGER)"],
    )
    def test_not_boilerplate(self, statement):
        """Test DDL statements are kept."""
        assert not is_boilerplate(statement)

    def test_render_script(self):
        """Test statements are terminated and markers left as they are."""
        script = render_script(["BEGIN;", "DROP TABLE x", "COMMIT;"])
        assert script == "BEGIN;\nDROP TABLE x;\nCOMMIT;\n"


class TestSchemaDiffer:
    """Test SchemaDiffer.diff()."""

    def test_script_framing(self, shop_model):
        """Test the output is framed like a standalone script."""
        statements = _diff(shop_model, "0.001", "0.003")

        assert statements[0] == "-- Convert schema '0.001' to '0.003':;"
        assert statements[1] == "BEGIN;"
        assert statements[-1] == "COMMIT;"

    def test_equal_projections(self, shop_model):
        """Test identical projections produce no DDL."""
        assert _body(_diff(shop_model, "0.003", "0.3")) == []

    def test_create_table_and_add_column(self, shop_model):
        """Test new tables are created before columns are added."""
        body = _body(_diff(shop_model, "0.001", "0.003"))

        assert len(body) == 2
        assert body[0].startswith("CREATE TABLE foos")
        assert body[1] == "ALTER TABLE bars ADD COLUMN height INTEGER"

    def test_drop_column_and_alter_type(self, shop_model):
        """Test postgresql alters come before column drops."""
        body = _body(_diff(shop_model, "0.3", "0.4"))

        assert body == [
            "ALTER TABLE foos ALTER COLUMN width TYPE NUMERIC",
            "ALTER TABLE bars DROP COLUMN weight",
        ]

    def test_set_not_null(self, shop_model):
        """Test a nullable change on postgresql."""
        body = _body(_diff(shop_model, "0.4", "0.401"))
        assert body == ["ALTER TABLE foos ALTER COLUMN width SET NOT NULL"]

    def test_mysql_modify(self, shop_model):
        """Test MySQL alters a column with MODIFY."""
        body = _body(_diff(shop_model, "0.4", "0.401", dialect="mysql"))

        assert len(body) == 1
        assert body[0].startswith("ALTER TABLE foos MODIFY width NUMERIC")
        assert body[0].endswith("NOT NULL")

    def test_drop_table(self, shop_model):
        """Test dropping a table when walking back past its since."""
        body = _body(_diff(shop_model, "0.002", "0.001"))
        assert body == ["DROP TABLE foos"]

    def test_add_foreign_key(self, linked_model):
        """Test a new belongs_to on an existing table adds a named constraint."""
        body = _body(_diff(linked_model, "0.001", "0.002"))

        assert len(body) == 1
        assert "ADD CONSTRAINT fk_b_a_id_a FOREIGN KEY(a_id) REFERENCES a (id)" in body[0]

    def test_drop_foreign_key(self, linked_model):
        """Test a removed belongs_to drops the constraint first."""
        body = _body(_diff(linked_model, "0.002", "0.001"))

        assert len(body) == 1
        assert "DROP CONSTRAINT fk_b_a_id_a" in body[0]

    def test_sqlite_skips_constraint_changes(self, linked_model):
        """Test SQLite cannot alter constraints and skips them."""
        assert _body(_diff(linked_model, "0.001", "0.002", dialect="sqlite")) == []

    def test_sqlite_cannot_alter_column(self, shop_model):
        """Test altering a column on SQLite fails with DiffGenerationError."""
        with pytest.raises(DiffGenerationError) as exc_info:
            _diff(shop_model, "0.3", "0.4", dialect="sqlite")

        assert exc_info.value.current == Version.parse("0.3")
        assert exc_info.value.target == Version.parse("0.4")
        assert exc_info.value.last_committed == Version.parse("0.3")

    def test_unknown_dialect(self, shop_model):
        """Test unsupported dialects fail with DiffGenerationError."""
        with pytest.raises(DiffGenerationError, match="Unsupported dialect"):
            _diff(shop_model, "0.001", "0.003", dialect="oracle")

    def test_get_dialect(self):
        """Test dialect lookup by name."""
        assert get_dialect("postgresql").name == "postgresql"

        with pytest.raises(ValueError):
            get_dialect("nope")

    def test_rename_is_drop_and_add(self):
        """Test a renamed column is dropped and added, with no data carried."""
        model = load_schema(
            {
                "tables": {
                    "T": {
                        "table": "t",
                        "columns": {
                            "id": {"data_type": "integer", "primary_key": True},
                            "title": {"data_type": "text", "until": "0.001"},
                            "heading": {"data_type": "text", "since": {"0.002": {"renamed_from": "title"}}},
                        },
                    }
                }
            }
        )

        body = _body(_diff(model, "0.001", "0.002"))

        assert body == ["ALTER TABLE t ADD COLUMN heading TEXT", "ALTER TABLE t DROP COLUMN title"]
