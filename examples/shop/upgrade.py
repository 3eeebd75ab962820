"""
Versioned Schema Example

Deploys the Shop schema at its first version into a SQLite database, then
upgrades it step by step to the version schema.yaml declares.
- Each step runs in one transaction
- Hooks move data while both old and new columns exist
- The version table keeps one row per applied version

Run: python examples/shop/upgrade.py
"""

from pathlib import Path

import sqlalchemy as sa
from loguru import logger

from vschema import (
    SchemaContext,
    SchemaDiffer,
    configure_logging,
    create_engine,
    load_schema_file,
    render_script,
)

HERE = Path(__file__).parent
DB_PATH = HERE / "shop.db"


# --- Configuration ---
configure_logging(level="INFO")
DB_PATH.unlink(missing_ok=True)

model = load_schema_file(HERE / "schema.yaml")
engine = create_engine(f"sqlite:///{DB_PATH}")


# --- Deploy the first version ---
SchemaContext(model, engine, "0.001").deploy()
with engine.begin() as connection:
    connection.execute(sa.text("INSERT INTO bars (name, weight) VALUES ('small', 70)"))


# --- Hooks ---
ctx = SchemaContext(model, engine)


@ctx.hooks.after_hook("0.003")
def fill_height(connection):
    connection.execute(sa.text("UPDATE bars SET height = weight * 2"))


@ctx.hooks.before_hook("0.004")
def keep_titles(connection):
    connection.execute(sa.text("CREATE TABLE foo_titles AS SELECT foos_id, title FROM foos"))


@ctx.hooks.after_hook("0.004")
def restore_titles(connection):
    connection.execute(
        sa.text(
            "UPDATE foos SET label = "
            "(SELECT title FROM foo_titles WHERE foo_titles.foos_id = foos.foos_id)"
        )
    )
    connection.execute(sa.text("DROP TABLE foo_titles"))


# --- Preview and upgrade ---
def main() -> None:
    current, _ = ctx.project(ctx.version)
    target, _ = ctx.project(model.version)
    script = render_script(SchemaDiffer().diff(current, target, "postgresql"))
    logger.info(f"Full diff on postgresql:\n{script}")

    for step in ctx.upgrade():
        logger.info(f"{step.from_version} -> {step.to_version}: {len(step.statements)} statement(s)")

    with engine.connect() as connection:
        for record in ctx.store.history(connection):
            logger.info(f"version {record.version} applied at {record.applied_at:%H:%M:%S}")

    ctx.dispose()


if __name__ == "__main__":
    main()
