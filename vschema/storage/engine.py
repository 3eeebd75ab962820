"""
Engine factory.

SQLite's Python driver commits implicitly before DDL, which would break
all-or-nothing steps. Engines created here take over transaction control on
SQLite so that DDL is rolled back with the rest of a failed step.
"""

from typing import Any

import sqlalchemy as sa
from loguru import logger
from sqlalchemy import event
from sqlalchemy.engine import Engine


def _enable_transactional_ddl(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection: Any, connection_record: Any) -> None:
        # stop pysqlite from issuing its own BEGIN/COMMIT
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(connection: Any) -> None:
        connection.exec_driver_sql("BEGIN")


def create_engine(url: str | sa.URL, **kwargs: Any) -> Engine:
    """
    Create a SQLAlchemy engine suitable for running migrations.

    Args:
        url: Database URL
        **kwargs: Passed to sqlalchemy.create_engine

    Returns:
        Engine
    """
    engine = sa.create_engine(url, **kwargs)
    if engine.dialect.name == "sqlite":
        _enable_transactional_ddl(engine)
    logger.debug(f"Created engine for {engine.url.render_as_string(hide_password=True)}")
    return engine
