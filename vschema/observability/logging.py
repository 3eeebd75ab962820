"""
Loguru logging configuration for vschema.

Provides structured logging with migration context (schema name, step
versions) and flexible console, file and JSON output.

Features:
- Environment variable configuration for deployments
- JSON schema compatible with ELK/Loki/Datadog
- Context managers binding step versions to every log line in scope
"""

import json
import os
import sys
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Generator

from loguru import logger

from vschema.config import get_config

CONTEXT_KEYS = {"schema", "from_version", "to_version"}


def configure_logging(
    level: str = "INFO",
    log_file: str | None = None,
    json_logs: bool = False,
    show_context: bool = True,
) -> None:
    """
    Configure vschema logging with loguru.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for log output
        json_logs: If True, output logs in JSON format
        show_context: If True, include migration context in log messages

    Examples:
        # Basic configuration (console output only)
        configure_logging()

        # Debug mode with file output
        configure_logging(level="DEBUG", log_file="migrations.log")

        # Production mode with JSON logs
        configure_logging(level="INFO", log_file="migrations.log", json_logs=True)
    """
    logger.remove()

    if json_logs:
        logger.add(
            sys.stderr,
            format="{message}",
            level=level,
            colorize=False,
            serialize=False,
            filter=_create_json_filter(show_context),
        )
    else:
        console_format = (
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        )

        def format_with_context(record: dict[str, Any]) -> bool:
            """Add migration context fields to the record."""
            extra_str = ""
            if show_context and record["extra"]:
                context_parts = []
                if "schema" in record["extra"]:
                    context_parts.append(f"schema={record['extra']['schema']}")
                if "from_version" in record["extra"] and "to_version" in record["extra"]:
                    context_parts.append(
                        f"step={record['extra']['from_version']}->{record['extra']['to_version']}"
                    )
                if context_parts:
                    extra_str = " | " + " ".join(context_parts)
            record["extra"]["_context"] = extra_str
            return True

        logger.add(
            sys.stderr,
            format=console_format + "{extra[_context]}",
            level=level,
            colorize=True,
            filter=format_with_context,  # type: ignore[arg-type]
        )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        if json_logs:
            logger.add(
                log_file,
                format="{message}",
                level=level,
                rotation="100 MB",
                retention="30 days",
                compression="gz",
                serialize=False,
                filter=_create_json_filter(show_context),
            )
        else:
            logger.add(
                log_file,
                format=(
                    "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
                    "{level: <8} | "
                    "{name}:{function}:{line} | "
                    "{message} | "
                    "{extra}"
                ),
                level=level,
                rotation="100 MB",
                retention="30 days",
                compression="gz",
            )

    logger.debug(f"vschema logging configured at level {level}")


def _create_json_filter(show_context: bool) -> Any:
    """Create a loguru filter that replaces the message with its JSON form."""

    def json_filter(record: dict[str, Any]) -> bool:
        record["message"] = _format_for_json(record, show_context)
        return True

    return json_filter


def _format_for_json(record: dict[str, Any], show_context: bool = True) -> str:
    """Format a loguru record as a JSON line.

    Args:
        record: Loguru log record.
        show_context: Whether to include migration context fields.

    Returns:
        JSON string representation of the log.
    """
    context = {}
    extra = {}

    for key, value in record["extra"].items():
        if key.startswith("_"):
            continue
        if key in CONTEXT_KEYS:
            context[key] = value
        else:
            extra[key] = _safe_serialize(value)

    log_obj: dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "logger": record["name"],
        "function": record["function"],
        "line": record["line"],
    }

    if show_context and context:
        log_obj["context"] = context

    if extra:
        log_obj["extra"] = extra

    if record["exception"] is not None:
        log_obj["exception"] = {
            "type": record["exception"].type.__name__ if record["exception"].type else None,
            "value": str(record["exception"].value) if record["exception"].value else None,
            "traceback": record["exception"].traceback is not None,
        }

    return json.dumps(log_obj, default=str)


def _safe_serialize(value: Any) -> Any:
    """Convert a value into something json.dumps accepts."""
    if isinstance(value, (str, int, float, bool, type(None))):
        return value
    if isinstance(value, (list, tuple)):
        return [_safe_serialize(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _safe_serialize(v) for k, v in value.items()}
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def configure_logging_from_env() -> None:
    """Configure logging from environment variables.

    Environment variables:
        VSCHEMA_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        VSCHEMA_LOG_FORMAT: Log format ("json" or "console")
        VSCHEMA_LOG_FILE: Optional file path for log output
        VSCHEMA_LOG_CONTEXT: Whether to show context ("true" or "false")
    """
    level = os.getenv("VSCHEMA_LOG_LEVEL", "INFO").upper()
    format_type = os.getenv("VSCHEMA_LOG_FORMAT", "console").lower()
    log_file = os.getenv("VSCHEMA_LOG_FILE")
    show_context = os.getenv("VSCHEMA_LOG_CONTEXT", "true").lower() in ("true", "1", "yes")

    configure_logging(
        level=level,
        log_file=log_file,
        json_logs=(format_type == "json"),
        show_context=show_context,
    )


def configure_logging_from_config() -> None:
    """Configure console logging at the level set in the vschema configuration."""
    configure_logging(level=get_config().log_level)


def get_logger(name: str | None = None) -> Any:
    """
    Get a logger instance.

    Args:
        name: Optional logger name (bound as "module")

    Returns:
        Configured loguru logger
    """
    if name:
        return logger.bind(module=name)
    return logger


def bind_migration_context(schema: str, from_version: Any, to_version: Any) -> Any:
    """
    Bind step context to a logger.

    Args:
        schema: Schema name
        from_version: Version the step starts from
        to_version: Version the step moves to

    Returns:
        Logger with bound context
    """
    return logger.bind(schema=schema, from_version=str(from_version), to_version=str(to_version))


@contextmanager
def migration_logging_context(
    schema: str, from_version: Any, to_version: Any
) -> Generator[None, None, None]:
    """Bind step context to every log line emitted within scope.

    Example:
        with migration_logging_context("MyApp", "0.001", "0.002"):
            logger.info("Applying step")  # includes schema and step versions
    """
    with logger.contextualize(
        schema=schema, from_version=str(from_version), to_version=str(to_version)
    ):
        yield
