"""
Observability for vschema.

Logging:
    - configure_logging(): Configure loguru-based logging
    - configure_logging_from_env(): Configure from environment variables
    - configure_logging_from_config(): Configure from the vschema configuration
    - get_logger(): Get a logger instance
    - bind_migration_context(): Bind step context to a logger
    - migration_logging_context(): Context manager for step logging
"""

from vschema.observability.logging import (
    bind_migration_context,
    configure_logging,
    configure_logging_from_config,
    configure_logging_from_env,
    get_logger,
    migration_logging_context,
)

__all__ = [
    "configure_logging",
    "configure_logging_from_env",
    "configure_logging_from_config",
    "get_logger",
    "bind_migration_context",
    "migration_logging_context",
]
