"""
vschema configuration system.

Provides global defaults for database connections, the version table and
version checking.

Configuration is loaded in this priority order:
1. Values set via vschema.configure() (highest priority)
2. Values from vschema.config.yaml in current directory
3. Default values

Usage:
    >>> import vschema
    >>> vschema.configure(
    ...     database_url="postgresql://app@localhost/app",
    ...     strict_version_check=True,
    ... )
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from loguru import logger

CONFIG_FILENAME = "vschema.config.yaml"


def _load_yaml_config() -> Dict[str, Any]:
    """
    Load configuration from vschema.config.yaml in current directory.

    Returns:
        Configuration dictionary, empty dict if file not found
    """
    config_path = Path.cwd() / CONFIG_FILENAME
    if not config_path.exists():
        return {}

    with open(config_path) as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        logger.warning(f"Ignoring {config_path}: expected a mapping")
        return {}
    return config


@dataclass
class VSchemaConfig:
    """
    Global configuration for vschema.

    Attributes:
        database_url: Default database URL for SchemaContext.connect()
        version_table: Name of the table holding the version record
        strict_version_check: Raise instead of warn when the database and
            schema versions differ
        schema_file: Default YAML schema declaration for load_schema_file()
        log_level: Log level applied by configure_logging_from_config()
    """

    database_url: Optional[str] = None
    version_table: str = "schema_versions"
    strict_version_check: bool = False
    schema_file: Optional[str] = None
    log_level: str = "INFO"


def _config_from_yaml() -> VSchemaConfig:
    """Create a VSchemaConfig from YAML file settings."""
    yaml_config = _load_yaml_config()

    if not yaml_config:
        return VSchemaConfig()

    database_config = yaml_config.get("database", {}) or {}
    logging_config = yaml_config.get("logging", {}) or {}

    return VSchemaConfig(
        database_url=database_config.get("url", yaml_config.get("database_url")),
        version_table=database_config.get("version_table", "schema_versions"),
        strict_version_check=bool(yaml_config.get("strict_version_check", False)),
        schema_file=yaml_config.get("schema_file"),
        log_level=str(logging_config.get("level", "INFO")).upper(),
    )


# Global singleton
_config: Optional[VSchemaConfig] = None


def configure(**kwargs: Any) -> None:
    """
    Configure vschema defaults.

    Args:
        database_url: Default database URL
        version_table: Version record table name
        strict_version_check: Raise on database/schema version mismatch
        schema_file: Default schema declaration file
        log_level: Default log level

    Example:
        >>> import vschema
        >>> vschema.configure(database_url="sqlite:///app.db")
    """
    global _config
    if _config is None:
        _config = _config_from_yaml()

    for key, value in kwargs.items():
        if hasattr(_config, key):
            setattr(_config, key, value)
        else:
            valid_keys = [f for f in VSchemaConfig.__dataclass_fields__.keys()]
            raise ValueError(
                f"Unknown config option: {key}. Valid options: {', '.join(valid_keys)}"
            )


def get_config() -> VSchemaConfig:
    """
    Get the current configuration.

    If not yet configured, loads from vschema.config.yaml if present,
    otherwise creates default configuration.

    Returns:
        Current VSchemaConfig instance
    """
    global _config
    if _config is None:
        _config = _config_from_yaml()
    return _config


def reset_config() -> None:
    """
    Reset configuration to defaults.

    Primarily used for testing.
    """
    global _config
    _config = None
