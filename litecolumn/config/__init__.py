"""
Configuration management for litecolumn.

This module loads connection defaults (timeout, read-only mode, pragmas)
from TOML files.
"""

from __future__ import annotations

import logging
import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

# Path to the config directory
CONFIG_DIR = Path(__file__).parent

_PRAGMA_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass
class DatabaseConfig:
    """Loaded connection configuration."""

    timeout: float = 5.0
    readonly: bool = False
    pragmas: dict[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Reject pragma names that cannot be spliced into a PRAGMA statement."""
        for name in self.pragmas:
            if not _PRAGMA_NAME.match(name):
                raise ValueError(f"Invalid pragma name: {name!r}")

    def pragma_statements(self) -> list[str]:
        """
        Render the configured pragmas as SQL.

        Returns:
            One `PRAGMA name = value;` statement per entry, in file order.
        """
        statements = []
        for name, value in self.pragmas.items():
            if isinstance(value, bool):
                rendered = "ON" if value else "OFF"
            else:
                rendered = str(value)
            statements.append(f"PRAGMA {name} = {rendered};")
        return statements


def load_database_config(config_path: Path | None = None) -> DatabaseConfig:
    """
    Load connection configuration from a TOML file.

    Args:
        config_path: Path to database.toml. If None, uses default location.

    Returns:
        Loaded DatabaseConfig instance.
    """
    if config_path is None:
        config_path = CONFIG_DIR / "database.toml"

    logger.debug("Loading database config from %s", config_path)

    with config_path.open("rb") as f:
        data = tomllib.load(f)

    connection = data.get("connection", {})
    return DatabaseConfig(
        timeout=float(connection.get("timeout", 5.0)),
        readonly=bool(connection.get("readonly", False)),
        pragmas=dict(data.get("pragmas", {})),
    )


# Global singleton instance (lazy loaded)
_database_config: DatabaseConfig | None = None


def get_database_config() -> DatabaseConfig:
    """
    Get the global database configuration (lazy loaded singleton).

    Returns:
        The DatabaseConfig instance.
    """
    global _database_config

    if _database_config is None:
        _database_config = load_database_config()

    return _database_config


def reload_database_config(config_path: Path | None = None) -> DatabaseConfig:
    """
    Force reload of database configuration.

    Returns:
        The newly loaded DatabaseConfig instance.
    """
    global _database_config
    _database_config = load_database_config(config_path)
    return _database_config
