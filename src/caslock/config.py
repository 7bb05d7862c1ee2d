"""Configuration for lock managers and the Cassandra row store."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from caslock.exceptions import ConfigurationError
from caslock.logging import LoggerConfigError, LoggingConfig, configure_logging
from caslock.logging.logger_setup import validate_log_level

DEFAULT_LOCK_COLUMN = "[lock]"
DEFAULT_RETRY_INTERVAL = 0.5


@dataclass
class LockConfig:
    """Settings shared by every lock created with this configuration."""

    lock_column: str = DEFAULT_LOCK_COLUMN
    retry_interval: float = DEFAULT_RETRY_INTERVAL
    sort_row_keys: bool = False
    logger: logging.Logger | None = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.lock_column or not self.lock_column.strip():
            error_msg = "Required field 'lock_column' cannot be empty"
            raise ConfigurationError(error_msg)
        if self.retry_interval < 0:
            error_msg = f"retry_interval must not be negative, got {self.retry_interval}"
            raise ConfigurationError(error_msg)


@dataclass
class CassandraConfig:
    """Connection settings for the Cassandra row store."""

    contact_points: list[str] = field(default_factory=lambda: ["127.0.0.1"])
    port: int = 9042
    username: str | None = None
    password: str | None = None
    key_column: str = "id"
    connect_timeout: float = 10.0

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.contact_points:
            error_msg = "At least one contact point is required"
            raise ConfigurationError(error_msg)
        if (self.username is None) != (self.password is None):
            error_msg = "username and password must be set together"
            raise ConfigurationError(error_msg)
        if not self.key_column.strip():
            error_msg = "Required field 'key_column' cannot be empty"
            raise ConfigurationError(error_msg)


@dataclass
class CaslockSettings:
    """Settings loaded from a configuration file."""

    lock: LockConfig
    cassandra: CassandraConfig


class ConfigManager:
    """Loads caslock settings from YAML or JSON files."""

    @staticmethod
    def load_config(config_path: Path) -> CaslockSettings:
        """Load and validate settings from a configuration file.

        The file may contain ``lock``, ``cassandra`` and ``logging`` sections,
        all optional. When ``logging`` is present, logging is configured and
        the resulting logger becomes the lock diagnostic sink.

        Args:
            config_path: Path to the configuration file

        Returns:
            Validated CaslockSettings instance

        Raises:
            ConfigurationError: If the file cannot be loaded or is invalid

        """
        try:
            with Path(config_path).open(encoding="utf-8") as f:
                config_data = yaml.safe_load(f)
        except FileNotFoundError as e:
            error_msg = f"Configuration file not found: {config_path}"
            raise ConfigurationError(error_msg, original_error=e) from e
        except yaml.YAMLError as e:
            error_msg = f"Invalid configuration file format: {e}"
            raise ConfigurationError(error_msg, original_error=e) from e
        except OSError as e:
            error_msg = f"Error loading configuration: {e}"
            raise ConfigurationError(error_msg, original_error=e) from e

        if config_data is None:
            config_data = {}
        if not isinstance(config_data, dict):
            error_msg = "Configuration file must contain a mapping"
            raise ConfigurationError(error_msg)

        lock_data = ConfigManager._section(config_data, "lock")
        cassandra_data = ConfigManager._section(config_data, "cassandra")
        logging_data = config_data.get("logging")

        try:
            logger = None
            if logging_data is not None:
                logger = ConfigManager._configure_logging(logging_data)

            lock_config = LockConfig(
                lock_column=str(lock_data.get("lock_column", DEFAULT_LOCK_COLUMN)),
                retry_interval=float(lock_data.get("retry_interval", DEFAULT_RETRY_INTERVAL)),
                sort_row_keys=ConfigManager._flag(lock_data, "sort_row_keys"),
                logger=logger,
            )
            cassandra_config = CassandraConfig(
                contact_points=list(cassandra_data.get("contact_points", ["127.0.0.1"])),
                port=int(cassandra_data.get("port", 9042)),
                username=cassandra_data.get("username"),
                password=cassandra_data.get("password"),
                key_column=str(cassandra_data.get("key_column", "id")),
                connect_timeout=float(cassandra_data.get("connect_timeout", 10.0)),
            )

        except ConfigurationError:
            raise
        except (TypeError, ValueError, LoggerConfigError) as e:
            error_msg = f"Configuration validation failed: {e}"
            raise ConfigurationError(error_msg, original_error=e) from e

        return CaslockSettings(lock=lock_config, cassandra=cassandra_config)

    @staticmethod
    def _section(config_data: dict[str, Any], name: str) -> dict[str, Any]:
        section = config_data.get(name) or {}
        if not isinstance(section, dict):
            error_msg = f"Configuration section '{name}' must be a mapping"
            raise ConfigurationError(error_msg)
        return section

    @staticmethod
    def _flag(section: dict[str, Any], name: str, default: bool = False) -> bool:
        value = section.get(name, default)
        if not isinstance(value, bool):
            error_msg = f"Field '{name}' must be true or false, got {value!r}"
            raise ConfigurationError(error_msg)
        return value

    @staticmethod
    def _configure_logging(logging_data: dict[str, Any]) -> logging.Logger:
        if not isinstance(logging_data, dict):
            error_msg = "Configuration section 'logging' must be a mapping"
            raise ConfigurationError(error_msg)
        log_file = logging_data.get("log_file")
        config = LoggingConfig(
            log_name=str(logging_data.get("log_name", "caslock")),
            log_level=str(logging_data.get("log_level", "INFO")),
            log_file=Path(log_file) if log_file else None,
            enable_console=ConfigManager._flag(logging_data, "enable_console", default=True),
        )
        # configure_logging falls back silently on a bad level, so check it here
        validate_log_level(config.log_level)
        return configure_logging(config)

    @staticmethod
    def get_default_config() -> dict[str, Any]:
        """Get a template configuration dictionary."""
        return {
            "lock": {
                "lock_column": DEFAULT_LOCK_COLUMN,
                "retry_interval": DEFAULT_RETRY_INTERVAL,
                "sort_row_keys": False,
            },
            "cassandra": {
                "contact_points": ["127.0.0.1"],
                "port": 9042,
                "username": None,
                "password": None,
                "key_column": "id",
                "connect_timeout": 10.0,
            },
            "logging": {
                "log_level": "INFO",
                "log_file": None,
                "enable_console": True,
            },
        }
