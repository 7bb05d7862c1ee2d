"""Tests for the config module."""

import json
import logging
import tempfile
from pathlib import Path

import pytest

from caslock.config import CassandraConfig, ConfigManager, LockConfig
from caslock.exceptions import ConfigurationError


class TestLockConfig:
    """Test cases for LockConfig validation."""

    def test_defaults(self) -> None:
        """Test the default lock settings."""
        config = LockConfig()

        assert config.lock_column == "[lock]"
        assert config.retry_interval == 0.5
        assert config.sort_row_keys is False
        assert config.logger is None

    def test_empty_lock_column(self) -> None:
        """Test that the marker column name cannot be blank."""
        with pytest.raises(ConfigurationError, match="lock_column"):
            LockConfig(lock_column="  ")

    def test_negative_retry_interval(self) -> None:
        """Test that the retry interval cannot be negative."""
        with pytest.raises(ConfigurationError, match="retry_interval"):
            LockConfig(retry_interval=-0.1)

    def test_zero_retry_interval_allowed(self) -> None:
        """Test that polling without delay is allowed."""
        assert LockConfig(retry_interval=0).retry_interval == 0


class TestCassandraConfig:
    """Test cases for CassandraConfig validation."""

    def test_defaults(self) -> None:
        """Test the default connection settings."""
        config = CassandraConfig()

        assert config.contact_points == ["127.0.0.1"]
        assert config.port == 9042
        assert config.key_column == "id"

    def test_no_contact_points(self) -> None:
        """Test that at least one contact point is required."""
        with pytest.raises(ConfigurationError, match="contact point"):
            CassandraConfig(contact_points=[])

    def test_username_without_password(self) -> None:
        """Test that credentials must be complete."""
        with pytest.raises(ConfigurationError, match="username and password"):
            CassandraConfig(username="user")


class TestConfigManager:
    """Test cases for ConfigManager functionality."""

    def test_load_config_from_yaml(self) -> None:
        """Test loading a complete YAML configuration."""
        with tempfile.TemporaryDirectory() as temp_dir:
            config_file = Path(temp_dir) / "caslock.yaml"
            config_file.write_text(
                "lock:\n"
                "  lock_column: owner\n"
                "  retry_interval: 0.1\n"
                "  sort_row_keys: true\n"
                "cassandra:\n"
                "  contact_points: [10.0.0.1, 10.0.0.2]\n"
                "  port: 9142\n"
                "  username: user\n"
                "  password: secret\n"
                "  key_column: pk\n",
            )

            settings = ConfigManager.load_config(config_file)

            assert settings.lock.lock_column == "owner"
            assert settings.lock.retry_interval == 0.1
            assert settings.lock.sort_row_keys is True
            assert settings.lock.logger is None
            assert settings.cassandra.contact_points == ["10.0.0.1", "10.0.0.2"]
            assert settings.cassandra.port == 9142
            assert settings.cassandra.username == "user"
            assert settings.cassandra.key_column == "pk"

    def test_load_config_from_json(self) -> None:
        """Test loading a JSON configuration."""
        with tempfile.TemporaryDirectory() as temp_dir:
            config_file = Path(temp_dir) / "caslock.json"
            config_file.write_text(json.dumps({"lock": {"retry_interval": 2}}))

            settings = ConfigManager.load_config(config_file)

            assert settings.lock.retry_interval == 2.0
            assert settings.cassandra.port == 9042

    def test_load_empty_config(self) -> None:
        """Test that an empty file yields default settings."""
        with tempfile.TemporaryDirectory() as temp_dir:
            config_file = Path(temp_dir) / "caslock.yaml"
            config_file.write_text("")

            settings = ConfigManager.load_config(config_file)

            assert settings.lock == LockConfig()
            assert settings.cassandra == CassandraConfig()

    def test_load_config_file_not_found(self) -> None:
        """Test that ConfigurationError is raised when the file is missing."""
        with pytest.raises(ConfigurationError, match="Configuration file not found"):
            ConfigManager.load_config(Path("/nonexistent/caslock.yaml"))

    def test_load_config_invalid_yaml(self) -> None:
        """Test that ConfigurationError is raised for malformed YAML."""
        with tempfile.TemporaryDirectory() as temp_dir:
            config_file = Path(temp_dir) / "caslock.yaml"
            config_file.write_text("lock: [unclosed")

            with pytest.raises(ConfigurationError, match="Invalid configuration file format"):
                ConfigManager.load_config(config_file)

    def test_load_config_not_a_mapping(self) -> None:
        """Test that the top level must be a mapping."""
        with tempfile.TemporaryDirectory() as temp_dir:
            config_file = Path(temp_dir) / "caslock.yaml"
            config_file.write_text("- lock\n- cassandra\n")

            with pytest.raises(ConfigurationError, match="must contain a mapping"):
                ConfigManager.load_config(config_file)

    def test_load_config_section_not_a_mapping(self) -> None:
        """Test that sections must be mappings."""
        with tempfile.TemporaryDirectory() as temp_dir:
            config_file = Path(temp_dir) / "caslock.yaml"
            config_file.write_text("lock: fast\n")

            with pytest.raises(ConfigurationError, match="section 'lock'"):
                ConfigManager.load_config(config_file)

    def test_load_config_invalid_value(self) -> None:
        """Test that unparsable values raise ConfigurationError."""
        with tempfile.TemporaryDirectory() as temp_dir:
            config_file = Path(temp_dir) / "caslock.yaml"
            config_file.write_text("lock:\n  retry_interval: soon\n")

            with pytest.raises(ConfigurationError, match="Configuration validation failed"):
                ConfigManager.load_config(config_file)

    def test_load_config_invalid_field(self) -> None:
        """Test that field validation errors are raised unchanged."""
        with tempfile.TemporaryDirectory() as temp_dir:
            config_file = Path(temp_dir) / "caslock.yaml"
            config_file.write_text("lock:\n  retry_interval: -1\n")

            with pytest.raises(ConfigurationError, match="must not be negative"):
                ConfigManager.load_config(config_file)

    def test_load_config_quoted_boolean(self) -> None:
        """Test that a quoted "false" is not read as a true flag."""
        with tempfile.TemporaryDirectory() as temp_dir:
            config_file = Path(temp_dir) / "caslock.yaml"
            config_file.write_text('lock:\n  sort_row_keys: "false"\n')

            with pytest.raises(ConfigurationError, match="'sort_row_keys' must be true or false"):
                ConfigManager.load_config(config_file)

    def test_load_config_non_boolean_console_flag(self) -> None:
        """Test that enable_console also requires a real boolean."""
        with tempfile.TemporaryDirectory() as temp_dir:
            config_file = Path(temp_dir) / "caslock.yaml"
            config_file.write_text("logging:\n  enable_console: 0\n")

            with pytest.raises(ConfigurationError, match="'enable_console' must be true or false"):
                ConfigManager.load_config(config_file)

    def test_load_config_with_logging(self) -> None:
        """Test that a logging section installs the diagnostic sink."""
        with tempfile.TemporaryDirectory() as temp_dir:
            config_file = Path(temp_dir) / "caslock.yaml"
            log_file = Path(temp_dir) / "logs" / "caslock.log"
            config_file.write_text(
                "logging:\n"
                "  log_name: caslock_config_test\n"
                "  log_level: DEBUG\n"
                f"  log_file: {log_file}\n"
                "  enable_console: false\n",
            )

            settings = ConfigManager.load_config(config_file)

            logger = settings.lock.logger
            assert isinstance(logger, logging.Logger)
            assert logger.name == "caslock_config_test"
            assert logger.level == logging.DEBUG
            assert log_file.parent.is_dir()

            for handler in logger.handlers:
                handler.close()

    def test_load_config_invalid_log_level(self) -> None:
        """Test that an unknown log level is rejected."""
        with tempfile.TemporaryDirectory() as temp_dir:
            config_file = Path(temp_dir) / "caslock.yaml"
            config_file.write_text("logging:\n  log_level: LOUD\n")

            with pytest.raises(ConfigurationError, match="Invalid log level"):
                ConfigManager.load_config(config_file)

    def test_get_default_config_is_loadable(self) -> None:
        """Test that the template configuration loads cleanly."""
        template = ConfigManager.get_default_config()
        del template["logging"]

        with tempfile.TemporaryDirectory() as temp_dir:
            config_file = Path(temp_dir) / "caslock.json"
            config_file.write_text(json.dumps(template))

            settings = ConfigManager.load_config(config_file)

        assert settings.lock == LockConfig()
        assert settings.cassandra == CassandraConfig()
