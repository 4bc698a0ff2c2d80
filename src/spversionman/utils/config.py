"""Configuration utilities for spversionman."""

import copy
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from rich.console import Console

from ..errors import ConfigurationError
from .logging_config import LogLevel

console = Console()

CONFIG_DIR = Path.home() / ".spversionman"
CONFIG_FILE_NAME = "config.yaml"

# Environment overrides, applied on read
ENV_OVERRIDES = {
    "SPVERSIONMAN_TENANT": "tenant.name",
    "SPVERSIONMAN_ADMIN_URL": "tenant.admin_url",
    "SPVERSIONMAN_MAX_ATTEMPTS": "retry.max_attempts",
    "SPVERSIONMAN_BASE_DELAY": "retry.base_delay_seconds",
    "SPVERSIONMAN_LOG_LEVEL": "logging.level",
}

DEFAULT_CONFIG: Dict[str, Any] = {
    "tenant": {
        "name": None,
        "admin_url": None,
    },
    "auth": {
        "access_token": None,
        "interactive": True,
    },
    "api": {
        "timeout_seconds": 60,
    },
    "retry": {
        "max_attempts": 5,
        "base_delay_seconds": 30,
    },
    "logging": {
        "level": "INFO",
        "log_directory": "~/.spversionman/logs",
        "log_filename": "spversionman.log",
        "enable_file_logging": True,
        "enable_console_logging": False,
        "max_file_size_mb": 10,
        "backup_count": 5,
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two dictionaries, values in ``override`` win."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _coerce(value: str) -> Any:
    """Turn a command-line or environment string into a YAML scalar."""
    try:
        return yaml.safe_load(value)
    except yaml.YAMLError:
        return value


class Config:
    """Manages spversionman configuration stored as YAML."""

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize the configuration manager.

        Args:
            config_dir: Directory holding config.yaml, defaults to ~/.spversionman
        """
        self.config_dir = config_dir or CONFIG_DIR
        self.config_file = self.config_dir / CONFIG_FILE_NAME
        self.config_data: Dict[str, Any] = {}
        self._config_loaded = False

    def _ensure_config_loaded(self):
        """Ensure configuration is loaded from file."""
        if not self._config_loaded:
            self._load_config()
            self._config_loaded = True

    def reload_config(self):
        """Force reload configuration from file."""
        self._config_loaded = False
        self._ensure_config_loaded()

    def _load_config(self):
        """Load the configuration file, if present."""
        if not self.config_file.exists():
            self.config_data = {}
            return

        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Configuration file {self.config_file} is not valid YAML: {e}"
            ) from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file {self.config_file} must be a mapping")
        self.config_data = data

    def save_config(self):
        """Save the configuration to the YAML file."""
        if not self.config_dir.exists():
            self.config_dir.mkdir(parents=True)
            console.print(f"Created configuration directory: {self.config_dir}")
        with open(self.config_file, "w", encoding="utf-8") as f:
            yaml.dump(self.config_data, f, default_flow_style=False, indent=2, sort_keys=False)

    def get_all(self) -> Dict[str, Any]:
        """Return defaults merged with the file and environment overrides."""
        self._ensure_config_loaded()
        merged = _deep_merge(DEFAULT_CONFIG, self.config_data)
        for env_var, key in ENV_OVERRIDES.items():
            value = os.environ.get(env_var)
            if value is not None:
                self._set_path(merged, key, _coerce(value))
        return merged

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value with dot notation support.

        Args:
            key: Configuration key, e.g. "retry.max_attempts"
            default: Default value if key doesn't exist

        Returns:
            Configuration value
        """
        value: Any = self.get_all()
        for part in key.split("."):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default
        return default if value is None else value

    def set(self, key: str, value: Any):
        """
        Set a configuration value and save it.

        Args:
            key: Configuration key, dot notation allowed
            value: Configuration value; strings are parsed as YAML scalars
        """
        self._ensure_config_loaded()
        if isinstance(value, str):
            value = _coerce(value)
        self._set_path(self.config_data, key, value)
        self.save_config()

    def delete(self, key: str):
        """Remove a key from the file, restoring its default."""
        self._ensure_config_loaded()
        parts = key.split(".")
        node = self.config_data
        for part in parts[:-1]:
            node = node.get(part)
            if not isinstance(node, dict):
                return
        if parts[-1] in node:
            del node[parts[-1]]
            self.save_config()

    @staticmethod
    def _set_path(data: Dict[str, Any], key: str, value: Any):
        parts = key.split(".")
        node = data
        for part in parts[:-1]:
            if not isinstance(node.get(part), dict):
                node[part] = {}
            node = node[part]
        node[parts[-1]] = value

    def get_tenant_config(self) -> Dict[str, Any]:
        return self.get_all()["tenant"]

    def get_retry_config(self) -> Dict[str, Any]:
        return self.get_all()["retry"]

    def get_logging_config(self) -> Dict[str, Any]:
        return self.get_all()["logging"]

    def validate(self) -> List[str]:
        """
        Validate the effective configuration.

        Returns:
            List of error messages, empty when valid
        """
        errors = []
        config = self.get_all()

        admin_url = config["tenant"].get("admin_url")
        if admin_url and not str(admin_url).startswith("https://"):
            errors.append("tenant.admin_url must start with https://")

        retry = config["retry"]
        if not isinstance(retry.get("max_attempts"), int) or retry["max_attempts"] < 1:
            errors.append("retry.max_attempts must be a positive integer")
        if not isinstance(retry.get("base_delay_seconds"), (int, float)) or (
            retry["base_delay_seconds"] < 0
        ):
            errors.append("retry.base_delay_seconds must be a non-negative number")

        timeout = config["api"].get("timeout_seconds")
        if not isinstance(timeout, (int, float)) or timeout <= 0:
            errors.append("api.timeout_seconds must be a positive number")

        level = config["logging"].get("level")
        levels = [item.value for item in LogLevel]
        if level is not None and str(level).upper() not in levels:
            errors.append(f"logging.level must be one of {', '.join(levels)}")

        return errors

    def get_config_file_path(self) -> Path:
        return self.config_file
