"""Logging configuration for spversionman.

Every batch, retry and resolver event is logged under the ``spversionman``
logger. The file handler writes one JSON object per line so a run can be
audited afterwards; structured fields passed through ``extra`` are kept.
"""

import json
import logging
import logging.handlers
import re
import sys
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..errors import ConfigurationError

ROOT_LOGGER_NAME = "spversionman"


class LogLevel(str, Enum):
    """Log levels for configuration."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class LoggingConfig:
    """Configuration for logging system."""

    level: LogLevel = LogLevel.INFO
    enable_file_logging: bool = True
    enable_console_logging: bool = False
    log_directory: str = "~/.spversionman/logs"
    log_filename: str = "spversionman.log"
    max_file_size_mb: int = 10
    backup_count: int = 5
    log_http_requests: bool = False
    sensitive_data_patterns: List[str] = field(
        default_factory=lambda: [
            r"(?i)(bearer\s+)[A-Za-z0-9\-._~+/]+=*",
            r"(?i)(access_token[\"']?\s*[:=]\s*[\"']?)[^\s\"',]+",
        ]
    )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingConfig":
        """Build from the ``logging`` section of the configuration file."""
        config = cls()
        for key, value in data.items():
            if key == "level" and value is not None:
                try:
                    config.level = LogLevel(str(value).upper())
                except ValueError:
                    raise ConfigurationError(
                        f"Invalid log level '{value}'; use one of "
                        + ", ".join(level.value for level in LogLevel)
                    ) from None
            elif hasattr(config, key) and value is not None:
                setattr(config, key, value)
        return config


class SensitiveDataFilter(logging.Filter):
    """Filter to redact tokens from log messages."""

    def __init__(self, patterns: List[str]) -> None:
        """
        Initialize the filter with sensitive data patterns.

        Args:
            patterns: Regex patterns; group 1, when present, is kept as a prefix
        """
        super().__init__()
        self.compiled_patterns = [re.compile(pattern) for pattern in patterns]

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = self.redact(record.msg)
        if record.args:
            if isinstance(record.args, dict):
                record.args = {
                    key: self.redact(value) if isinstance(value, str) else value
                    for key, value in record.args.items()
                }
            else:
                record.args = tuple(
                    self.redact(arg) if isinstance(arg, str) else arg for arg in record.args
                )
        return True

    def redact(self, text: str) -> str:
        for pattern in self.compiled_patterns:
            if pattern.groups:
                text = pattern.sub(lambda m: m.group(1) + "[REDACTED]", text)
            else:
                text = pattern.sub("[REDACTED]", text)
        return text


class StructuredFormatter(logging.Formatter):
    """Formats log records as JSON lines."""

    STANDARD_ATTRS = {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "message",
        "exc_info",
        "exc_text",
        "stack_info",
        "taskName",
    }

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra_data = {}
        for key, value in record.__dict__.items():
            if key not in self.STANDARD_ATTRS and not key.startswith("_"):
                try:
                    json.dumps(value)
                    extra_data[key] = value
                except (TypeError, ValueError):
                    extra_data[key] = str(value)
        if extra_data:
            log_data["extra"] = extra_data

        return json.dumps(log_data, default=str)


class LoggingManager:
    """Sets up handlers for the spversionman logger tree."""

    def __init__(self, config: Optional[LoggingConfig] = None):
        self.config = config or LoggingConfig()
        self._handlers_configured = False

    @property
    def log_file(self) -> Path:
        return Path(self.config.log_directory).expanduser() / self.config.log_filename

    def setup_logging(self) -> logging.Logger:
        """Configure handlers once and return the root spversionman logger."""
        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        if self._handlers_configured:
            return root_logger

        root_logger.setLevel(getattr(logging, self.config.level.value))
        root_logger.handlers.clear()
        root_logger.propagate = False

        if self.config.enable_console_logging:
            root_logger.addHandler(self._create_console_handler())

        if self.config.enable_file_logging:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            root_logger.addHandler(self._create_file_handler())

        if not root_logger.handlers:
            root_logger.addHandler(logging.NullHandler())

        http_level = logging.DEBUG if self.config.log_http_requests else logging.WARNING
        for name in ("httpx", "httpcore"):
            logging.getLogger(name).setLevel(http_level)

        self._handlers_configured = True
        return root_logger

    def _create_console_handler(self) -> logging.Handler:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(getattr(logging, self.config.level.value))
        handler.setFormatter(
            logging.Formatter(
                "[%(asctime)s] %(levelname)-8s - %(name)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        handler.addFilter(SensitiveDataFilter(self.config.sensitive_data_patterns))
        return handler

    def _create_file_handler(self) -> logging.Handler:
        handler = logging.handlers.RotatingFileHandler(
            filename=str(self.log_file),
            maxBytes=self.config.max_file_size_mb * 1024 * 1024,
            backupCount=self.config.backup_count,
            encoding="utf-8",
        )
        handler.setLevel(getattr(logging, self.config.level.value))
        handler.setFormatter(StructuredFormatter())
        handler.addFilter(SensitiveDataFilter(self.config.sensitive_data_patterns))
        return handler


def setup_logging(settings: Optional[Dict[str, Any]] = None) -> logging.Logger:
    """Configure logging from the ``logging`` configuration section."""
    config = LoggingConfig.from_dict(settings or {})
    return LoggingManager(config).setup_logging()
