"""Utility modules for spversionman."""

from .config import Config
from .logging_config import LoggingConfig, LoggingManager, setup_logging

__all__ = ["Config", "LoggingConfig", "LoggingManager", "setup_logging"]
