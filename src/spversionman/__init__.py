"""SharePoint version history manager - a CLI tool for managing version limits across sites."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("spversionman")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = ["__version__"]
