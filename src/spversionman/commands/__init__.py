"""Command modules for spversionman."""

from . import cleanup, config, policy, sites, tenant

__all__ = [
    "config",
    "policy",
    "cleanup",
    "tenant",
    "sites",
]
