"""
Version Policy Module

This module provides the version-retention settings models, the job status
projection and the resolver that turns an operator's chosen source into one
validated setting.
"""

from .jobs import JobKind, JobState, JobStatus
from .models import (
    BatchDeleteSpec,
    DeleteMode,
    PolicyScope,
    TenantVersionConfig,
    VersionPolicy,
    VersionPolicyMode,
)
from .prompts import ConsolePrompter, Prompter
from .resolver import DeletePreference, PolicySettingsResolver, SettingsSource

__all__ = [
    "PolicyScope",
    "VersionPolicyMode",
    "VersionPolicy",
    "DeleteMode",
    "BatchDeleteSpec",
    "TenantVersionConfig",
    "JobKind",
    "JobState",
    "JobStatus",
    "Prompter",
    "ConsolePrompter",
    "SettingsSource",
    "DeletePreference",
    "PolicySettingsResolver",
]
