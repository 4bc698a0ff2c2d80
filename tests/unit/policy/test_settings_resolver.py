"""Tests for PolicySettingsResolver."""

from unittest.mock import Mock

import pytest

from spversionman.errors import (
    AmbiguousSourceError,
    InvalidBoundError,
    MissingSourceError,
    ValidationError,
)
from spversionman.policy.models import (
    BatchDeleteSpec,
    DeleteMode,
    PolicyScope,
    TenantVersionConfig,
    VersionPolicy,
)
from spversionman.policy.prompts import Prompter
from spversionman.policy.resolver import (
    DeletePreference,
    PolicySettingsResolver,
    SettingsSource,
)


class ScriptedPrompter(Prompter):
    """Prompter that replays canned answers."""

    def __init__(self, ints=None, choices=None):
        self.ints = list(ints or [])
        self.choices = list(choices or [])
        self.warnings = []

    def ask_int(self, message, allow_blank=False):
        answer = self.ints.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer

    def choose(self, message, choices):
        answer = self.choices.pop(0)
        if isinstance(answer, Exception):
            raise answer
        assert answer in choices
        return answer

    def warn(self, message):
        self.warnings.append(message)


def _loader(**kwargs):
    return Mock(return_value=TenantVersionConfig(**kwargs))


class TestResolveVersionPolicy:
    """Test cases for version policy resolution."""

    def test_automatic(self):
        resolver = PolicySettingsResolver()

        assert resolver.resolve_version_policy(SettingsSource.AUTOMATIC) == VersionPolicy.automatic()

    def test_custom_values(self):
        resolver = PolicySettingsResolver()

        policy = resolver.resolve_version_policy(
            SettingsSource.CUSTOM, major_version_limit=250, expire_after_days=60
        )

        assert policy == VersionPolicy.manual(250, 60)

    def test_custom_values_out_of_bounds(self):
        resolver = PolicySettingsResolver()

        with pytest.raises(InvalidBoundError):
            resolver.resolve_version_policy(SettingsSource.CUSTOM, major_version_limit=99)
        with pytest.raises(InvalidBoundError):
            resolver.resolve_version_policy(
                SettingsSource.CUSTOM, major_version_limit=100, expire_after_days=29
            )

    def test_custom_tenant_scope_clamps_expiry(self):
        resolver = PolicySettingsResolver()

        policy = resolver.resolve_version_policy(
            SettingsSource.CUSTOM,
            scope=PolicyScope.TENANT,
            major_version_limit=100,
            expire_after_days=10,
        )

        assert policy.expire_after_days == 30

    def test_tenant_defaults_manual(self):
        loader = _loader(auto_expiration=False, major_version_limit=500, expire_after_days=90)
        resolver = PolicySettingsResolver(tenant_config_loader=loader)

        policy = resolver.resolve_version_policy(SettingsSource.TENANT_DEFAULTS)

        assert policy == VersionPolicy.manual(500, 90)

    def test_tenant_defaults_automatic(self):
        resolver = PolicySettingsResolver(tenant_config_loader=_loader(auto_expiration=True))

        assert resolver.resolve_version_policy(SettingsSource.TENANT_DEFAULTS).is_automatic

    def test_tenant_defaults_without_limit(self):
        resolver = PolicySettingsResolver(tenant_config_loader=_loader(auto_expiration=False))

        with pytest.raises(MissingSourceError):
            resolver.resolve_version_policy(SettingsSource.TENANT_DEFAULTS)

    def test_tenant_defaults_not_for_tenant_scope(self):
        resolver = PolicySettingsResolver(tenant_config_loader=_loader(auto_expiration=True))

        with pytest.raises(ValidationError):
            resolver.resolve_version_policy(SettingsSource.TENANT_DEFAULTS, PolicyScope.TENANT)

    def test_tenant_settings_read_once(self):
        loader = _loader(auto_expiration=False, major_version_limit=500)
        resolver = PolicySettingsResolver(tenant_config_loader=loader)

        resolver.resolve_version_policy(SettingsSource.TENANT_DEFAULTS)
        resolver.resolve_delete_spec(SettingsSource.TENANT_DEFAULTS)

        loader.assert_called_once()

    def test_interactive_reprompts_until_valid(self):
        prompter = ScriptedPrompter(ints=[50, 150, 10, 45])
        resolver = PolicySettingsResolver(prompter=prompter)

        policy = resolver.resolve_version_policy(SettingsSource.CUSTOM)

        assert policy == VersionPolicy.manual(150, 45)
        assert len(prompter.warnings) == 2

    def test_interactive_blank_expiry_means_never(self):
        resolver = PolicySettingsResolver(prompter=ScriptedPrompter(ints=[100, None]))

        assert resolver.resolve_version_policy(SettingsSource.CUSTOM).expire_after_days is None

    def test_interactive_abandoned(self):
        prompter = ScriptedPrompter(ints=[MissingSourceError("cancelled")])
        resolver = PolicySettingsResolver(prompter=prompter)

        with pytest.raises(MissingSourceError):
            resolver.resolve_version_policy(SettingsSource.CUSTOM)

    def test_custom_without_values_or_prompter(self):
        with pytest.raises(MissingSourceError):
            PolicySettingsResolver().resolve_version_policy(SettingsSource.CUSTOM)


class TestResolveDeleteSpec:
    """Test cases for batch delete resolution."""

    def test_automatic(self):
        spec = PolicySettingsResolver().resolve_delete_spec(SettingsSource.AUTOMATIC)

        assert spec == BatchDeleteSpec.automatic()

    def test_custom_both_thresholds_ambiguous(self):
        with pytest.raises(AmbiguousSourceError):
            PolicySettingsResolver().resolve_delete_spec(
                SettingsSource.CUSTOM, older_than_days=60, keep_versions=200
            )

    def test_custom_single_threshold(self):
        spec = PolicySettingsResolver().resolve_delete_spec(
            SettingsSource.CUSTOM, keep_versions=200
        )

        assert spec == BatchDeleteSpec.by_count(200)

    def test_tenant_single_limit(self):
        resolver = PolicySettingsResolver(
            tenant_config_loader=_loader(auto_expiration=False, expire_after_days=120)
        )

        assert resolver.resolve_delete_spec(SettingsSource.TENANT_DEFAULTS) == BatchDeleteSpec.by_age(
            120
        )

    def test_tenant_both_limits_with_preference(self):
        loader = _loader(auto_expiration=False, major_version_limit=300, expire_after_days=90)
        resolver = PolicySettingsResolver(tenant_config_loader=loader)

        spec = resolver.resolve_delete_spec(
            SettingsSource.TENANT_DEFAULTS, preference=DeletePreference.AGE
        )

        assert spec == BatchDeleteSpec.by_age(90)

    def test_tenant_both_limits_prompted(self):
        loader = _loader(auto_expiration=False, major_version_limit=300, expire_after_days=90)
        resolver = PolicySettingsResolver(
            tenant_config_loader=loader, prompter=ScriptedPrompter(choices=["count"])
        )

        spec = resolver.resolve_delete_spec(SettingsSource.TENANT_DEFAULTS)

        assert spec == BatchDeleteSpec.by_count(300)

    def test_tenant_both_limits_without_choice(self):
        loader = _loader(auto_expiration=False, major_version_limit=300, expire_after_days=90)
        resolver = PolicySettingsResolver(tenant_config_loader=loader)

        with pytest.raises(AmbiguousSourceError) as exc_info:
            resolver.resolve_delete_spec(SettingsSource.TENANT_DEFAULTS)

        assert "--delete-by" in exc_info.value.message

    def test_tenant_both_limits_choice_cancelled(self):
        """Abandoning the choice points at the option that avoids it."""
        loader = _loader(auto_expiration=False, major_version_limit=300, expire_after_days=90)
        resolver = PolicySettingsResolver(
            tenant_config_loader=loader,
            prompter=ScriptedPrompter(choices=[MissingSourceError("Settings entry was cancelled")]),
        )

        with pytest.raises(AmbiguousSourceError) as exc_info:
            resolver.resolve_delete_spec(SettingsSource.TENANT_DEFAULTS)

        assert "--delete-by" in exc_info.value.message

    def test_tenant_without_limits(self):
        resolver = PolicySettingsResolver(tenant_config_loader=_loader(auto_expiration=False))

        with pytest.raises(MissingSourceError):
            resolver.resolve_delete_spec(SettingsSource.TENANT_DEFAULTS)

    def test_interactive_by_count(self):
        prompter = ScriptedPrompter(ints=[20, 120], choices=["count"])
        resolver = PolicySettingsResolver(prompter=prompter)

        spec = resolver.resolve_delete_spec(SettingsSource.CUSTOM)

        assert spec.mode == DeleteMode.BY_COUNT
        assert spec.keep_versions == 120
        assert prompter.warnings
