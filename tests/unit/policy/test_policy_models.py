"""Tests for version policy and batch delete models."""

import dataclasses
import logging

import pytest

from spversionman.errors import AmbiguousSourceError, InvalidBoundError, MissingSourceError
from spversionman.policy.models import (
    BatchDeleteSpec,
    DeleteMode,
    PolicyScope,
    TenantVersionConfig,
    VersionPolicy,
    VersionPolicyMode,
)


class TestVersionPolicy:
    """Test cases for VersionPolicy."""

    def test_automatic(self):
        policy = VersionPolicy.automatic()

        assert policy.is_automatic
        assert policy.to_payload() == {"enableAutoExpirationVersionTrim": True}
        assert policy.describe() == "Automatic"

    def test_major_version_limit_minimum(self):
        """99 is rejected and 100 is accepted."""
        with pytest.raises(InvalidBoundError) as exc_info:
            VersionPolicy.manual(99)
        assert exc_info.value.field_name == "major_version_limit"
        assert exc_info.value.minimum == 100

        assert VersionPolicy.manual(100).major_version_limit == 100

    def test_site_expiry_minimum(self):
        """At site scope an expiry of 29 is rejected and 30 accepted."""
        with pytest.raises(InvalidBoundError):
            VersionPolicy.manual(100, 29, PolicyScope.SITE)

        assert VersionPolicy.manual(100, 30, PolicyScope.SITE).expire_after_days == 30

    def test_tenant_expiry_is_clamped(self, caplog):
        """At tenant scope a short expiry is raised to 30 with a warning."""
        caplog.set_level(logging.WARNING, logger="spversionman.policy.models")

        policy = VersionPolicy.manual(100, 10, PolicyScope.TENANT)

        assert policy.expire_after_days == 30
        assert any("below the minimum" in record.getMessage() for record in caplog.records)

    def test_tenant_limit_is_not_clamped(self):
        """Only expiry is clamped; a low version limit is still an error."""
        with pytest.raises(InvalidBoundError):
            VersionPolicy.manual(50, 60, PolicyScope.TENANT)

    def test_never_expire(self):
        """No expiry is sent to the service as zero."""
        policy = VersionPolicy.manual(300)

        assert policy.expire_after_days is None
        assert policy.to_payload() == {
            "enableAutoExpirationVersionTrim": False,
            "majorVersionLimit": 300,
            "expireVersionsAfterDays": 0,
        }
        assert "never expire" in policy.describe()

    def test_from_payload(self):
        policy = VersionPolicy.from_payload(
            {
                "enableAutoExpirationVersionTrim": False,
                "majorVersionLimit": 500,
                "expireVersionsAfterDays": 0,
            }
        )

        assert policy.mode == VersionPolicyMode.MANUAL
        assert policy.major_version_limit == 500
        assert policy.expire_after_days is None

    def test_is_immutable(self):
        policy = VersionPolicy.manual(100, 30)

        with pytest.raises(dataclasses.FrozenInstanceError):
            policy.major_version_limit = 5


class TestBatchDeleteSpec:
    """Test cases for BatchDeleteSpec."""

    def test_variants(self):
        assert BatchDeleteSpec.automatic().to_payload() == {"automatic": True}
        assert BatchDeleteSpec.by_age(30).to_payload() == {"deleteBeforeDays": 30}
        assert BatchDeleteSpec.by_count(100).to_payload() == {"majorVersionLimit": 100}

    def test_bounds(self):
        with pytest.raises(InvalidBoundError):
            BatchDeleteSpec.by_age(29)
        with pytest.raises(InvalidBoundError):
            BatchDeleteSpec.by_count(99)

    def test_both_thresholds_are_ambiguous(self):
        """Supplying an age and a count at once is rejected."""
        with pytest.raises(AmbiguousSourceError) as exc_info:
            BatchDeleteSpec.from_values(older_than_days=60, keep_versions=200)
        assert exc_info.value.fields == ["older_than_days", "keep_versions"]

        with pytest.raises(AmbiguousSourceError):
            BatchDeleteSpec(DeleteMode.BY_AGE, older_than_days=60, keep_versions=200)

    def test_automatic_with_threshold_is_ambiguous(self):
        with pytest.raises(AmbiguousSourceError):
            BatchDeleteSpec.from_values(older_than_days=60, automatic=True)
        with pytest.raises(AmbiguousSourceError):
            BatchDeleteSpec(DeleteMode.AUTOMATIC, keep_versions=200)

    def test_missing_threshold(self):
        with pytest.raises(MissingSourceError):
            BatchDeleteSpec.from_values()
        with pytest.raises(MissingSourceError):
            BatchDeleteSpec(DeleteMode.BY_COUNT)

    def test_from_values(self):
        assert BatchDeleteSpec.from_values(keep_versions=150).mode == DeleteMode.BY_COUNT
        assert BatchDeleteSpec.from_values(older_than_days=45).older_than_days == 45
        assert BatchDeleteSpec.from_values(automatic=True).mode == DeleteMode.AUTOMATIC


class TestTenantVersionConfig:
    """Test cases for TenantVersionConfig."""

    def test_from_payload(self):
        config = TenantVersionConfig.from_payload(
            {
                "enableAutoExpirationVersionTrim": False,
                "majorVersionLimit": 500,
                "expireVersionsAfterDays": 0,
            }
        )

        assert not config.auto_expiration
        assert config.has_count_limit
        assert not config.has_age_limit

    def test_missing_keys_default_to_zero(self):
        config = TenantVersionConfig.from_payload({})

        assert config == TenantVersionConfig(auto_expiration=False)
