"""Resolution of version settings from the operator's chosen source.

The resolver turns one of three sources into a single validated value before
any site is touched:

* ``automatic``: the service-managed variant,
* ``tenant``: derived from the tenant's current settings, read once,
* ``custom``: explicit values, either passed in or entered interactively.

Any failure here aborts the whole action. A fleet-wide change is never
started from partial settings.
"""

import logging
from enum import Enum
from typing import Callable, Optional

from ..errors import (
    AmbiguousSourceError,
    InvalidBoundError,
    MissingSourceError,
    ValidationError,
)
from .models import (
    MIN_DELETE_OLDER_THAN_DAYS,
    MIN_EXPIRE_AFTER_DAYS,
    MIN_KEEP_VERSIONS,
    MIN_MAJOR_VERSION_LIMIT,
    BatchDeleteSpec,
    PolicyScope,
    TenantVersionConfig,
    VersionPolicy,
)
from .prompts import Prompter

logger = logging.getLogger(__name__)


class SettingsSource(str, Enum):
    """Where resolved settings come from."""

    AUTOMATIC = "automatic"
    TENANT_DEFAULTS = "tenant"
    CUSTOM = "custom"


class DeletePreference(str, Enum):
    """Operator's pick when the tenant carries both delete thresholds."""

    AGE = "age"
    COUNT = "count"


class PolicySettingsResolver:
    """Produces one valid VersionPolicy or BatchDeleteSpec per action."""

    def __init__(
        self,
        tenant_config_loader: Optional[Callable[[], TenantVersionConfig]] = None,
        prompter: Optional[Prompter] = None,
    ):
        """Initialize the resolver.

        Args:
            tenant_config_loader: Reads the tenant's version settings. Called at
                most once per resolver.
            prompter: Used for interactive entry; without one, missing values
                raise MissingSourceError instead of prompting
        """
        self.tenant_config_loader = tenant_config_loader
        self.prompter = prompter
        self._tenant_config: Optional[TenantVersionConfig] = None

    def tenant_config(self) -> TenantVersionConfig:
        """Return the tenant settings, loading them on first use only."""
        if self._tenant_config is None:
            if self.tenant_config_loader is None:
                raise MissingSourceError("Tenant settings are not available")
            logger.info("Reading tenant version settings")
            self._tenant_config = self.tenant_config_loader()
        return self._tenant_config

    # Version policy

    def resolve_version_policy(
        self,
        source: SettingsSource,
        scope: PolicyScope = PolicyScope.SITE,
        major_version_limit: Optional[int] = None,
        expire_after_days: Optional[int] = None,
    ) -> VersionPolicy:
        """Resolve a version policy.

        Args:
            source: Where the settings come from
            scope: Site or tenant; decides how short expiry values are treated
            major_version_limit: Explicit limit for custom settings
            expire_after_days: Explicit expiry for custom settings, None for never

        Returns:
            Validated, immutable VersionPolicy

        Raises:
            InvalidBoundError: If an explicit value is below its minimum
            MissingSourceError: If settings are missing or entry was abandoned
            ValidationError: If the source does not apply to the scope
        """
        if source == SettingsSource.AUTOMATIC:
            policy = VersionPolicy.automatic()
        elif source == SettingsSource.TENANT_DEFAULTS:
            if scope == PolicyScope.TENANT:
                raise ValidationError("Tenant defaults cannot be applied to the tenant itself")
            policy = self._version_policy_from_tenant()
        elif major_version_limit is not None:
            policy = VersionPolicy.manual(major_version_limit, expire_after_days, scope=scope)
        else:
            policy = self._prompt_version_policy(scope)

        logger.info(
            "Resolved version policy: %s",
            policy.describe(),
            extra={"source": source.value, "scope": scope.value},
        )
        return policy

    def _version_policy_from_tenant(self) -> VersionPolicy:
        config = self.tenant_config()
        if config.auto_expiration:
            return VersionPolicy.automatic()
        if not config.has_count_limit:
            raise MissingSourceError("Tenant has no major version limit configured")
        return VersionPolicy.manual(
            config.major_version_limit,
            config.expire_after_days if config.has_age_limit else None,
        )

    def _prompt_version_policy(self, scope: PolicyScope) -> VersionPolicy:
        prompter = self._require_prompter()

        while True:
            limit = prompter.ask_int(
                f"Major version limit (minimum {MIN_MAJOR_VERSION_LIMIT})"
            )
            if limit >= MIN_MAJOR_VERSION_LIMIT:
                break
            prompter.warn(f"Major version limit must be at least {MIN_MAJOR_VERSION_LIMIT}.")

        while True:
            days = prompter.ask_int(
                f"Expire versions after days (minimum {MIN_EXPIRE_AFTER_DAYS})",
                allow_blank=True,
            )
            try:
                return VersionPolicy.manual(limit, days, scope=scope)
            except InvalidBoundError as e:
                prompter.warn(e.message)

    # Batch delete

    def resolve_delete_spec(
        self,
        source: SettingsSource,
        older_than_days: Optional[int] = None,
        keep_versions: Optional[int] = None,
        preference: Optional[DeletePreference] = None,
    ) -> BatchDeleteSpec:
        """Resolve the threshold for a batch delete job.

        Args:
            source: Where the settings come from
            older_than_days: Explicit age threshold for custom settings
            keep_versions: Explicit count threshold for custom settings
            preference: Which tenant threshold to use when both are set

        Returns:
            Validated, immutable BatchDeleteSpec

        Raises:
            AmbiguousSourceError: If two thresholds apply and none was chosen
            InvalidBoundError: If an explicit value is below its minimum
            MissingSourceError: If settings are missing or entry was abandoned
        """
        if source == SettingsSource.AUTOMATIC:
            spec = BatchDeleteSpec.automatic()
        elif source == SettingsSource.TENANT_DEFAULTS:
            spec = self._delete_spec_from_tenant(preference)
        elif older_than_days is not None or keep_versions is not None:
            spec = BatchDeleteSpec.from_values(older_than_days, keep_versions)
        else:
            spec = self._prompt_delete_spec()

        logger.info(
            "Resolved batch delete settings: %s", spec.describe(), extra={"source": source.value}
        )
        return spec

    def _delete_spec_from_tenant(self, preference: Optional[DeletePreference]) -> BatchDeleteSpec:
        config = self.tenant_config()
        if config.auto_expiration:
            return BatchDeleteSpec.automatic()

        if config.has_count_limit and config.has_age_limit:
            if preference is None:
                preference = self._ask_preference(config)
            if preference == DeletePreference.AGE:
                return BatchDeleteSpec.by_age(config.expire_after_days)
            return BatchDeleteSpec.by_count(config.major_version_limit)

        if config.has_count_limit:
            return BatchDeleteSpec.by_count(config.major_version_limit)
        if config.has_age_limit:
            return BatchDeleteSpec.by_age(config.expire_after_days)
        raise MissingSourceError("Tenant has no version limits to delete by")

    def _ask_preference(self, config: TenantVersionConfig) -> DeletePreference:
        ambiguous = AmbiguousSourceError(
            ["major_version_limit", "expire_after_days"],
            "Tenant sets both a version count limit and an expiry; "
            "pass --delete-by count or --delete-by age",
        )
        if self.prompter is None:
            raise ambiguous
        try:
            choice = self.prompter.choose(
                "Tenant settings have both a count and an age limit. Delete by:",
                {
                    DeletePreference.COUNT.value: (
                        f"Count: keep {config.major_version_limit} versions"
                    ),
                    DeletePreference.AGE.value: (
                        f"Age: delete versions older than {config.expire_after_days} days"
                    ),
                },
            )
        except MissingSourceError:
            raise ambiguous from None
        return DeletePreference(choice)

    def _prompt_delete_spec(self) -> BatchDeleteSpec:
        prompter = self._require_prompter()
        choice = DeletePreference(
            prompter.choose(
                "Delete versions by:",
                {
                    DeletePreference.AGE.value: "Age: delete versions older than a number of days",
                    DeletePreference.COUNT.value: "Count: keep a number of newest versions",
                },
            )
        )

        while True:
            if choice == DeletePreference.AGE:
                value = prompter.ask_int(
                    f"Delete versions older than days (minimum {MIN_DELETE_OLDER_THAN_DAYS})"
                )
            else:
                value = prompter.ask_int(
                    f"Major versions to keep (minimum {MIN_KEEP_VERSIONS})"
                )
            try:
                if choice == DeletePreference.AGE:
                    return BatchDeleteSpec.by_age(value)
                return BatchDeleteSpec.by_count(value)
            except InvalidBoundError as e:
                prompter.warn(e.message)

    def _require_prompter(self) -> Prompter:
        if self.prompter is None:
            raise MissingSourceError("Custom settings need explicit values")
        return self.prompter
