"""Data models for version-retention settings.

Classes:
    PolicyScope: Where a version policy is applied (site or tenant)
    VersionPolicy: Automatic or manual version history limits
    BatchDeleteSpec: Threshold for a batch delete job
    TenantVersionConfig: Version settings as stored on the tenant
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from ..errors import AmbiguousSourceError, InvalidBoundError, MissingSourceError

logger = logging.getLogger(__name__)

MIN_MAJOR_VERSION_LIMIT = 100
MIN_EXPIRE_AFTER_DAYS = 30
MIN_DELETE_OLDER_THAN_DAYS = 30
MIN_KEEP_VERSIONS = 100
NEVER_EXPIRE = 0


class PolicyScope(str, Enum):
    """Scope a version policy is entered for."""

    SITE = "site"
    TENANT = "tenant"


class VersionPolicyMode(str, Enum):
    """Version policy variants."""

    AUTOMATIC = "automatic"
    MANUAL = "manual"


class DeleteMode(str, Enum):
    """Batch delete job variants."""

    AUTOMATIC = "automatic"
    BY_AGE = "by_age"
    BY_COUNT = "by_count"


@dataclass(frozen=True)
class VersionPolicy:
    """Version history limits for a site or the tenant.

    Build instances with :meth:`automatic` or :meth:`manual`; both validate
    the bounds the admin API enforces. An ``expire_after_days`` of ``None``
    means versions never expire and is sent to the service as ``0``.
    """

    mode: VersionPolicyMode
    major_version_limit: Optional[int] = None
    expire_after_days: Optional[int] = None

    @classmethod
    def automatic(cls) -> "VersionPolicy":
        """Create an automatic (service managed) policy."""
        return cls(mode=VersionPolicyMode.AUTOMATIC)

    @classmethod
    def manual(
        cls,
        major_version_limit: int,
        expire_after_days: Optional[int] = None,
        scope: PolicyScope = PolicyScope.SITE,
    ) -> "VersionPolicy":
        """Create a manual policy after checking its bounds.

        Args:
            major_version_limit: Number of major versions to keep (>= 100)
            expire_after_days: Days before versions expire, or None for never
            scope: Site values below the minimum are rejected, tenant values
                are raised to the minimum

        Returns:
            Validated VersionPolicy

        Raises:
            InvalidBoundError: If a value is below its minimum for the scope
        """
        if major_version_limit < MIN_MAJOR_VERSION_LIMIT:
            raise InvalidBoundError(
                "major_version_limit", major_version_limit, MIN_MAJOR_VERSION_LIMIT
            )

        if expire_after_days is not None and expire_after_days < MIN_EXPIRE_AFTER_DAYS:
            if scope == PolicyScope.TENANT:
                logger.warning(
                    "Tenant expire_after_days %s is below the minimum; using %s",
                    expire_after_days,
                    MIN_EXPIRE_AFTER_DAYS,
                    extra={"requested_days": expire_after_days},
                )
                expire_after_days = MIN_EXPIRE_AFTER_DAYS
            else:
                raise InvalidBoundError(
                    "expire_after_days", expire_after_days, MIN_EXPIRE_AFTER_DAYS
                )

        return cls(
            mode=VersionPolicyMode.MANUAL,
            major_version_limit=major_version_limit,
            expire_after_days=expire_after_days,
        )

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "VersionPolicy":
        """Build a policy from a service response without re-validating it."""
        if payload.get("enableAutoExpirationVersionTrim"):
            return cls.automatic()
        expire = payload.get("expireVersionsAfterDays") or None
        return cls(
            mode=VersionPolicyMode.MANUAL,
            major_version_limit=payload.get("majorVersionLimit"),
            expire_after_days=expire,
        )

    @property
    def is_automatic(self) -> bool:
        """Whether the service manages the limits."""
        return self.mode == VersionPolicyMode.AUTOMATIC

    def to_payload(self) -> Dict[str, Any]:
        """Serialize for the admin API."""
        if self.is_automatic:
            return {"enableAutoExpirationVersionTrim": True}
        return {
            "enableAutoExpirationVersionTrim": False,
            "majorVersionLimit": self.major_version_limit,
            "expireVersionsAfterDays": (
                NEVER_EXPIRE if self.expire_after_days is None else self.expire_after_days
            ),
        }

    def describe(self) -> str:
        """Short human-readable summary."""
        if self.is_automatic:
            return "Automatic"
        expiry = (
            "never expire"
            if self.expire_after_days is None
            else f"expire after {self.expire_after_days} days"
        )
        return f"Manual: keep {self.major_version_limit} major versions, {expiry}"


@dataclass(frozen=True)
class BatchDeleteSpec:
    """Threshold for a batch delete job.

    Exactly one variant is allowed: automatic, by age or by count.
    """

    mode: DeleteMode
    older_than_days: Optional[int] = None
    keep_versions: Optional[int] = None

    def __post_init__(self):
        """Enforce that exactly one threshold matches the mode."""
        if self.older_than_days is not None and self.keep_versions is not None:
            raise AmbiguousSourceError(["older_than_days", "keep_versions"])

        if self.mode == DeleteMode.AUTOMATIC:
            if self.older_than_days is not None or self.keep_versions is not None:
                other = "older_than_days" if self.older_than_days is not None else "keep_versions"
                raise AmbiguousSourceError(["automatic", other])
        elif self.mode == DeleteMode.BY_AGE:
            if self.older_than_days is None:
                raise MissingSourceError("older_than_days is required for an age based delete")
            if self.older_than_days < MIN_DELETE_OLDER_THAN_DAYS:
                raise InvalidBoundError(
                    "older_than_days", self.older_than_days, MIN_DELETE_OLDER_THAN_DAYS
                )
        elif self.mode == DeleteMode.BY_COUNT:
            if self.keep_versions is None:
                raise MissingSourceError("keep_versions is required for a count based delete")
            if self.keep_versions < MIN_KEEP_VERSIONS:
                raise InvalidBoundError("keep_versions", self.keep_versions, MIN_KEEP_VERSIONS)

    @classmethod
    def automatic(cls) -> "BatchDeleteSpec":
        return cls(mode=DeleteMode.AUTOMATIC)

    @classmethod
    def by_age(cls, older_than_days: int) -> "BatchDeleteSpec":
        return cls(mode=DeleteMode.BY_AGE, older_than_days=older_than_days)

    @classmethod
    def by_count(cls, keep_versions: int) -> "BatchDeleteSpec":
        return cls(mode=DeleteMode.BY_COUNT, keep_versions=keep_versions)

    @classmethod
    def from_values(
        cls,
        older_than_days: Optional[int] = None,
        keep_versions: Optional[int] = None,
        automatic: bool = False,
    ) -> "BatchDeleteSpec":
        """Build a spec from loose values, such as command-line options.

        Raises:
            AmbiguousSourceError: If more than one variant is requested
            MissingSourceError: If no variant is requested
            InvalidBoundError: If the chosen threshold is below its minimum
        """
        chosen = [
            name
            for name, present in (
                ("automatic", automatic),
                ("older_than_days", older_than_days is not None),
                ("keep_versions", keep_versions is not None),
            )
            if present
        ]
        if len(chosen) > 1:
            raise AmbiguousSourceError(chosen)
        if not chosen:
            raise MissingSourceError("No batch delete threshold was given")

        if automatic:
            return cls.automatic()
        if older_than_days is not None:
            return cls.by_age(older_than_days)
        return cls.by_count(keep_versions)

    def to_payload(self) -> Dict[str, Any]:
        """Serialize for the admin API."""
        if self.mode == DeleteMode.AUTOMATIC:
            return {"automatic": True}
        if self.mode == DeleteMode.BY_AGE:
            return {"deleteBeforeDays": self.older_than_days}
        return {"majorVersionLimit": self.keep_versions}

    def describe(self) -> str:
        """Short human-readable summary."""
        if self.mode == DeleteMode.AUTOMATIC:
            return "Automatic trim"
        if self.mode == DeleteMode.BY_AGE:
            return f"Delete versions older than {self.older_than_days} days"
        return f"Keep the newest {self.keep_versions} major versions"


@dataclass(frozen=True)
class TenantVersionConfig:
    """Tenant-wide version history settings as reported by the service."""

    auto_expiration: bool
    major_version_limit: int = 0
    expire_after_days: int = 0

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "TenantVersionConfig":
        return cls(
            auto_expiration=bool(payload.get("enableAutoExpirationVersionTrim", False)),
            major_version_limit=int(payload.get("majorVersionLimit") or 0),
            expire_after_days=int(payload.get("expireVersionsAfterDays") or 0),
        )

    @property
    def has_count_limit(self) -> bool:
        return self.major_version_limit > 0

    @property
    def has_age_limit(self) -> bool:
        return self.expire_after_days > 0
