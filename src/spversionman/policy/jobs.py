"""Read-only projection of remote version job progress.

Batch delete jobs and policy application both run asynchronously on the
service. This module maps the progress payload the admin API returns into a
canonical state. Nothing here drives a transition; the service owns them.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from ..errors import RemoteFaultError

logger = logging.getLogger(__name__)


class JobState(str, Enum):
    """Canonical lifecycle of a remote version job."""

    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    NO_JOB = "no_job"

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.COMPLETED, JobState.FAILED, JobState.CANCELLED, JobState.NO_JOB)


class JobKind(str, Enum):
    """Which remote job a status belongs to."""

    BATCH_DELETE = "batch_delete"
    POLICY_APPLICATION = "policy_application"


# Status strings the service has been seen to return, lower-cased.
_STATE_MAP: Dict[str, JobState] = {
    "new": JobState.QUEUED,
    "notstarted": JobState.QUEUED,
    "queued": JobState.QUEUED,
    "pending": JobState.QUEUED,
    "inprogress": JobState.PROCESSING,
    "processing": JobState.PROCESSING,
    "running": JobState.PROCESSING,
    "completed": JobState.COMPLETED,
    "succeeded": JobState.COMPLETED,
    "success": JobState.COMPLETED,
    "failed": JobState.FAILED,
    "error": JobState.FAILED,
    "cancelled": JobState.CANCELLED,
    "canceled": JobState.CANCELLED,
    "norequestfound": JobState.NO_JOB,
    "none": JobState.NO_JOB,
}


def parse_state(raw_status: Optional[str]) -> JobState:
    """Map a raw service status string to a JobState.

    Raises:
        RemoteFaultError: If the status is missing or not recognized
    """
    if not raw_status:
        raise RemoteFaultError("Job progress payload has no status")
    key = raw_status.replace(" ", "").replace("_", "").lower()
    try:
        return _STATE_MAP[key]
    except KeyError:
        raise RemoteFaultError(f"Unrecognized job status '{raw_status}'") from None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 UTC timestamp, treating blanks and the .NET minimum as unset."""
    if not value:
        return None
    text = str(value).strip()
    if text.startswith("0001-01-01"):
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.debug("Ignoring unparseable timestamp %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class JobStatus:
    """Snapshot of a remote job for one site."""

    resource: str
    kind: JobKind
    state: JobState
    raw_status: str
    requested_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    last_processed_at: Optional[datetime] = None
    bytes_released: int = 0
    versions_deleted: int = 0
    versions_failed: int = 0
    error_message: Optional[str] = None

    @classmethod
    def from_payload(
        cls, resource: str, payload: Dict[str, Any], kind: JobKind = JobKind.BATCH_DELETE
    ) -> "JobStatus":
        """Project a progress payload into a JobStatus.

        Args:
            resource: Site URL the payload belongs to
            payload: Progress payload returned by the admin API
            kind: Whether this is a delete job or policy application

        Returns:
            JobStatus snapshot

        Raises:
            RemoteFaultError: If the payload status is missing or unknown
        """
        raw_status = payload.get("status")
        state = parse_state(raw_status)
        completed_at = parse_timestamp(payload.get("completeTimeInUTC"))
        if not state.is_terminal:
            # Running jobs may carry a stale value from a previous run.
            completed_at = None

        return cls(
            resource=resource,
            kind=kind,
            state=state,
            raw_status=str(raw_status),
            requested_at=parse_timestamp(payload.get("requestTimeInUTC")),
            completed_at=completed_at,
            last_processed_at=parse_timestamp(payload.get("lastProcessTimeInUTC")),
            bytes_released=int(payload.get("storageReleasedInBytes") or 0),
            versions_deleted=int(payload.get("versionsDeleted") or 0),
            versions_failed=int(payload.get("versionsFailed") or 0),
            error_message=payload.get("errorMessage") or None,
        )

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "resource": self.resource,
            "kind": self.kind.value,
            "state": self.state.value,
            "raw_status": self.raw_status,
            "requested_at": self.requested_at.isoformat() if self.requested_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "last_processed_at": (
                self.last_processed_at.isoformat() if self.last_processed_at else None
            ),
            "bytes_released": self.bytes_released,
            "versions_deleted": self.versions_deleted,
            "versions_failed": self.versions_failed,
            "error_message": self.error_message,
        }
