"""Per-site operations run by the batch executor.

Each operation is a small object with a single ``apply(session)`` method.
Settings are captured when the operation is built and never change during
the batch.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict

from ..api.session import SiteSession
from ..policy.jobs import JobKind, JobStatus
from ..policy.models import BatchDeleteSpec, VersionPolicy


class Operation(ABC):
    """An action applied to one site through its session."""

    name: str = "operation"
    # Safe to apply again to a site that already has the result.
    idempotent: bool = True
    # Changes remote state.
    mutating: bool = False

    @abstractmethod
    def apply(self, session: SiteSession) -> Any:
        """Run the action for ``session.resource``.

        Raises:
            RateLimitedError: If the service throttles the call
            RemoteFaultError: For any other service failure
        """

    def describe(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.describe()!r})"


class GetVersionPolicy(Operation):
    name = "get-policy"

    def apply(self, session: SiteSession) -> VersionPolicy:
        return VersionPolicy.from_payload(session.api.get_site_policy(session.resource))


class SetVersionPolicy(Operation):
    name = "set-policy"
    mutating = True

    def __init__(self, policy: VersionPolicy):
        self.policy = policy

    def apply(self, session: SiteSession) -> VersionPolicy:
        session.api.set_site_policy(session.resource, self.policy)
        return self.policy

    def describe(self) -> str:
        return f"{self.name}: {self.policy.describe()}"


class GetVersionPolicyStatus(Operation):
    name = "policy-status"

    def apply(self, session: SiteSession) -> JobStatus:
        payload = session.api.get_site_policy_progress(session.resource)
        return JobStatus.from_payload(session.resource, payload, JobKind.POLICY_APPLICATION)


class CreateBatchDeleteJob(Operation):
    """Submit a batch delete job.

    Every call creates a new job and deleted versions cannot be recovered,
    so this operation is not idempotent.
    """

    name = "create-delete-job"
    mutating = True
    idempotent = False

    def __init__(self, spec: BatchDeleteSpec):
        self.spec = spec

    def apply(self, session: SiteSession) -> Dict[str, Any]:
        response = session.api.create_delete_job(session.resource, self.spec)
        return {"resource": session.resource, "spec": self.spec.describe(), **response}

    def describe(self) -> str:
        return f"{self.name}: {self.spec.describe()}"


class GetBatchDeleteJobStatus(Operation):
    name = "delete-job-status"

    def apply(self, session: SiteSession) -> JobStatus:
        payload = session.api.get_delete_job_progress(session.resource)
        return JobStatus.from_payload(session.resource, payload, JobKind.BATCH_DELETE)


class CancelBatchDeleteJob(Operation):
    name = "cancel-delete-job"
    mutating = True

    def apply(self, session: SiteSession) -> Dict[str, Any]:
        response = session.api.cancel_delete_job(session.resource)
        return {"resource": session.resource, **response}
