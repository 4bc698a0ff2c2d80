"""Sequential batch execution across many sites.

The executor walks the site list in order. For each site it opens a fresh
session, runs the operation through the retry policy and records the
outcome. A failing site is recorded and the loop moves on; the report
always has one result per input site, in input order.

Classes:
    OperationResult: Outcome for one site
    BatchReport: Ordered outcomes for a whole run
    ProgressTracker: Rich progress display for a run
    BatchExecutor: Runs an operation across a list of sites
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from ..api.session import SessionProvider, TenantContext
from ..errors import AuthError, EmptyBatchError, ExhaustedRetriesError, RemoteError
from .operations import Operation
from .retry import RetryPolicy, RetryState

logger = logging.getLogger(__name__)


class ResultStatus(str, Enum):
    """Outcome of one site's processing."""

    SUCCESS = "success"
    FAILED = "failed"


class ErrorKind(str, Enum):
    """Why a site failed."""

    AUTH = "auth"
    EXHAUSTED_RETRIES = "exhausted_retries"
    REMOTE_FAULT = "remote_fault"
    UNEXPECTED = "unexpected"


def _serialize_payload(payload: Any) -> Any:
    if payload is None or isinstance(payload, (str, int, float, bool, list)):
        return payload
    if isinstance(payload, dict):
        return {key: _serialize_payload(value) for key, value in payload.items()}
    if hasattr(payload, "to_dict"):
        return payload.to_dict()
    if hasattr(payload, "to_payload"):
        return {"summary": payload.describe(), **payload.to_payload()}
    return str(payload)


@dataclass
class OperationResult:
    """Result of running an operation on one site."""

    resource: str
    status: ResultStatus
    payload: Any = None
    error_kind: Optional[ErrorKind] = None
    error_message: Optional[str] = None
    attempts_used: int = 0
    processing_time: float = 0.0
    timestamp: Optional[float] = None

    def __post_init__(self):
        """Set timestamp if not provided."""
        if self.timestamp is None:
            self.timestamp = time.time()

    @classmethod
    def success(cls, resource: str, payload: Any, attempts_used: int, processing_time: float):
        return cls(
            resource=resource,
            status=ResultStatus.SUCCESS,
            payload=payload,
            attempts_used=attempts_used,
            processing_time=processing_time,
        )

    @classmethod
    def failure(
        cls,
        resource: str,
        error_kind: ErrorKind,
        error_message: str,
        attempts_used: int,
        processing_time: float,
    ):
        return cls(
            resource=resource,
            status=ResultStatus.FAILED,
            error_kind=error_kind,
            error_message=error_message,
            attempts_used=attempts_used,
            processing_time=processing_time,
        )

    @property
    def is_success(self) -> bool:
        return self.status == ResultStatus.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "resource": self.resource,
            "status": self.status.value,
            "payload": _serialize_payload(self.payload),
            "error_kind": self.error_kind.value if self.error_kind else None,
            "error_message": self.error_message,
            "attempts_used": self.attempts_used,
            "processing_time": round(self.processing_time, 3),
            "timestamp": self.timestamp,
        }


@dataclass
class BatchReport:
    """Ordered results of a batch run."""

    operation: str
    description: str
    results: List[OperationResult] = field(default_factory=list)
    start_time: Optional[float] = None
    end_time: Optional[float] = None

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def successful(self) -> List[OperationResult]:
        return [result for result in self.results if result.is_success]

    @property
    def failed(self) -> List[OperationResult]:
        return [result for result in self.results if not result.is_success]

    @property
    def success_count(self) -> int:
        return len(self.successful)

    @property
    def failure_count(self) -> int:
        return len(self.failed)

    @property
    def success_rate(self) -> float:
        """Success rate as a percentage."""
        if self.total == 0:
            return 0.0
        return (self.success_count / self.total) * 100

    @property
    def duration(self) -> float:
        if self.start_time is None or self.end_time is None:
            return 0.0
        return self.end_time - self.start_time

    def has_failures(self) -> bool:
        return self.failure_count > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "description": self.description,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "total": self.total,
            "successful": self.success_count,
            "failed": self.failure_count,
            "results": [result.to_dict() for result in self.results],
        }


class ProgressTracker:
    """Manages progress display for a batch run."""

    def __init__(self, console: Console, enabled: bool = True):
        """Initialize progress tracker.

        Args:
            console: Rich console for output
            enabled: Whether to render anything
        """
        self.console = console
        self.enabled = enabled
        self.progress: Optional[Progress] = None
        self.task_id: Optional[TaskID] = None

    def start(self, total: int, description: str):
        if not self.enabled:
            return
        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("({task.completed}/{task.total})"),
            TimeElapsedColumn(),
            console=self.console,
        )
        self.progress.start()
        self.task_id = self.progress.add_task(description, total=total)

    def advance(self, resource: str):
        if self.progress and self.task_id is not None:
            self.progress.update(self.task_id, advance=1, description=resource)

    def finish(self):
        if self.progress:
            self.progress.stop()
            self.progress = None
            self.task_id = None


class BatchExecutor:
    """Runs one operation across an ordered list of sites, one at a time."""

    def __init__(
        self,
        session_provider: SessionProvider,
        tenant: TenantContext,
        retry_policy: Optional[RetryPolicy] = None,
        console: Optional[Console] = None,
        show_progress: bool = True,
        result_callback: Optional[Callable[[OperationResult], None]] = None,
    ):
        """Initialize the executor.

        Args:
            session_provider: Creates a session for each site
            tenant: Tenant being administered
            retry_policy: Retry policy wrapping each operation call
            console: Rich console for progress output
            show_progress: Whether to show a progress bar
            result_callback: Called with each result as soon as it is recorded
        """
        self.session_provider = session_provider
        self.tenant = tenant
        self.retry_policy = retry_policy or RetryPolicy()
        self.progress = ProgressTracker(console or Console(), enabled=show_progress)
        self.result_callback = result_callback

    def run(
        self, resources: Iterable[str], operation: Operation, description: str = ""
    ) -> BatchReport:
        """Run ``operation`` for every site in order.

        Args:
            resources: Site URLs, in the order they should be processed
            operation: Operation to apply to each site
            description: Label for progress output and the report

        Returns:
            BatchReport with one result per site, in input order

        Raises:
            EmptyBatchError: If ``resources`` is empty
        """
        resources = list(resources)
        description = description or operation.describe()
        if not resources:
            raise EmptyBatchError(description)

        report = BatchReport(
            operation=operation.name, description=description, start_time=time.time()
        )
        logger.info(
            "Starting batch '%s' for %d sites",
            description,
            len(resources),
            extra={"event": "batch_start", "operation": operation.name, "total": len(resources)},
        )

        self.progress.start(len(resources), description)
        try:
            for resource in resources:
                result = self._process_resource(resource, operation)
                report.results.append(result)
                self.progress.advance(resource)
                if self.result_callback:
                    self.result_callback(result)
        finally:
            self.progress.finish()

        report.end_time = time.time()
        logger.info(
            "Finished batch '%s': %d succeeded, %d failed",
            description,
            report.success_count,
            report.failure_count,
            extra={
                "event": "batch_end",
                "operation": operation.name,
                "successful": report.success_count,
                "failed": report.failure_count,
            },
        )
        return report

    def _process_resource(self, resource: str, operation: Operation) -> OperationResult:
        start_time = time.time()
        state = RetryState()

        def fail(kind: ErrorKind, error: Exception) -> OperationResult:
            logger.error(
                "%s failed for %s: %s",
                operation.name,
                resource,
                error,
                extra={"event": "resource_failed", "resource": resource, "error_kind": kind.value},
            )
            return OperationResult.failure(
                resource, kind, str(error), state.attempt, time.time() - start_time
            )

        try:
            session = self.session_provider.acquire(resource, self.tenant)
        except AuthError as e:
            return fail(ErrorKind.AUTH, e)
        except Exception as e:
            logger.exception("Unexpected error opening a session for %s", resource)
            return fail(ErrorKind.UNEXPECTED, e)

        try:
            with session:
                payload = self.retry_policy.execute(
                    lambda: operation.apply(session),
                    context=f"{operation.name} {resource}",
                    state=state,
                )
        except ExhaustedRetriesError as e:
            return fail(ErrorKind.EXHAUSTED_RETRIES, e)
        except AuthError as e:
            return fail(ErrorKind.AUTH, e)
        except RemoteError as e:
            return fail(ErrorKind.REMOTE_FAULT, e)
        except Exception as e:
            logger.exception("Unexpected error processing %s", resource)
            return fail(ErrorKind.UNEXPECTED, e)

        return OperationResult.success(
            resource, payload, state.attempt, time.time() - start_time
        )
