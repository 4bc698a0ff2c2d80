"""Batch execution of version operations across many sites."""

from .executor import BatchExecutor, BatchReport, ErrorKind, OperationResult, ResultStatus
from .operations import (
    CancelBatchDeleteJob,
    CreateBatchDeleteJob,
    GetBatchDeleteJobStatus,
    GetVersionPolicy,
    GetVersionPolicyStatus,
    Operation,
    SetVersionPolicy,
)
from .reporting import ReportGenerator
from .retry import RetryPolicy, RetryState

__all__ = [
    "BatchExecutor",
    "BatchReport",
    "OperationResult",
    "ResultStatus",
    "ErrorKind",
    "Operation",
    "GetVersionPolicy",
    "SetVersionPolicy",
    "GetVersionPolicyStatus",
    "CreateBatchDeleteJob",
    "GetBatchDeleteJobStatus",
    "CancelBatchDeleteJob",
    "RetryPolicy",
    "RetryState",
    "ReportGenerator",
]
