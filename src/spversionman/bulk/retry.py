"""Rate-limit aware retry for admin API calls.

Only throttling is retried. Validation and service faults surface on the
first attempt so they are never hidden behind a backoff loop.

Classes:
    RetryState: Attempt counter and last computed wait
    RetryPolicy: Runs a call with exponential backoff on throttling
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from ..errors import ExhaustedRetriesError, RateLimitedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_BASE_DELAY = 30.0


@dataclass
class RetryState:
    """Progress of one call through the retry policy."""

    attempt: int = 0
    wait_seconds: float = 0.0
    total_wait_seconds: float = 0.0


class RetryPolicy:
    """Retries throttled calls with exponential backoff."""

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay: float = DEFAULT_BASE_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the retry policy.

        Args:
            max_attempts: Total attempts, including the first one
            base_delay: Delay in seconds before the first retry; doubles each time
            sleep: Sleep function, replaceable in tests
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if base_delay < 0:
            raise ValueError("base_delay must be >= 0")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.sleep = sleep

    def calculate_delay(self, attempt: int, retry_after: Optional[float] = None) -> float:
        """Calculate the wait after a throttled attempt.

        Args:
            attempt: Zero-based index of the attempt that was throttled
            retry_after: Server-provided wait in seconds, if any

        Returns:
            Delay in seconds
        """
        if retry_after is not None:
            return retry_after
        return self.base_delay * (2**attempt)

    def execute(
        self,
        func: Callable[[], T],
        context: str = "",
        state: Optional[RetryState] = None,
    ) -> T:
        """Run ``func``, retrying only when it is throttled.

        Args:
            func: Call to run
            context: Label for log events, usually the operation and site
            state: Optional state object updated as attempts are made

        Returns:
            Result of the call

        Raises:
            ExhaustedRetriesError: If every attempt was throttled
            Exception: Any non-throttling error, raised on the attempt it occurred
        """
        state = state or RetryState()

        while True:
            attempt = state.attempt
            state.attempt += 1
            try:
                result = func()
            except RateLimitedError as e:
                if state.attempt >= self.max_attempts:
                    logger.error(
                        "%s: throttled on final attempt %d/%d",
                        context,
                        state.attempt,
                        self.max_attempts,
                        extra={
                            "event": "retry_exhausted",
                            "operation_context": context,
                            "attempt": state.attempt,
                        },
                    )
                    raise ExhaustedRetriesError(state.attempt, e, resource=e.resource) from e

                delay = self.calculate_delay(attempt, e.retry_after)
                state.wait_seconds = delay
                state.total_wait_seconds += delay
                logger.warning(
                    "%s: throttled on attempt %d/%d, waiting %.1fs",
                    context,
                    state.attempt,
                    self.max_attempts,
                    delay,
                    extra={
                        "event": "throttled",
                        "operation_context": context,
                        "attempt": state.attempt,
                        "wait_seconds": delay,
                        "retry_after": e.retry_after,
                    },
                )
                self.sleep(delay)
            except Exception as e:
                logger.error(
                    "%s: failed on attempt %d: %s",
                    context,
                    state.attempt,
                    e,
                    extra={
                        "event": "fatal",
                        "operation_context": context,
                        "attempt": state.attempt,
                        "error_type": type(e).__name__,
                    },
                )
                raise
            else:
                logger.info(
                    "%s: succeeded on attempt %d",
                    context,
                    state.attempt,
                    extra={
                        "event": "success",
                        "operation_context": context,
                        "attempt": state.attempt,
                    },
                )
                return result
