"""
Retry Strategies using Tenacity.

Retry policies are applied to idempotent reads only (balances, token
metadata). Approvals, bridge sends and transfers move funds and are never
retried here; a duplicate submission could spend twice.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_none,
)

from bridgepay.core.exceptions import NetworkError
from bridgepay.core.logging import get_logger

T = TypeVar("T")

logger = get_logger("retry")

_TRANSIENT_MARKERS = (
    "timeout",
    "timed out",
    "connection refused",
    "connection reset",
    "500",
    "502",
    "503",
    "504",
    "network error",
    "rate limit",
)


def is_transient_error(exception: BaseException) -> bool:
    """Check if exception is a transient network/infrastructure error."""
    if isinstance(exception, NetworkError):
        return exception.status_code is None or exception.is_rate_limited() or exception.is_server_error()
    if isinstance(exception, (TimeoutError, ConnectionError)):
        return True
    msg = str(exception).lower()
    return any(marker in msg for marker in _TRANSIENT_MARKERS)


def _log_before_sleep(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(f"Retrying read after error: {exc} (attempt {retry_state.attempt_number})")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded exponential-backoff retry for remote calls.

    Args:
        max_attempts: Total attempts including the first
        initial_delay: Backoff multiplier in seconds (1s, 2s, 4s, ...)
        max_delay: Upper bound for a single wait
        retry_on: Predicate choosing which exceptions are retried
    """

    max_attempts: int = 3
    initial_delay: float = 0.5
    max_delay: float = 8.0
    retry_on: Callable[[BaseException], bool] = is_transient_error

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    @classmethod
    def none(cls) -> RetryPolicy:
        """A single attempt, no retries."""
        return cls(max_attempts=1, initial_delay=0.0, max_delay=0.0)

    def _retrying(self) -> AsyncRetrying:
        wait = (
            wait_exponential(multiplier=self.initial_delay, max=self.max_delay)
            if self.initial_delay > 0
            else wait_none()
        )
        return AsyncRetrying(
            retry=retry_if_exception(self.retry_on),
            wait=wait,
            stop=stop_after_attempt(self.max_attempts),
            reraise=True,
            before_sleep=_log_before_sleep,
        )

    async def call(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """Execute an async function under this policy."""
        async for attempt in self._retrying():
            with attempt:
                return await func(*args, **kwargs)
        raise AssertionError("unreachable")  # pragma: no cover


DEFAULT_READ_POLICY = RetryPolicy()
