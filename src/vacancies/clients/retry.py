# src/vacancies/clients/retry.py
"""
Caller-side retry policy for gateway calls, built on tenacity.

The gateway itself never retries. Wrap a query in `RetryPolicy.call` when the
caller wants transient failures (network trouble, 429, 5xx) retried with
exponential backoff; bad arguments and other 4xx errors fail immediately.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from vacancies.errors import ProtocolError, TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_retryable(error: BaseException) -> bool:
    if isinstance(error, TransportError):
        return True
    if isinstance(error, ProtocolError) and error.status is not None:
        return error.status == 429 or error.status >= 500
    return False


def _log_retry(state: RetryCallState) -> None:
    error = state.outcome.exception() if state.outcome else None
    logger.warning("Attempt %d failed (%r); retrying", state.attempt_number, error)


@dataclass(frozen=True)
class RetryPolicy:
    # Wait 1s, then 2s, 4s, ... up to max_wait between attempts.
    max_attempts: int = 3
    min_wait: float = 1.0
    max_wait: float = 16.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

    def retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            wait=wait_exponential(min=self.min_wait, max=self.max_wait),
            stop=stop_after_attempt(self.max_attempts),
            retry=retry_if_exception(is_retryable),
            before_sleep=_log_retry,
            reraise=True,  # surface the last ApiError, not tenacity.RetryError
        )

    async def call(self, fn: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        async for attempt in self.retrying():
            with attempt:
                return await fn(*args, **kwargs)
        raise AssertionError("unreachable: tenacity always returns or reraises")
