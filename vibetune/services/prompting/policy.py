"""
Attempt policy: bounded retries with backoff, then a fallback producer.

Wraps ``tenacity.AsyncRetrying`` so the retry decision, the wait schedule and
the fallback are plain values that can be unit-tested on their own::

    policy = AttemptPolicy(max_attempts=3, backoff=exponential_backoff(2.0))
    prompt = await policy.run(call_model, fallback=lambda exc: "default prompt")
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt

from vibetune.core.exceptions import UpstreamError, UpstreamUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Fallback = Callable[[BaseException], Any]


def exponential_backoff(base: float = 2.0) -> Callable[[int], float]:
    """Return ``attempt -> base ** attempt`` (2 s, 4 s, ... for base 2)."""

    def _wait(attempt: int) -> float:
        return float(base**attempt)

    return _wait


def is_transient(exc: BaseException) -> bool:
    """Upstream 5xx and 429 answers are worth another attempt."""
    if isinstance(exc, UpstreamUnavailableError):
        return True
    if isinstance(exc, UpstreamError):
        return exc.status_code >= 500 or exc.status_code == 429
    return False


@dataclass(frozen=True)
class AttemptPolicy:
    """How many times to try, how long to wait, and what counts as retryable.

    Attributes:
        max_attempts: Total attempts including the first one.
        backoff: Maps the number of the attempt that just failed to a wait in seconds.
        retry_on: Predicate selecting exceptions that trigger another attempt.
        sleep: Awaitable sleep used between attempts (patched in tests).
    """

    max_attempts: int = 3
    backoff: Callable[[int], float] = field(default_factory=exponential_backoff)
    retry_on: Callable[[BaseException], bool] = is_transient
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        fallback: Fallback | None = None,
    ) -> T:
        """Run *operation* under this policy.

        Non-retryable errors stop immediately. Once attempts are exhausted (or a
        non-retryable error occurs) the last exception is passed to *fallback*,
        whose (possibly awaitable) result is returned. Without a fallback the
        exception propagates.
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=lambda state: self.backoff(state.attempt_number),
            retry=retry_if_exception(self.retry_on),
            sleep=self.sleep,
            before_sleep=self._log_retry,
            reraise=True,
        )
        try:
            return await retrying(operation)
        except Exception as exc:
            if fallback is None:
                raise
            logger.warning("All attempts failed (%s); using fallback", exc)
            result = fallback(exc)
            if inspect.isawaitable(result):
                result = await result
            return result

    def _log_retry(self, state) -> None:
        exc = state.outcome.exception() if state.outcome else None
        logger.warning(
            "Attempt %d/%d failed: %s; retrying in %.1fs",
            state.attempt_number,
            self.max_attempts,
            exc,
            self.backoff(state.attempt_number),
        )
