"""
Generic retryable-operation wrapper with per-attempt timeouts.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, TypeVar

import structlog
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception, stop_after_attempt

logger = structlog.get_logger(__name__)

T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[None]]


def linear_backoff(base_seconds: float, jitter_seconds: float) -> Callable[[int], float]:
    """Backoff of ``base * attempt`` plus up to ``jitter`` seconds of randomness.

    ``attempt`` is the number of the attempt about to run (2 for the first retry).
    """

    def _delay(attempt: int) -> float:
        return base_seconds * attempt + random.uniform(0, jitter_seconds)

    return _delay


@dataclass
class RetryPolicy:
    max_attempts: int = 3
    attempt_timeout: Optional[float] = 45.0
    backoff: Callable[[int], float] = field(default_factory=lambda: linear_backoff(2.0, 3.0))
    is_retryable: Callable[[BaseException], bool] = lambda exc: True


@dataclass
class RetryState:
    """Bookkeeping exposed to callers after the operation finishes."""

    attempts: int = 0
    delays: list[float] = field(default_factory=list)
    last_error: Optional[BaseException] = None


async def _run_attempt(operation: Callable[[int], Awaitable[T]], attempt: int, timeout: Optional[float]) -> T:
    if timeout is None:
        return await operation(attempt)
    async with asyncio.timeout(timeout):
        return await operation(attempt)


async def retry_async(
    operation: Callable[[int], Awaitable[T]],
    policy: RetryPolicy,
    *,
    sleep: SleepFunc = asyncio.sleep,
    state: Optional[RetryState] = None,
) -> T:
    """
    Run ``operation`` until it succeeds or attempts are exhausted.

    ``operation`` receives the 1-based attempt number. Timeouts surface as
    ``TimeoutError``. Errors rejected by ``policy.is_retryable`` are re-raised
    immediately; after the last attempt the last error is re-raised.
    """
    state = state if state is not None else RetryState()

    def should_retry(exc: BaseException) -> bool:
        state.last_error = exc
        if isinstance(exc, asyncio.CancelledError):
            return False
        retryable = policy.is_retryable(exc)
        logger.warning(
            "Attempt failed",
            attempt=state.attempts,
            max_attempts=policy.max_attempts,
            error=str(exc) or type(exc).__name__,
            retryable=retryable,
        )
        return retryable

    def wait(retry_state: RetryCallState) -> float:
        delay = policy.backoff(retry_state.attempt_number + 1)
        state.delays.append(delay)
        return delay

    def before_sleep(retry_state: RetryCallState) -> None:
        logger.info(
            "Retrying after backoff",
            attempt=retry_state.attempt_number + 1,
            delay=round(state.delays[-1], 3),
        )

    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait,
        retry=retry_if_exception(should_retry),
        sleep=sleep,
        before_sleep=before_sleep,
        reraise=True,
    )

    result: Any = None
    async for attempt in retrying:
        with attempt:
            state.attempts = attempt.retry_state.attempt_number
            result = await _run_attempt(operation, state.attempts, policy.attempt_timeout)
    return result
