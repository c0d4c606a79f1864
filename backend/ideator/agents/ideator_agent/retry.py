"""Retry and timeout helpers for LLM calls.

Backoff is an explicit loop with an injected ``sleep`` so tests can record
delays without waiting for them.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

from ...constants import (
    DEFAULT_MAX_RETRIES,
    RETRY_BACKOFF_MULTIPLIER,
    RETRY_BASE_DELAY_MS,
    RETRY_MAX_DELAY_MS,
)
from .errors import IdeatorError, IdeatorErrorCode, is_retryable_error

R = TypeVar("R")

SleepFn = Callable[[float], Awaitable[None]]
RetryHook = Callable[[int, float, BaseException], None]


def calculate_retry_delay(attempt: int) -> int:
    """Backoff delay in milliseconds for a 1-based *attempt* number."""
    delay = RETRY_BASE_DELAY_MS * RETRY_BACKOFF_MULTIPLIER ** max(attempt - 1, 0)
    return min(delay, RETRY_MAX_DELAY_MS)


async def retry_with_backoff(
    fn: Callable[[], Awaitable[R]],
    max_retries: int = DEFAULT_MAX_RETRIES,
    *,
    sleep: SleepFn = asyncio.sleep,
    on_retry: Optional[RetryHook] = None,
) -> R:
    """Await *fn* until it succeeds, at most ``max_retries + 1`` times.

    Non-retryable failures are raised at once. When every attempt fails the
    last failure is raised as an IdeatorError.
    """
    attempt = 0
    while True:
        attempt += 1
        try:
            return await fn()
        except Exception as exc:
            if isinstance(exc, IdeatorError) and (not exc.retryable or attempt > max_retries):
                raise
            if not is_retryable_error(exc):
                error = IdeatorError.from_error(exc)
                error.retryable = False
                raise error from exc
            if attempt > max_retries:
                raise IdeatorError.from_error(exc, IdeatorErrorCode.LLM_GENERATION_FAILED) from exc

            delay_ms = calculate_retry_delay(attempt)
            print(f"🔁 [IDEATOR] Attempt {attempt} failed ({exc}); retrying in {delay_ms}ms")
            if on_retry is not None:
                on_retry(attempt, delay_ms, exc)
            await sleep(delay_ms / 1000)


async def with_timeout(awaitable: Awaitable[R], timeout_ms: int) -> R:
    """Await *awaitable*, raising an IdeatorError(TIMEOUT) after *timeout_ms*."""
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout_ms / 1000)
    except asyncio.TimeoutError as exc:
        raise IdeatorError.from_code(
            IdeatorErrorCode.TIMEOUT,
            {"timeout_ms": timeout_ms},
            f"Operation timed out after {timeout_ms}ms",
        ) from exc
