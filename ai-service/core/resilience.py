"""
TryFit AI Service — Resilient Remote Generation Call
Bounded sequential retry around a single upstream Gemini request.

Only transient overload (503) is retried, with a flat backoff. Every other
error is persistent and propagates on the first attempt, unwrapped.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from core.config import GENERATION_BACKOFF_SEC, GENERATION_MAX_ATTEMPTS

logger = logging.getLogger("tryfit.resilience")

T = TypeVar("T")

OVERLOAD_STATUS = 503


@dataclass
class RetryState:
    """Progress of one logical request. Discarded after success or exhaustion."""
    attempt: int = 1
    last_error: Optional[BaseException] = None


def is_overload_error(exc: BaseException) -> bool:
    """Classify an upstream error as transient overload.

    google-genai APIError carries the HTTP status in ``code``; other clients
    use ``status_code``. Without either, fall back to the message text.
    """
    for attr in ("code", "status_code"):
        status = getattr(exc, attr, None)
        if isinstance(status, int) and not isinstance(status, bool):
            return status == OVERLOAD_STATUS
    return str(OVERLOAD_STATUS) in str(exc)


async def _backoff(seconds: float) -> None:
    await asyncio.sleep(seconds)


async def call_with_retry(
    fn: Callable[[], Awaitable[T]],
    label: str = "generation",
    max_attempts: int = GENERATION_MAX_ATTEMPTS,
    backoff_sec: float = GENERATION_BACKOFF_SEC,
    is_retryable: Callable[[BaseException], bool] = is_overload_error,
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
) -> T:
    """Await ``fn()`` until it succeeds, fails persistently, or the budget runs out.

    Args:
        fn: zero-arg coroutine factory issuing the same request each time
        label: name used in log lines
        max_attempts: attempt budget (>= 1)
        backoff_sec: fixed wait between attempts
        is_retryable: overload predicate
        sleep: awaitable delay, defaults to asyncio.sleep

    Returns:
        Whatever ``fn`` returns on the first successful attempt.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")
    sleep = sleep or _backoff

    state = RetryState()
    while True:
        logger.info(f"{label} attempt {state.attempt}/{max_attempts}")
        try:
            result = await fn()
        except Exception as e:
            state.last_error = e
            logger.error(f"{label} attempt {state.attempt} failed: {e}")
            if is_retryable(e) and state.attempt < max_attempts:
                logger.info(
                    f"Waiting {backoff_sec:g}s before retry attempt {state.attempt + 1}..."
                )
                await sleep(backoff_sec)
                state.attempt += 1
                continue
            if is_retryable(e):
                logger.error(f"{label} still overloaded after {max_attempts} attempts")
            raise
        logger.info(f"{label} completed on attempt {state.attempt}")
        return result
