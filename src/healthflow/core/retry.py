"""
Exponential backoff for calls to the AI service.

Rate limits (429), server errors (5xx) and quota exhaustion are retried;
anything else is raised on the spot. Each call is independent: there is no
shared budget and no circuit breaker.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from .exceptions import CapacityExceededError

T = TypeVar("T")

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 5
DEFAULT_INITIAL_DELAY = 2.0

_QUOTA_KEYWORDS = ("quota", "exhausted")


def error_status(error: BaseException) -> int:
    """Best-effort HTTP status of a failed call, 0 when unknown."""
    for attr in ("status_code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value

    nested = getattr(error, "error", None)
    code = getattr(nested, "code", None)
    if code is None and isinstance(nested, dict):
        code = nested.get("code")
    if isinstance(code, int):
        return code

    if "429" in str(error):
        return 429
    return 0


def is_quota_error(error: BaseException) -> bool:
    message = str(error).lower()
    return any(keyword in message for keyword in _QUOTA_KEYWORDS)


def is_rate_limited(error: BaseException) -> bool:
    """429 or quota exhaustion."""
    return error_status(error) == 429 or is_quota_error(error)


def is_retryable(error: BaseException) -> bool:
    status = error_status(error)
    return status == 429 or 500 <= status <= 599 or is_quota_error(error)


async def call_with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = DEFAULT_MAX_RETRIES,
    initial_delay: float = DEFAULT_INITIAL_DELAY,
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
) -> T:
    """Run ``operation`` with exponential backoff.

    Args:
        operation: Zero-argument coroutine factory; called once per attempt.
        max_retries: Total number of attempts.
        initial_delay: Seconds to wait before the second attempt. The wait
            before attempt ``i + 1`` is ``initial_delay * 2 ** i``.
        sleep: Awaitable sleep, replaceable with a fake clock in tests.

    Raises:
        CapacityExceededError: every attempt failed and the last failure was
            a rate limit or quota error.
        Exception: the last underlying error for any other exhausted failure,
            or the first non-retryable error unchanged.
    """
    if max_retries < 1:
        raise ValueError("max_retries must be at least 1")
    sleep = sleep or asyncio.sleep

    last_error: Optional[BaseException] = None
    for attempt in range(max_retries):
        try:
            return await operation()
        except Exception as e:
            if not is_retryable(e):
                raise
            last_error = e
            if attempt < max_retries - 1:
                delay = initial_delay * (2 ** attempt)
                logger.warning(
                    f"AI service error {error_status(e)}. Retrying in {delay:.1f}s... "
                    f"(Attempt {attempt + 1}/{max_retries})"
                )
                await sleep(delay)

    logger.error(f"AI service call failed after {max_retries} attempts: {last_error}")
    if is_rate_limited(last_error):
        raise CapacityExceededError(max_retries, error_status(last_error)) from last_error
    raise last_error
