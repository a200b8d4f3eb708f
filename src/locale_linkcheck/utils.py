"""Shared helpers for retries and run bookkeeping."""

from __future__ import annotations

import logging
import os
import random
import secrets
import time
from collections.abc import Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def retry_with_backoff(
    fn: Callable[[], T],
    *,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    retryable_exceptions: tuple[type[Exception], ...] = (Exception,),
    sleep: Callable[[float], None] | None = None,
) -> T:
    """
    Retry a synchronous function with exponential backoff and jitter.

    Args:
        fn: The function to retry.
        max_attempts: Maximum number of attempts (values < 1 mean a single attempt).
        base_delay: Initial delay in seconds.
        max_delay: Maximum delay in seconds.
        retryable_exceptions: Tuple of exception types that trigger a retry.
        sleep: Delay function, replaceable in tests.

    Returns:
        The return value of fn.

    Raises:
        The last exception encountered if all attempts fail.
    """
    if max_attempts <= 1:
        return fn()

    last_exc: Exception | None = None
    for attempt in range(max_attempts):
        try:
            return fn()
        except retryable_exceptions as e:
            last_exc = e
            if attempt == max_attempts - 1:
                break

            delay = min(max_delay, base_delay * (2**attempt) + random.uniform(0, 1))
            logger.warning(f"Retry {attempt + 1}/{max_attempts} after {delay:.1f}s (reason: {type(e).__name__}: {e})")
            (sleep or time.sleep)(delay)

    assert last_exc is not None
    raise last_exc


def default_run_id(*, prefix: str) -> str:
    """Unique run ID from timestamp, PID, and a random suffix."""
    ts = time.strftime("%Y%m%d_%H%M%S", time.gmtime())
    pid = os.getpid()
    rand = secrets.token_hex(3)
    return f"{prefix}_{ts}_pid{pid}_{rand}"


def safe_filename(s: str) -> str:
    out = []
    for ch in s:
        if ch.isalnum() or ch in ("-", "_", "."):
            out.append(ch)
        else:
            out.append("_")
    return "".join(out)[:120]
