"""
Caller-side polling for parsing jobs.

The server never waits on the worker; clients poll. This helper bounds
the number of attempts and sleeps between them with optional backoff.
It returns the last observed status instead of raising on timeout.

Dependencies: asyncio
System role: Bounded wait-for-completion loop for job callers
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

StatusT = TypeVar("StatusT")

TERMINAL_STATUSES = frozenset({"COMPLETED", "FAILED"})


def _status_name(value: object) -> str:
    return str(getattr(value, "value", value))


async def wait_for_job(
    fetch_status: Callable[[], Awaitable[StatusT]],
    max_attempts: int = 60,
    interval_seconds: float = 2.0,
    backoff_factor: float = 1.0,
    max_interval_seconds: float = 30.0,
    status_of: Callable[[StatusT], str] = lambda s: getattr(s, "status"),
) -> StatusT:
    """
    Poll until a job reaches a terminal status or attempts run out.

    Args:
        fetch_status: Coroutine factory returning the current job status object
        max_attempts: Maximum number of polls (at least 1)
        interval_seconds: Delay before the second poll
        backoff_factor: Multiplier applied to the delay after each poll
        max_interval_seconds: Upper bound for the delay
        status_of: Extracts the status string from a status object

    Returns:
        The last status object observed (terminal or not)
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    delay = interval_seconds
    status = await fetch_status()
    attempt = 1
    while _status_name(status_of(status)) not in TERMINAL_STATUSES and attempt < max_attempts:
        await asyncio.sleep(delay)
        delay = min(delay * backoff_factor, max_interval_seconds)
        status = await fetch_status()
        attempt += 1

    logger.debug(
        f"{__name__}:wait_for_job - Stopped polling",
        extra={"attempts": attempt, "status": _status_name(status_of(status))},
    )
    return status
