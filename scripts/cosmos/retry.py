"""
Fixed-delay retry wrapper for remote management calls.

Every remote call the tool makes (listing databases, listing containers,
disabling analytical storage) goes through invoke_with_retry. The wrapper does
not inspect errors: any exception is treated as transient until the attempt
budget is spent, at which point RemoteCallExhausted is raised and the caller
decides whether the failure is fatal or skippable.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TypeVar

from scripts.cosmos.exceptions import RemoteCallExhausted
from utils.logging import get_logger

T = TypeVar("T")


def invoke_with_retry(
    operation: Callable[[], T],
    max_attempts: int,
    delay_seconds: float,
    description: str = "Remote call",
    logger: logging.Logger | None = None,
) -> T:
    """
    Run a zero-argument remote call with bounded, fixed-delay retries.

    Args:
        operation: Callable performing one remote call attempt
        max_attempts: Total number of attempts, including the first one
        delay_seconds: Seconds to wait between attempts (same for every retry)
        description: Human-readable name of the call, used in errors
        logger: Logger for retry diagnostics (defaults to the tool logger)

    Returns:
        The output of the first successful attempt

    Raises:
        ValueError: If max_attempts < 1 or delay_seconds is negative
        RemoteCallExhausted: If every attempt failed
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
    if delay_seconds < 0:
        raise ValueError(f"delay_seconds cannot be negative, got {delay_seconds}")

    logger = logger or get_logger()

    for attempt in range(1, max_attempts + 1):
        try:
            return operation()
        except Exception as e:
            logger.debug(f"{description} attempt {attempt} failed: {e!s}")
            if attempt == max_attempts:
                raise RemoteCallExhausted(description, attempt, e) from e

            logger.warning(
                f"Retry {attempt}/{max_attempts} failed, waiting {delay_seconds:g} seconds..."
            )
            time.sleep(delay_seconds)

    # Unreachable: the loop either returns or raises on the last attempt
    raise RemoteCallExhausted(description, max_attempts, RuntimeError("no attempts made"))
