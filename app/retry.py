"""Bounded polling with exponential backoff for eventually consistent reads."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    before_sleep_log,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _last_observed(retry_state: RetryCallState):
    outcome = retry_state.outcome
    if outcome is None or outcome.failed:
        return None
    return outcome.result()


async def retry_until_present(
    operation: Callable[[], Awaitable[T | None]],
    max_attempts: int,
    base_delay: float,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T | None:
    """
    Call operation until it returns something other than None.

    Waits base_delay * 2**n seconds after the n-th empty attempt (n from 0).
    Transport errors count as an empty attempt. Once max_attempts are used up,
    the last observed value is returned instead of raising.

    Args:
        operation: Zero-argument coroutine function to poll
        max_attempts: Total number of calls, at least 1
        base_delay: Delay in seconds after the first empty attempt
        sleep: Awaitable sleep, replaceable in tests
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait_exponential(multiplier=base_delay, min=0),
        retry=retry_if_result(lambda value: value is None) | retry_if_exception_type(httpx.HTTPError),
        retry_error_callback=_last_observed,
        before_sleep=before_sleep_log(logger, logging.DEBUG),
        sleep=sleep,
    )
    return await retrying(operation)
