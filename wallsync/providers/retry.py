"""Bounded retry with exponential backoff for provider calls."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from wallsync.logging import get_logger
from wallsync.providers.result import Ok, Result

logger = get_logger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    """Backoff parameters."""

    max_attempts: int = 3
    base_delay: float = 1.0
    factor: float = 2.0

    @classmethod
    def from_config(cls, cfg) -> "RetryPolicy":
        return cls(
            max_attempts=cfg.retry_max_attempts,
            base_delay=cfg.retry_base_delay,
            factor=cfg.retry_factor,
        )


async def retry_with_backoff(
    attempt: Callable[[], Awaitable[Result[T]]],
    policy: RetryPolicy | None = None,
    label: str = "request",
    sleep: Sleep = asyncio.sleep,
) -> Result[T]:
    """Run ``attempt`` until it succeeds, fails fatally, or attempts run out.

    Only ``Err`` values of kind RETRYABLE are retried. Exceptions raised by
    ``attempt`` are not caught, so cancellation unwinds immediately, even
    while sleeping between attempts.

    Args:
        attempt: Coroutine function performing one try
        policy: Backoff parameters
        label: Name used in log messages
        sleep: Awaitable sleep, injectable for tests

    Returns:
        The first Ok, the first fatal Err, or the last retryable Err
    """
    policy = policy or RetryPolicy()
    delay = policy.base_delay

    attempt_no = 1
    while True:
        result = await attempt()
        if isinstance(result, Ok):
            return result

        if not result.retryable or attempt_no >= policy.max_attempts:
            return result

        wait_time = result.retry_after if result.retry_after is not None else delay
        logger.warning(
            f"{label} failed ({result}), retry in {wait_time}s "
            f"(attempt {attempt_no}/{policy.max_attempts})"
        )
        await sleep(wait_time)
        delay *= policy.factor
        attempt_no += 1
