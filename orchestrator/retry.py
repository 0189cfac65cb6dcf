"""
Retry with exponential backoff and jitter.

The first attempt fires immediately. Before attempt k (k >= 2) the policy
waits base_delay_ms * 2**(k-2) plus up to jitter_ms of random jitter,
capped at max_delay_ms. Every exception counts as a failed attempt unless
the caller's ``should_retry`` rejects it; once attempts are exhausted the
last exception propagates unchanged.
"""

import asyncio
import random
from typing import Awaitable, Callable, TypeVar

from utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_MAX_DELAY_MS = 10000
DEFAULT_JITTER_MS = 1000


def compute_backoff_ms(
    attempt: int,
    base_delay_ms: int,
    *,
    max_delay_ms: int = DEFAULT_MAX_DELAY_MS,
    jitter_ms: int = DEFAULT_JITTER_MS,
    rng: Callable[[float, float], float] = random.uniform,
) -> float:
    """Delay in milliseconds to wait before ``attempt`` (1-based). Attempt 1 never waits."""
    if attempt <= 1:
        return 0.0
    delay = base_delay_ms * (2 ** (attempt - 2))
    if jitter_ms > 0:
        delay += rng(0, jitter_ms)
    return float(min(delay, max_delay_ms))


async def with_retry(
    attempt_fn: Callable[[], Awaitable[T]],
    max_attempts: int,
    base_delay_ms: int,
    *,
    max_delay_ms: int = DEFAULT_MAX_DELAY_MS,
    jitter_ms: int = DEFAULT_JITTER_MS,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    label: str = "",
    should_retry: Callable[[Exception], bool] = lambda e: True,
) -> T:
    """
    Await ``attempt_fn()`` up to ``max_attempts`` times.

    Args:
        attempt_fn: Zero-argument coroutine factory; called once per attempt
        max_attempts: Total attempts including the first (values below 1 mean 1)
        base_delay_ms: Delay before the second attempt, doubled each time after
        max_delay_ms: Ceiling for any single delay
        jitter_ms: Upper bound of the uniform random jitter added to each delay
        sleep: Awaitable sleep taking seconds; injectable for tests
        label: Name used in log lines (usually the source id)
        should_retry: Whether a failure earns another attempt; defaults to always

    Returns:
        The first successful result

    Raises:
        The exception from the final attempt
    """
    attempts = max(1, int(max_attempts))

    for attempt in range(1, attempts + 1):
        if attempt > 1:
            delay_ms = compute_backoff_ms(
                attempt, base_delay_ms, max_delay_ms=max_delay_ms, jitter_ms=jitter_ms
            )
            logger.info(
                f"Retrying {label or 'call'} in {round(delay_ms)}ms",
                extra={"extra_fields": {"label": label, "attempt": attempt, "delay_ms": round(delay_ms)}},
            )
            await sleep(delay_ms / 1000)

        try:
            return await attempt_fn()
        except Exception as e:
            logger.warning(
                f"Attempt {attempt}/{attempts} failed for {label or 'call'}: {e}",
                extra={
                    "extra_fields": {
                        "label": label,
                        "attempt": attempt,
                        "max_attempts": attempts,
                        "error_type": type(e).__name__,
                    }
                },
            )
            if attempt == attempts or not should_retry(e):
                raise

    # unreachable: the loop either returns or re-raises
    raise RuntimeError("with_retry exhausted without result")
