"""
Readiness Wait

Bounded retry of an async readiness predicate.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from crudbench.config import settings
from crudbench.core.errors import ReadinessError

logger = logging.getLogger(__name__)

ReadinessProbe = Callable[[], Awaitable[bool]]


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget for a readiness probe."""

    max_attempts: int = 60
    interval_seconds: float = 1.0
    backoff_multiplier: float = 1.0
    max_interval_seconds: float = 10.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.interval_seconds < 0:
            raise ValueError("interval_seconds must be >= 0")
        if self.backoff_multiplier < 1.0:
            raise ValueError("backoff_multiplier must be >= 1.0")

    @classmethod
    def from_settings(cls) -> RetryPolicy:
        return cls(
            max_attempts=settings.READINESS_MAX_ATTEMPTS,
            interval_seconds=settings.READINESS_INTERVAL_SECONDS,
        )

    def delay_after(self, attempt: int) -> float:
        """Sleep before attempt `attempt + 1` (attempts are 1-based)."""
        delay = self.interval_seconds * (self.backoff_multiplier ** (attempt - 1))
        return min(delay, max(self.max_interval_seconds, self.interval_seconds))


async def wait_until_ready(
    probe: ReadinessProbe,
    policy: RetryPolicy,
    *,
    description: str = "system under test",
    hint: str | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> int:
    """
    Poll `probe` until it returns True or the retry budget is spent.

    A probe that raises counts as a failed attempt.

    Returns:
        The 1-based attempt number that succeeded.

    Raises:
        ReadinessError: the probe never succeeded.
    """
    last_error: str | None = None
    for attempt in range(1, policy.max_attempts + 1):
        try:
            if await probe():
                logger.info(f"✅ {description} ready (attempt {attempt})")
                return attempt
            last_error = "probe reported not ready"
        except Exception as e:
            last_error = str(e) or type(e).__name__

        if attempt % 5 == 0:
            logger.info(
                f"Waiting for {description}... attempt {attempt}/{policy.max_attempts}"
            )
        if attempt < policy.max_attempts:
            await sleep(policy.delay_after(attempt))

    raise ReadinessError(
        f"{description} not ready after {policy.max_attempts} attempts "
        f"(last error: {last_error})",
        hint=hint,
    )
