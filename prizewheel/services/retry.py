"""
Retry policy for calls to external services
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Tuple, Type

from prizewheel.core.config import settings
from prizewheel.core.errors import RetryExhaustedError

# Configure logging
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    delay_seconds: float = 5.0
    backoff_multiplier: float = 1.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.delay_seconds < 0:
            raise ValueError("delay_seconds must not be negative")

    def delay_before(self, attempt: int) -> float:
        """Delay before attempt number `attempt` (2 for the first retry)."""
        return self.delay_seconds * (self.backoff_multiplier ** max(attempt - 2, 0))

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        return cls(
            max_attempts=settings.delivery_max_attempts,
            delay_seconds=settings.delivery_retry_delay_seconds,
            backoff_multiplier=settings.delivery_backoff_multiplier,
        )


async def call_with_retry(
    func: Callable[[], Awaitable[Any]],
    policy: RetryPolicy,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    label: str = "call",
) -> Tuple[Any, int]:
    """
    Await func() until it succeeds or the policy runs out of attempts.

    Args:
        func: Zero-argument coroutine function
        policy: Attempt count and delays
        sleep: Awaitable sleep, replaced in tests
        retry_on: Exception types that trigger another attempt
        label: Name used in log lines

    Returns:
        Tuple of (result, attempts used)

    Raises:
        RetryExhaustedError: when every attempt failed
    """
    last_error: Optional[BaseException] = None
    for attempt in range(1, policy.max_attempts + 1):
        if attempt > 1:
            delay = policy.delay_before(attempt)
            logger.info(f"Retrying {label} (attempt {attempt}/{policy.max_attempts}) in {delay}s")
            await sleep(delay)
        try:
            return await func(), attempt
        except retry_on as e:
            last_error = e
            logger.warning(f"{label} attempt {attempt}/{policy.max_attempts} failed: {e}")

    raise RetryExhaustedError(policy.max_attempts, last_error)
