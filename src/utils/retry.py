"""
Retry with exponential backoff for browser navigation.

Page loads on the registry fail transiently (slow responses, dropped
connections); these helpers retry an awaitable a bounded number of times
before letting the last error through.
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from src.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar('T')


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_retries: int = 2
    base_delay: float = 1.0
    max_delay: float = 30.0
    exponential_base: float = 2.0

    def __post_init__(self):
        """Validate configuration."""
        if self.max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        if self.base_delay <= 0:
            raise ValueError("base_delay must be positive")
        if self.max_delay < self.base_delay:
            raise ValueError("max_delay must be >= base_delay")
        if self.exponential_base <= 1:
            raise ValueError("exponential_base must be > 1")

    def delay_for(self, attempt: int) -> float:
        """Backoff before retry number attempt + 1 (attempt counts from 0)."""
        return min(self.base_delay * (self.exponential_base ** attempt), self.max_delay)


async def retry_async(
    func: Callable[[], Awaitable[T]],
    config: Optional[RetryConfig] = None,
    retry_on: tuple = (Exception,),
    on_retry: Optional[Callable[[int, Exception], None]] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Await func() until it succeeds or retries run out.

    Args:
        func: Zero-argument coroutine factory; called once per attempt
        config: Retry configuration (default: 2 retries, 1s base delay)
        retry_on: Exception types that trigger a retry
        on_retry: Optional callback (attempt, exception) before each retry
        sleep: Awaitable sleep, replaceable in tests

    Returns:
        Result of the first successful attempt

    Raises:
        The last exception once all attempts failed

    Example:
        >>> await retry_async(lambda: page.goto(url), RetryConfig(max_retries=3))
    """
    if config is None:
        config = RetryConfig()

    for attempt in range(config.max_retries + 1):
        try:
            return await func()
        except retry_on as e:
            if attempt == config.max_retries:
                logger.error(f"All {config.max_retries} retries exhausted: {e}")
                raise

            delay = config.delay_for(attempt)
            logger.warning(
                f"Retry {attempt + 1}/{config.max_retries} "
                f"after {delay:.2f}s: {e}"
            )
            if on_retry:
                on_retry(attempt + 1, e)
            await sleep(delay)

    raise RuntimeError("Retry logic error")
