"""
Retry helpers for transient failures.
"""

import asyncio
import functools
from typing import Any, Awaitable, Callable, Optional, Tuple, Type

from .logging import get_logger


class RetryConfig:
    """Attempt budget and delay schedule for ``retry_on_exception``."""

    def __init__(self,
                 max_attempts: int = 3,
                 base_delay: float = 1.0,
                 max_delay: float = 30.0,
                 backoff_strategy: str = "exponential"):
        self.max_attempts = max(1, max_attempts)
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.backoff_strategy = backoff_strategy

    @classmethod
    def fixed(cls, retries: int, delay: float) -> "RetryConfig":
        """First attempt plus ``retries`` more, ``delay`` seconds apart."""
        return cls(max_attempts=retries + 1, base_delay=delay, max_delay=delay, backoff_strategy="fixed")

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after the failed ``attempt`` (1-based)."""
        if self.backoff_strategy == "exponential":
            delay = self.base_delay * (2 ** (attempt - 1))
        else:
            delay = self.base_delay
        return max(0.0, min(delay, self.max_delay))


class RetryError(Exception):
    """Raised when every attempt failed. Carries the last failure."""

    def __init__(self, message: str, last_exception: BaseException, attempts: int):
        super().__init__(message)
        self.last_exception = last_exception
        self.attempts = attempts


def retry_on_exception(exceptions: Tuple[Type[BaseException], ...] = (Exception,),
                       config: Optional[RetryConfig] = None) -> Callable:
    """Decorator retrying an async function when it raises one of ``exceptions``."""

    if config is None:
        config = RetryConfig()

    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        logger = get_logger(f"retry.{func.__name__}")

        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            for attempt in range(1, config.max_attempts + 1):
                try:
                    result = await func(*args, **kwargs)
                except exceptions as e:
                    if attempt == config.max_attempts:
                        logger.error(
                            "All retry attempts exhausted",
                            attempts=attempt,
                            error=str(e)
                        )
                        raise RetryError(
                            f"{func.__name__} failed after {attempt} attempts",
                            last_exception=e,
                            attempts=attempt
                        ) from e

                    delay = config.delay_for(attempt)
                    logger.warning(
                        "Attempt failed, retrying",
                        attempt=attempt,
                        max_attempts=config.max_attempts,
                        delay=delay,
                        error=str(e)
                    )
                    await asyncio.sleep(delay)
                else:
                    if attempt > 1:
                        logger.info("Retry succeeded", attempt=attempt)
                    return result

        return wrapper

    return decorator
