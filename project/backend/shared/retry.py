"""
Retry logic with exponential backoff.

Decorator for automatic retry of async callables on retryable errors.
"""

import asyncio
import functools
from typing import Any, Awaitable, Callable, Tuple, Type, TypeVar

from shared.errors import RetryableError
from shared.logging import get_logger

T = TypeVar("T")
logger = get_logger("retry")


def retry_with_backoff(
    max_attempts: int = 3,
    base_delay: float = 2,
    retryable_exceptions: Tuple[Type[Exception], ...] = (RetryableError,)
):
    """
    Decorator for retrying coroutines with exponential backoff.

    Args:
        max_attempts: Total number of attempts, first call included (default: 3)
        base_delay: Base delay in seconds for exponential backoff (default: 2)
        retryable_exceptions: Exception types that trigger another attempt

    Returns:
        Decorated coroutine function

    Example:
        @retry_with_backoff(max_attempts=2, base_delay=0.5, retryable_exceptions=(EngineLaunchError,))
        async def run_ffmpeg_command(...):
            ...
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            for attempt in range(max_attempts):
                try:
                    return await func(*args, **kwargs)
                except retryable_exceptions as e:
                    if attempt >= max_attempts - 1:
                        logger.error(
                            f"All {max_attempts} attempts failed for {func.__name__}",
                            extra={"error": str(e)}
                        )
                        raise
                    # Exponential backoff: base, 2*base, 4*base, ...
                    delay = base_delay * (2 ** attempt)
                    logger.warning(
                        f"Retry attempt {attempt + 1}/{max_attempts} for {func.__name__} "
                        f"after {delay}s delay",
                        extra={"error": str(e), "attempt": attempt + 1}
                    )
                    await asyncio.sleep(delay)
            raise RuntimeError(f"Function {func.__name__} failed after {max_attempts} attempts")

        return wrapper

    return decorator
