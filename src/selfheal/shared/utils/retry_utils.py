"""Async retry with exponential backoff and jitter."""

import asyncio
import functools
import random
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from selfheal.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def async_retry(
    retries: int = 3,
    initial_delay: float = 1.0,
    max_delay: float = 30.0,
    backoff_factor: float = 2.0,
    jitter: bool = True,
    exceptions: tuple[type[Exception], ...] = (Exception,),
):
    """
    Decorator for async functions implementing exponential backoff with jitter.

    Args:
        retries: Retries after the first attempt (0 disables retrying)
        initial_delay: Delay before the first retry, in seconds
        max_delay: Upper bound for a single delay, in seconds
        backoff_factor: Multiplier applied per attempt
        jitter: Add +/-10% randomness to each delay
        exceptions: Exception types that trigger a retry; others propagate at once
    """
    if not exceptions:
        exceptions = (Exception,)

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper_async(*args: Any, **kwargs: Any) -> T:
            for attempt in range(retries + 1):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    if attempt == retries:
                        logger.error(
                            "retry_exhausted",
                            function=getattr(func, "__name__", repr(func)),
                            attempts=attempt + 1,
                            error=str(e),
                        )
                        raise

                    current_delay = min(initial_delay * (backoff_factor**attempt), max_delay)
                    if jitter:
                        current_delay = current_delay * (1 + random.uniform(-0.1, 0.1))

                    logger.warning(
                        "retry_scheduled",
                        function=getattr(func, "__name__", repr(func)),
                        attempt=attempt + 1,
                        retries=retries,
                        error_type=type(e).__name__,
                        error=str(e),
                        delay_seconds=round(current_delay, 2),
                    )
                    await asyncio.sleep(current_delay)

            raise RuntimeError("unreachable: retry loop exited without result")

        return wrapper_async

    return decorator
