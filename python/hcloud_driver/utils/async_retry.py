"""
hcloud_driver/utils/async_retry.py

Provides a decorator to retry an async function multiple times upon selected failures.
"""

import asyncio
import logging
from typing import Any, Callable, Coroutine, Tuple, Type
from typing_extensions import ParamSpec, TypeVar

P = ParamSpec("P")
R = TypeVar("R")

logger = logging.getLogger(__name__)


def async_retry(
    retries: int = 3,
    delay: float = 1.0,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    noisy: bool = False,
) -> Callable[
    [Callable[P, Coroutine[Any, Any, R]]], Callable[P, Coroutine[Any, Any, R]]
]:
    """Decorates an async function to retry upon failure.

    The decorated function will be attempted up to `retries` times, with a delay
    of `delay` seconds between each attempt. Only exceptions matching `retry_on`
    trigger another attempt; anything else propagates immediately.

    Args:
        retries (int, optional):
            Maximum number of total attempts (not just failures). Defaults to 3.
        delay (float, optional):
            Delay in seconds between attempts. Defaults to 1.0.
        retry_on (Tuple[Type[BaseException], ...], optional):
            Exception types considered transient. Defaults to (Exception,).
        noisy (bool, optional):
            If True, logs a warning on each failure and an error if all attempts fail.
            Defaults to False.

    Returns:
        A decorator that, when applied to an async function, returns a wrapped
        version that retries on the selected exceptions.
    """

    def decorator(
        func: Callable[P, Coroutine[Any, Any, R]]
    ) -> Callable[P, Coroutine[Any, Any, R]]:
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            for attempt_number in range(1, retries + 1):
                try:
                    return await func(*args, **kwargs)
                except retry_on as exc:
                    if attempt_number >= retries:
                        if noisy:
                            logger.error(
                                "All %d attempts failed for %r: %s",
                                retries,
                                func.__qualname__,
                                exc,
                            )
                        raise
                    if noisy:
                        logger.warning(
                            "Attempt %d/%d for %r failed: %s",
                            attempt_number,
                            retries,
                            func.__qualname__,
                            exc,
                        )
                    await asyncio.sleep(delay)
            raise RuntimeError("async_retry requires retries >= 1")

        return wrapper

    return decorator
