"""
Retry utilities with exponential backoff.

Wraps calls to the LLM provider (or whole pipeline steps) so that rate-limit
failures are retried after a growing pause while everything else propagates.
"""

import asyncio
import functools
import random
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Tuple, Type, TypeVar

from videlix.core.constants import RATE_LIMITS, ProviderErrorKind
from videlix.core.exceptions import LLMProviderError
from videlix.core.logging_config import get_logger

logger = get_logger("core.retry")

T = TypeVar("T")

SleepFn = Callable[[float], Awaitable[Any]]

_RATE_LIMIT_PATTERN = re.compile(r"429|\brate\b|rate[\s_-]?limit")


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_retries: int = 3
    base_delay: float = 1.0  # seconds
    max_delay: float = 60.0  # seconds
    exponential_base: float = 2.0
    jitter: bool = True
    jitter_range: Tuple[float, float] = (0.5, 1.5)
    retryable_exceptions: Tuple[Type[Exception], ...] = (Exception,)


def calculate_delay(attempt: int, config: RetryConfig) -> float:
    """
    Calculate delay before next retry attempt.

    Args:
        attempt: Current attempt number (0-indexed)
        config: Retry configuration

    Returns:
        Delay in seconds before next attempt
    """
    delay = config.base_delay * (config.exponential_base ** attempt)
    delay = min(delay, config.max_delay)

    if config.jitter:
        delay *= random.uniform(*config.jitter_range)

    return delay


def is_rate_limit_error(error: BaseException) -> bool:
    """
    Default retry predicate: a typed rate-limit error, or a message that
    mentions a 429 or a rate limit.

    Errors wrapping a `last_error` (exhausted generations) are judged by it.
    """
    for candidate in (error, getattr(error, "last_error", None)):
        if isinstance(candidate, LLMProviderError) and candidate.kind == ProviderErrorKind.RATE_LIMITED:
            return True
    return bool(_RATE_LIMIT_PATTERN.search(str(error).lower()))


async def retry_with_backoff(
    fn: Callable[[], Awaitable[T]],
    max_retries: int = RATE_LIMITS["MAX_RETRIES"],
    initial_delay_ms: int = RATE_LIMITS["RETRY_DELAY_MS"],
    is_retryable: Callable[[BaseException], bool] = is_rate_limit_error,
    on_retry: Optional[Callable[[int, int], None]] = None,
    sleep: SleepFn = asyncio.sleep,
) -> T:
    """
    Call `fn` until it succeeds, backing off on retryable errors.

    The n-th retry (0-indexed) waits initial_delay_ms * 2^n. Non-retryable
    errors, and the error of the final attempt, propagate unchanged.

    Args:
        fn: Zero-argument coroutine function
        max_retries: Retries after the first attempt
        initial_delay_ms: Delay before the first retry
        is_retryable: Predicate deciding whether an error is worth retrying
        on_retry: Called with (attempt_number, delay_ms) before each sleep
        sleep: Awaitable sleep in seconds, injectable for tests

    Example:
        result = await retry_with_backoff(lambda: orchestrator.generate(request))
    """
    config = RetryConfig(
        max_retries=max_retries,
        base_delay=initial_delay_ms / 1000,
        max_delay=float("inf"),
        jitter=False,
    )

    for attempt in range(config.max_retries + 1):
        try:
            return await fn()
        except Exception as e:
            if attempt >= config.max_retries or not is_retryable(e):
                if attempt > 0:
                    logger.error(f"Giving up after {attempt + 1} attempt(s): {e}")
                raise

            delay = calculate_delay(attempt, config)
            logger.warning(
                f"Attempt {attempt + 1}/{config.max_retries + 1} failed: {e}. "
                f"Retrying in {delay:.2f}s..."
            )
            if on_retry:
                on_retry(attempt + 1, int(delay * 1000))
            await sleep(delay)

    raise RuntimeError("Retry logic failed unexpectedly")


def async_retry(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = True,
    retryable_exceptions: Tuple[Type[Exception], ...] = (Exception,),
    on_retry: Optional[Callable[[Exception, int], None]] = None
) -> Callable:
    """
    Decorator for async functions with retry logic.

    Example:
        @async_retry(max_retries=2, base_delay=0.5, retryable_exceptions=(OSError,))
        async def load_profiles():
            ...
    """
    config = RetryConfig(
        max_retries=max_retries,
        base_delay=base_delay,
        max_delay=max_delay,
        exponential_base=exponential_base,
        jitter=jitter,
        retryable_exceptions=retryable_exceptions
    )

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            for attempt in range(config.max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except config.retryable_exceptions as e:
                    if attempt >= config.max_retries:
                        logger.error(
                            f"All {config.max_retries + 1} attempts failed. Last error: {e}"
                        )
                        raise
                    delay = calculate_delay(attempt, config)
                    logger.warning(
                        f"Attempt {attempt + 1}/{config.max_retries + 1} failed: {e}. "
                        f"Retrying in {delay:.2f}s..."
                    )
                    if on_retry:
                        on_retry(e, attempt)
                    await asyncio.sleep(delay)

            raise RuntimeError("Retry logic failed unexpectedly")

        return wrapper
    return decorator
