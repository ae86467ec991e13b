"""
Retry and Performance Utilities

This module contains the retry decorator used around remote model calls and a
timing context manager for pipeline phases.
"""

import time
import logging
from contextlib import contextmanager
from functools import wraps
from typing import Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_TRANSIENT_MARKERS = ("rate", "capacity", "429", "timeout", "timed out", "503", "temporarily")


class RetryConfig:
    """Configuration for retry logic"""
    def __init__(self, max_retries: int = 3, base_delay: float = 1.0,
                 exponential_base: float = 2.0, max_delay: float = 60.0):
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.exponential_base = exponential_base
        self.max_delay = max_delay

    def delay_for(self, attempt: int) -> float:
        return min(self.base_delay * (self.exponential_base ** attempt), self.max_delay)


def is_transient_error(error: Exception, markers: Tuple[str, ...] = DEFAULT_TRANSIENT_MARKERS) -> bool:
    """Check whether an error message looks like a rate limit or capacity problem"""
    error_msg = str(error).lower()
    return any(marker in error_msg for marker in markers)


def with_retry(retry_config: RetryConfig = None,
               transient_errors: Tuple[str, ...] = DEFAULT_TRANSIENT_MARKERS,
               sleep: Callable[[float], None] = time.sleep):
    """Decorator for retry logic with exponential backoff on transient errors"""
    if retry_config is None:
        retry_config = RetryConfig()

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            for attempt in range(retry_config.max_retries):
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    final_attempt = attempt >= retry_config.max_retries - 1
                    if final_attempt or not is_transient_error(e, transient_errors):
                        raise
                    delay = retry_config.delay_for(attempt)
                    logger.warning(f"Transient error in {func.__name__} "
                                   f"(attempt {attempt + 1}/{retry_config.max_retries}): {e}")
                    logger.info(f"Retrying in {delay:.1f}s...")
                    sleep(delay)
        return wrapper
    return decorator


@contextmanager
def performance_timer(operation_name: str, stats_dict: Optional[Dict] = None):
    """Context manager for timing operations"""
    start_time = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - start_time
        logger.info(f"{operation_name} completed in {duration:.2f}s")
        if stats_dict is not None:
            stats_dict.setdefault(operation_name, []).append(duration)


__all__ = ['RetryConfig', 'with_retry', 'is_transient_error', 'performance_timer']
