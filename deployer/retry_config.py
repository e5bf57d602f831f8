"""
Bounded Retry for Transient Cluster Failures

Wraps individual API calls with tenacity so network blips and temporary
API server unavailability do not fail a deployment outright. Only
TransientError is retried; conflicts, validation failures and not-found
results go straight back to the caller.
"""

from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception,
    before_sleep_log,
)
import logging
from typing import Callable, Optional

from .config import Settings, get_settings
from .errors import TransientError

logger = logging.getLogger(__name__)


def is_retryable_error(exception: BaseException) -> bool:
    """
    Check if an exception should trigger a retry.

    Example:
        >>> is_retryable_error(TransientError("503 Service Unavailable"))
        True
        >>> from deployer.errors import ConflictError
        >>> is_retryable_error(ConflictError("409 Conflict"))
        False
    """
    return isinstance(exception, TransientError)


def create_retry_decorator(
    max_attempts: int = 3,
    min_wait: float = 1.0,
    max_wait: float = 10.0,
    exponential_base: float = 2.0
) -> Callable:
    """
    Create a retry decorator for cluster API calls.

    Backoff doubles from ``min_wait`` up to ``max_wait``:
    - 1st retry: wait ~min_wait
    - 2nd retry: wait ~2 * min_wait
    - ...

    Args:
        max_attempts: Total attempts including the first (1 disables retry)
        min_wait: Minimum wait time in seconds
        max_wait: Maximum wait time in seconds
        exponential_base: Base for exponential backoff

    Returns:
        Retry decorator for async callables; the last error is re-raised
    """
    return retry(
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait_exponential(
            multiplier=1,
            min=min_wait,
            max=max_wait,
            exp_base=exponential_base
        ),
        retry=retry_if_exception(is_retryable_error),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True
    )


def retry_from_settings(settings: Optional[Settings] = None) -> Callable:
    """Retry decorator configured from ``k8s_retry_*`` settings."""
    settings = settings or get_settings()
    return create_retry_decorator(
        max_attempts=settings.k8s_retry_max_attempts,
        min_wait=settings.k8s_retry_min_wait,
        max_wait=settings.k8s_retry_max_wait
    )

