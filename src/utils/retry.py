"""Retry logic with structured logging using tenacity."""

from __future__ import annotations

import functools
from typing import TYPE_CHECKING, ParamSpec, TypeVar

import requests
import structlog
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

if TYPE_CHECKING:
    from collections.abc import Callable

P = ParamSpec("P")
T = TypeVar("T")

logger = structlog.get_logger(__name__)

# Exception types that trigger retries:
# - Standard Python network errors (ConnectionError, TimeoutError, OSError)
# - requests transport and HTTP status errors (raised via raise_for_status)
# - ValueError raised for undecodable or malformed listing payloads
_RETRYABLE_EXCEPTIONS: tuple[type[BaseException], ...] = (
    ConnectionError,
    TimeoutError,
    OSError,
    requests.RequestException,
    ValueError,
)


def _log_retry(retry_state: RetryCallState) -> None:
    """Log retry attempt with structured context."""
    logger.warning(
        "retrying_operation",
        attempt=retry_state.attempt_number,
        function=getattr(retry_state.fn, "__name__", "unknown"),
        error=str(retry_state.outcome.exception()) if retry_state.outcome else "unknown",
    )


def retry_with_logging(
    max_attempts: int = 3,
    min_wait: float = 2,
    max_wait: float = 10,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Decorator using tenacity with structured logging.

    Retries on: ConnectionError, TimeoutError, OSError, requests errors and
    ValueError (bad payloads). Uses exponential backoff starting at
    ``min_wait`` seconds, capped at ``max_wait``.
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @retry(
            stop=stop_after_attempt(max_attempts),
            wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
            retry=retry_if_exception_type(_RETRYABLE_EXCEPTIONS),
            before_sleep=_log_retry,
            reraise=True,
        )
        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator
