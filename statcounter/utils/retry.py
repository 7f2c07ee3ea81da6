# ==============================================================================
# Retry Configuration
# ==============================================================================
"""
Shared retry configuration for store connectivity checks.

Counter mutations are not idempotent and are never retried here; transient
command failures are handled by the redis-py client's own Retry policy.
Tenacity decorators are reserved for idempotent probes such as PING.

Light retry: 3 attempts over ~7 seconds (for status checks)
"""

import logging
from typing import Tuple, Type

from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

# ==============================================================================
# Retry Constants
# ==============================================================================

# Light retry configuration: 3 retries over ~7 seconds (for status checks)
RETRY_ATTEMPTS_LIGHT = 3
RETRY_WAIT_MIN = 1  # seconds
RETRY_WAIT_MAX = 32  # seconds (cap for exponential backoff)

# Valkey client retry configuration (used by redis-py client)
VALKEY_BACKOFF_BASE = 0.1  # seconds
VALKEY_BACKOFF_CAP = 10  # seconds

REDIS_RETRY_EXCEPTIONS = (
    RedisConnectionError,
    RedisTimeoutError,
)


# ==============================================================================
# Logging Callbacks
# ==============================================================================


def log_retry_attempt_light(logger: logging.Logger, attempts: int = RETRY_ATTEMPTS_LIGHT):
    """
    Create a callback that logs retry attempts for light retry.

    Args:
        logger: Logger instance to use for logging
        attempts: Total attempts, shown in the log line

    Returns:
        Callback function for tenacity's before_sleep parameter
    """

    def _log_retry(retry_state: RetryCallState) -> None:
        exception = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "Retry attempt %d/%d after error: %s",
            retry_state.attempt_number,
            attempts,
            exception,
        )

    return _log_retry


# ==============================================================================
# Retry Decorators
# ==============================================================================


def retry_light(
    exception_types: Tuple[Type[Exception], ...],
    logger: logging.Logger,
    attempts: int = RETRY_ATTEMPTS_LIGHT,
    wait_min: float = RETRY_WAIT_MIN,
):
    """
    Create a light retry decorator (3 attempts, ~7 seconds).

    Works on both plain functions and coroutines.

    Args:
        exception_types: Tuple of exception types to retry on
        logger: Logger instance for retry logging
        attempts: Total attempts before giving up
        wait_min: Minimum backoff in seconds

    Returns:
        Tenacity retry decorator

    Example:
        @retry_light(REDIS_RETRY_EXCEPTIONS, logger)
        async def ping():
            ...
    """
    return retry(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=wait_min, min=wait_min, max=RETRY_WAIT_MAX),
        retry=retry_if_exception_type(exception_types),
        before_sleep=log_retry_attempt_light(logger, attempts),
        reraise=True,
    )
