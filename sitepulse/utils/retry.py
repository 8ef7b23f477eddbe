# ==============================================================================
# Retry Configuration
# ==============================================================================
"""
Shared retry configuration for the Valkey store backend.

Provides reusable retry decorators built on tenacity:

Connection retry: 3 attempts with exponential backoff (~7 seconds) for
transient network failures.
Conflict retry: up to 20 immediate-ish attempts for optimistic transactions
that lost a compare-and-swap race against another writer.
"""

import logging
from typing import Tuple, Type

from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError
from redis.exceptions import WatchError
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

# ==============================================================================
# Retry Constants
# ==============================================================================

# Exponential backoff: 1s, 2s, 4s = ~7s total
RETRY_ATTEMPTS = 3
RETRY_WAIT_MIN = 1  # seconds
RETRY_WAIT_MAX = 4  # seconds

# Optimistic transaction conflicts are resolved by re-reading, so waits stay short
CONFLICT_ATTEMPTS = 20
CONFLICT_WAIT_MAX = 0.05  # seconds

# Valkey retry configuration (used by redis-py client)
VALKEY_RETRIES = 3

REDIS_RETRY_EXCEPTIONS = (
    RedisConnectionError,
    RedisTimeoutError,
)


# ==============================================================================
# Logging Callbacks
# ==============================================================================


def log_retry_attempt(logger: logging.Logger, max_attempts: int):
    """
    Create a callback that logs retry attempts.

    Args:
        logger: Logger instance to use for logging
        max_attempts: Attempt budget shown in the log line

    Returns:
        Callback function for tenacity's before_sleep parameter
    """

    def _log_retry(retry_state: RetryCallState) -> None:
        exception = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "Retry attempt %d/%d after error: %s",
            retry_state.attempt_number,
            max_attempts,
            exception,
        )

    return _log_retry


# ==============================================================================
# Retry Decorators
# ==============================================================================


def retry_connection(exception_types: Tuple[Type[Exception], ...], logger: logging.Logger):
    """
    Create a connection retry decorator (3 attempts, ~7 seconds).

    Args:
        exception_types: Tuple of exception types to retry on
        logger: Logger instance for retry logging

    Returns:
        Tenacity retry decorator

    Example:
        @retry_connection(REDIS_RETRY_EXCEPTIONS, logger)
        def read_blob(self, key):
            ...
    """
    return retry(
        stop=stop_after_attempt(RETRY_ATTEMPTS),
        wait=wait_exponential(multiplier=1, min=RETRY_WAIT_MIN, max=RETRY_WAIT_MAX),
        retry=retry_if_exception_type(exception_types),
        before_sleep=log_retry_attempt(logger, RETRY_ATTEMPTS),
        reraise=True,
    )


def retry_conflict(logger: logging.Logger):
    """
    Create a retry decorator for optimistic transactions.

    Retries when a WATCHed key changed between read and commit, which means
    another writer won the race and the update must be recomputed.

    Args:
        logger: Logger instance for retry logging

    Returns:
        Tenacity retry decorator
    """
    return retry(
        stop=stop_after_attempt(CONFLICT_ATTEMPTS),
        wait=wait_random(min=0, max=CONFLICT_WAIT_MAX),
        retry=retry_if_exception_type(WatchError),
        before_sleep=log_retry_attempt(logger, CONFLICT_ATTEMPTS),
        reraise=True,
    )
