"""
Error code catalog for sessionkeeper.

This module defines the error codes raised by the session store, covering
backing-store availability, data decoding, invalid input and configuration
failures.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """
    Enumeration of all error codes used by the session store.

    Codes fall into these categories:
    - Backing store errors: the keyed record service is unreachable or
      the keyspace is missing
    - Data errors: a stored record could not be decoded
    - Input errors: the caller supplied a session that cannot be stored
    - Configuration errors
    """

    # Backing store errors
    SESSION_STORE_UNAVAILABLE = "SESSION_STORE_UNAVAILABLE"
    """Backing store unreachable or keyspace missing"""

    # Data errors
    SESSION_DECODE_ERROR = "SESSION_DECODE_ERROR"
    """Stored session content is not valid serialized data"""

    # Input errors
    INVALID_SESSION = "INVALID_SESSION"
    """Session content is not serializable"""

    # Configuration errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    """Required configuration missing or invalid"""


# Codes worth retrying: the same call may succeed once the store recovers
RETRYABLE_ERROR_CODES: frozenset[ErrorCode] = frozenset({
    ErrorCode.SESSION_STORE_UNAVAILABLE,
})


def is_retryable(error_code: ErrorCode) -> bool:
    """
    Check whether an error code describes a transient failure.

    Args:
        error_code: The error code to classify

    Returns:
        True if retrying the failed operation may succeed
    """
    return error_code in RETRYABLE_ERROR_CODES
