"""
Error handling module for sessionkeeper.

This module provides structured error handling with:
- ErrorCode enum for standardized error codes
- AppException class for session store exceptions
- Factory helpers for the common failure cases
"""

from sessionkeeper.errors.codes import ErrorCode, is_retryable
from sessionkeeper.errors.exceptions import (
    AppException,
    invalid_session,
    session_decode_error,
    session_store_unavailable,
)

__all__ = [
    "ErrorCode",
    "AppException",
    "is_retryable",
    "invalid_session",
    "session_decode_error",
    "session_store_unavailable",
]
