"""
Exceptions raised by the session store itself.

Driver errors from a backing store (connection resets, timeouts) pass
through untouched. AppException only covers conditions the store detects:
a missing keyspace, undecodable stored content, unserializable input and
bad configuration.
"""

from typing import Any, Optional

from sessionkeeper.errors.codes import ErrorCode, is_retryable


class AppException(Exception):
    """
    Session store failure carrying an ErrorCode.

    Example:
        raise AppException(
            error_code=ErrorCode.SESSION_DECODE_ERROR,
            message="Stored session content is not valid JSON",
            details={"session_id": "abc"}
        )

    Attributes:
        error_code: Category of the failure.
        message: Human-readable description, also the exception's str().
        details: Optional context such as the session id.
    """

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        details: Optional[dict[str, Any]] = None
    ):
        self.error_code = error_code
        self.message = message
        self.details = details
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        """Whether the failed operation may succeed if attempted again."""
        return is_retryable(self.error_code)

    def to_dict(self) -> dict[str, Any]:
        """Structured form attached to error log records."""
        data: dict[str, Any] = {
            "error_code": self.error_code.value,
            "message": self.message,
        }
        if self.details is not None:
            data["details"] = self.details
        return data

    def __repr__(self) -> str:
        return (
            f"AppException(error_code={self.error_code.value!r}, "
            f"message={self.message!r}, details={self.details!r})"
        )


def session_store_unavailable(
    message: str = "Session store unavailable",
    details: Optional[dict[str, Any]] = None
) -> AppException:
    """The backing store cannot be reached or the keyspace does not exist."""
    return AppException(ErrorCode.SESSION_STORE_UNAVAILABLE, message, details)


def session_decode_error(
    message: str = "Stored session content could not be decoded",
    details: Optional[dict[str, Any]] = None
) -> AppException:
    return AppException(ErrorCode.SESSION_DECODE_ERROR, message, details)


def invalid_session(
    message: str = "Session content is not serializable",
    details: Optional[dict[str, Any]] = None
) -> AppException:
    return AppException(ErrorCode.INVALID_SESSION, message, details)
