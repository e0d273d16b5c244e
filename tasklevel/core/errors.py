"""Error classification utilities for service and API errors."""

from enum import Enum

from pydantic import BaseModel

from tasklevel.core.config import Constants
from tasklevel.core.db_client import DatabaseError, RecordNotFoundError


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCode:
    """Error codes for specific error conditions."""

    ERR_VALIDATION_FAILED = "ERR_VALIDATION_FAILED"
    ERR_LIST_LIMIT_REACHED = "ERR_LIST_LIMIT_REACHED"
    ERR_QUOTA_UNAVAILABLE = "ERR_QUOTA_UNAVAILABLE"
    ERR_NOT_FOUND = "ERR_NOT_FOUND"
    ERR_PERMISSION_DENIED = "ERR_PERMISSION_DENIED"
    ERR_INVALID_STATE = "ERR_INVALID_STATE"
    ERR_INSUFFICIENT_POINTS = "ERR_INSUFFICIENT_POINTS"
    ERR_STORAGE = "ERR_STORAGE"
    ERR_NETWORK_ERROR = "ERR_NETWORK_ERROR"
    ERR_UNKNOWN = "ERR_UNKNOWN"


class ErrorResponse(BaseModel):
    """Structured error response with user-friendly messaging."""

    code: str
    message: str
    suggestion: str
    severity: ErrorSeverity
    status_code: int = Constants.HTTP_SERVER_ERROR


class ListLimitReachedError(Exception):
    """Raised when a profile already created its allowance of lists of a type today."""


class QuotaUnavailableError(Exception):
    """Raised when the list allowance could not be determined."""


class InvalidListStateError(ValueError):
    """Raised when an operation does not apply to the list's current state."""


class InsufficientPointsError(Exception):
    """Raised when a profile cannot afford a stat upgrade."""


_NETWORK_PHRASES = ("connection", "timeout", "unreachable", "502", "503", "504")


def classify_error_with_response(exception: Exception) -> ErrorResponse:  # noqa: PLR0911
    """Classify an error and return a structured response with recovery suggestions.

    Args:
        exception: The exception raised by a service call

    Returns:
        ErrorResponse with code, message, suggestion, severity and HTTP status
    """
    error_str = str(exception).lower()

    if isinstance(exception, ListLimitReachedError):
        return ErrorResponse(
            code=ErrorCode.ERR_LIST_LIMIT_REACHED,
            message="You have reached today's limit for this kind of list.",
            suggestion="Come back tomorrow or pick a different list type.",
            severity=ErrorSeverity.LOW,
            status_code=Constants.HTTP_CONFLICT,
        )

    if isinstance(exception, QuotaUnavailableError):
        return ErrorResponse(
            code=ErrorCode.ERR_QUOTA_UNAVAILABLE,
            message="We couldn't check how many lists you created today.",
            suggestion="Please try again in a moment.",
            severity=ErrorSeverity.MEDIUM,
            status_code=Constants.HTTP_SERVER_ERROR,
        )

    if isinstance(exception, RecordNotFoundError):
        return ErrorResponse(
            code=ErrorCode.ERR_NOT_FOUND,
            message="We couldn't find what you were looking for.",
            suggestion="Refresh the page and try again.",
            severity=ErrorSeverity.LOW,
            status_code=Constants.HTTP_NOT_FOUND,
        )

    if isinstance(exception, PermissionError):
        return ErrorResponse(
            code=ErrorCode.ERR_PERMISSION_DENIED,
            message="You don't have permission for this action.",
            suggestion="You can only change your own lists.",
            severity=ErrorSeverity.MEDIUM,
            status_code=Constants.HTTP_FORBIDDEN,
        )

    if isinstance(exception, InvalidListStateError):
        return ErrorResponse(
            code=ErrorCode.ERR_INVALID_STATE,
            message="This action cannot be performed on the list right now.",
            suggestion=str(exception),
            severity=ErrorSeverity.LOW,
            status_code=Constants.HTTP_CONFLICT,
        )

    if isinstance(exception, InsufficientPointsError):
        return ErrorResponse(
            code=ErrorCode.ERR_INSUFFICIENT_POINTS,
            message="You don't have enough points for this upgrade.",
            suggestion=str(exception),
            severity=ErrorSeverity.LOW,
            status_code=Constants.HTTP_CONFLICT,
        )

    if isinstance(exception, ValueError):
        return ErrorResponse(
            code=ErrorCode.ERR_VALIDATION_FAILED,
            message="Some fields are missing or invalid.",
            suggestion=str(exception),
            severity=ErrorSeverity.LOW,
            status_code=Constants.HTTP_BAD_REQUEST,
        )

    if isinstance(exception, DatabaseError):
        return ErrorResponse(
            code=ErrorCode.ERR_STORAGE,
            message="Operation failed.",
            suggestion="Please try again later.",
            severity=ErrorSeverity.HIGH,
            status_code=Constants.HTTP_SERVER_ERROR,
        )

    if isinstance(exception, ConnectionError | TimeoutError) or any(p in error_str for p in _NETWORK_PHRASES):
        return ErrorResponse(
            code=ErrorCode.ERR_NETWORK_ERROR,
            message="Network error occurred.",
            suggestion="Please check your connection and try again.",
            severity=ErrorSeverity.MEDIUM,
            status_code=Constants.HTTP_SERVER_ERROR,
        )

    return ErrorResponse(
        code=ErrorCode.ERR_UNKNOWN,
        message="An unexpected error occurred.",
        suggestion="Please try again later. If the problem persists, contact support.",
        severity=ErrorSeverity.MEDIUM,
        status_code=Constants.HTTP_SERVER_ERROR,
    )
