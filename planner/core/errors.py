"""Error taxonomy and classification of collaborator failures."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel


class ErrorCategory(Enum):
    """Categories of errors the core can report."""

    VALIDATION_REJECTED = "validation_rejected"
    NOT_FOUND = "not_found"
    SERVICE_QUOTA_EXCEEDED = "service_quota_exceeded"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    AUTHENTICATION_FAILED = "authentication_failed"
    NETWORK_ERROR = "network_error"
    MALFORMED_RESPONSE = "malformed_response"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCode:
    """Error codes for specific error conditions."""

    # Task errors
    ERR_VALIDATION_REJECTED = "ERR_VALIDATION_REJECTED"
    ERR_TASK_NOT_FOUND = "ERR_TASK_NOT_FOUND"


class ErrorResponse(BaseModel):
    """Structured error response with user-friendly messaging."""

    code: str
    message: str
    suggestion: str
    severity: ErrorSeverity


class CollaboratorUnavailableError(Exception):
    """Raised inside the collaborator layer when output cannot be used."""


_PatternType = Literal["quota", "rate_limit", "auth", "network", "malformed"]

_ERROR_PATTERNS: dict[_PatternType, dict[str, list[str] | set[str]]] = {
    "quota": {
        "phrases": [
            "quota exceeded",
            "insufficient credits",
            "credit limit",
            "credits exhausted",
            "out of credits",
            "402",
        ],
        "exception_types": set(),
    },
    "rate_limit": {
        "phrases": [
            "rate limit",
            "too many requests",
            "rate_limit_exceeded",
            "throttled",
            "429",
        ],
        "exception_types": set(),
    },
    "auth": {
        "phrases": [
            "authentication failed",
            "invalid api key",
            "unauthorized",
            "invalid token",
            "credential not configured",
            "401",
        ],
        "exception_types": {"AuthenticationError", "PermissionError"},
    },
    "network": {
        "phrases": [
            "connection",
            "timeout",
            "network",
            "503",
            "502",
            "504",
            "unreachable",
            "circuit breaker is open",
        ],
        "exception_types": {"ConnectionError", "TimeoutError"},
    },
    "malformed": {
        "phrases": [
            "no json",
            "invalid response format",
            "empty response",
        ],
        "exception_types": {"JSONDecodeError", "ValidationError", "CollaboratorUnavailableError"},
    },
}


def _match_error_pattern(*, error_str: str, exception_type: str, pattern_type: _PatternType) -> bool:
    """Return True if the error matches the configured pattern type."""
    patterns = _ERROR_PATTERNS[pattern_type]
    return any(phrase in error_str for phrase in patterns["phrases"]) or exception_type in patterns["exception_types"]


def classify_collaborator_error(exception: Exception) -> tuple[ErrorCategory, str]:
    """Classify a failed collaborator call and return a user-friendly message.

    Malformed output is checked first since decode errors often carry
    unrelated words in their message.

    Args:
        exception: The exception raised while calling or parsing the collaborator

    Returns:
        Tuple of (ErrorCategory, user_friendly_message)
    """
    error_str = str(exception).lower()
    exception_type = type(exception).__name__

    if _match_error_pattern(error_str=error_str, exception_type=exception_type, pattern_type="malformed"):
        return (
            ErrorCategory.MALFORMED_RESPONSE,
            "The assistant returned an unusable answer. A standard plan was used instead.",
        )

    if _match_error_pattern(error_str=error_str, exception_type=exception_type, pattern_type="quota"):
        return (
            ErrorCategory.SERVICE_QUOTA_EXCEEDED,
            "The AI service quota has been exceeded. Please try again later.",
        )

    if _match_error_pattern(error_str=error_str, exception_type=exception_type, pattern_type="rate_limit"):
        return (
            ErrorCategory.RATE_LIMIT_EXCEEDED,
            "Too many requests. Please wait a moment and try again.",
        )

    if _match_error_pattern(error_str=error_str, exception_type=exception_type, pattern_type="auth"):
        return (
            ErrorCategory.AUTHENTICATION_FAILED,
            "The AI service is not configured. Please contact support.",
        )

    if _match_error_pattern(error_str=error_str, exception_type=exception_type, pattern_type="network"):
        return (
            ErrorCategory.NETWORK_ERROR,
            "The AI service could not be reached. Please try again later.",
        )

    return (
        ErrorCategory.UNKNOWN,
        "An unexpected error occurred. Please try again later.",
    )


def validation_rejected_response(reason: str) -> ErrorResponse:
    """Build the response surfaced when the title quality gate refuses a mutation."""
    return ErrorResponse(
        code=ErrorCode.ERR_VALIDATION_REJECTED,
        message=reason,
        suggestion='Use a short, descriptive title such as "Study Chapter 3".',
        severity=ErrorSeverity.LOW,
    )


def not_found_response(task_id: str, subtask_id: str | None = None) -> ErrorResponse:
    """Build the response surfaced for a stale or unknown task or subtask reference."""
    if subtask_id is None:
        message = f"Task {task_id} was not found."
    else:
        message = f"Subtask {subtask_id} was not found on task {task_id}."
    return ErrorResponse(
        code=ErrorCode.ERR_TASK_NOT_FOUND,
        message=message,
        suggestion="Refresh your task list and try again.",
        severity=ErrorSeverity.LOW,
    )
