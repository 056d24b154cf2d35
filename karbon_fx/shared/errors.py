"""
Error types shared by the rate client, the calculator and the API.
"""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any


class ErrorType(StrEnum):
    """Machine-readable error categories."""

    NETWORK_ERROR = "network_error"
    TIMEOUT_ERROR = "timeout_error"
    API_ERROR = "api_error"
    VALIDATION_ERROR = "validation_error"
    RATE_FETCH_ERROR = "rate_fetch_error"
    CALCULATION_ERROR = "calculation_error"


class ErrorSeverity(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


_DEFAULT_USER_MESSAGES: dict[ErrorType, str] = {
    ErrorType.NETWORK_ERROR: "Connection issue. Please check your internet and try again.",
    ErrorType.TIMEOUT_ERROR: "Request timed out. Please try again.",
    ErrorType.RATE_FETCH_ERROR: "Unable to fetch latest rates. Using fallback data.",
    ErrorType.VALIDATION_ERROR: "Please check your input and try again.",
}


class FxError(Exception):
    """Base error carrying a category, a severity and a user-facing message."""

    error_type: ErrorType = ErrorType.RATE_FETCH_ERROR
    severity: ErrorSeverity = ErrorSeverity.MEDIUM

    def __init__(
        self,
        message: str,
        details: Any = None,
        user_message: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details
        self.user_message = user_message
        self.timestamp = datetime.now(UTC)

    def user_friendly_message(self) -> str:
        """Return the explicit user message or the default for the category."""
        if self.user_message:
            return self.user_message
        return _DEFAULT_USER_MESSAGES.get(
            self.error_type, "Something went wrong. Please try again."
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": str(self.error_type),
            "message": self.message,
            "severity": str(self.severity),
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "user_message": self.user_friendly_message(),
        }


class NetworkError(FxError):
    """The request could not reach the rate endpoint."""

    error_type = ErrorType.NETWORK_ERROR
    severity = ErrorSeverity.HIGH


class RateTimeoutError(FxError):
    """A single request attempt exceeded its deadline."""

    error_type = ErrorType.TIMEOUT_ERROR


class ApiError(FxError):
    """The endpoint answered with a non-success status or an invalid payload."""

    error_type = ErrorType.API_ERROR


class RateFetchError(FxError):
    error_type = ErrorType.RATE_FETCH_ERROR


class InputValidationError(FxError):
    """User input is outside the accepted domain."""

    error_type = ErrorType.VALIDATION_ERROR
    severity = ErrorSeverity.LOW


class CalculationError(FxError):
    """Reserved for invariant violations inside the math layer."""

    error_type = ErrorType.CALCULATION_ERROR
    severity = ErrorSeverity.HIGH
