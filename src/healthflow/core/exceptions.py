"""
Exception handling for HealthFlow.

This module provides custom exception classes for the infrastructure side
of the application: AI service failures and record persistence.
"""

from typing import Any, Dict, Optional


class HealthFlowException(Exception):
    """Base exception class for HealthFlow."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class PersistenceError(HealthFlowException):
    """Raised when the persisted record store cannot be read or decoded."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, "PERSISTENCE_ERROR", details)


class ExternalServiceError(HealthFlowException):
    """Raised when there's an external service error."""

    def __init__(
        self,
        service: str,
        message: str,
        error_code: str = "EXTERNAL_SERVICE_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.service = service
        full_message = f"{service} service error: {message}"
        super().__init__(full_message, error_code, details)


class CapacityExceededError(HealthFlowException):
    """Raised when the AI service keeps rate-limiting after every retry."""

    USER_MESSAGE = (
        "AI Service Capacity Limit: You have exceeded the rate limit for the AI service. "
        "Please wait 60 seconds and try again."
    )

    def __init__(self, attempts: int, last_status: Optional[int] = None) -> None:
        self.attempts = attempts
        self.last_status = last_status
        super().__init__(
            self.USER_MESSAGE,
            "CAPACITY_EXCEEDED",
            {"attempts": attempts, "last_status": last_status},
        )


class ExtractionFailedError(ExternalServiceError):
    """Raised when dictation could not be turned into a structured prescription."""

    def __init__(self, cause: BaseException, details: Optional[Dict[str, Any]] = None) -> None:
        self.cause = cause
        super().__init__("Extraction", _describe(cause), "EXTRACTION_FAILED", details)

    @property
    def user_message(self) -> str:
        """Message suitable for showing on the dictation screen."""
        if isinstance(self.cause, CapacityExceededError):
            return self.cause.message
        return "Failed to process transcription. Please try again."


class SummaryFailedError(ExternalServiceError):
    """Raised when a history summary could not be generated."""

    def __init__(self, cause: BaseException, details: Optional[Dict[str, Any]] = None) -> None:
        self.cause = cause
        super().__init__("Summary", _describe(cause), "SUMMARY_FAILED", details)

    @property
    def user_message(self) -> str:
        if isinstance(self.cause, CapacityExceededError):
            return self.cause.message
        return "Failed to generate AI summary."


def _describe(cause: BaseException) -> str:
    text = str(cause) or type(cause).__name__
    return text[:300]
