from ..core.exceptions import (
    CapacityExceededError,
    ExtractionFailedError,
    HealthFlowException,
    SummaryFailedError,
)
from ..domain import errors as domain_errors


class APIError(Exception):
    def __init__(self, code: str, message: str, http_status: int = 400, details: dict = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.http_status = http_status
        self.details = details


class BadRequestError(APIError):
    def __init__(self, code: str, message: str, details: dict = None):
        super().__init__(code, message, 400, details)


class ValidationError(APIError):
    def __init__(self, message: str, details: dict = None, code: str = "INVALID_INPUT"):
        super().__init__(code, message, 422, details)


class NotFoundError(APIError):
    def __init__(self, message: str, details: dict = None, code: str = "NOT_FOUND"):
        super().__init__(code, message, 404, details)


class ConflictError(APIError):
    def __init__(self, message: str, details: dict = None, code: str = "CONFLICT"):
        super().__init__(code, message, 409, details)


class RateLimitError(APIError):
    def __init__(self, message: str, details: dict = None):
        super().__init__("RATE_LIMITED", message, 429, details)


class DownstreamError(APIError):
    def __init__(self, message: str, details: dict = None, code: str = "DOWNSTREAM_ERROR"):
        super().__init__(code, message, 502, details)


class InternalError(APIError):
    def __init__(self, message: str, details: dict = None):
        super().__init__("INTERNAL_ERROR", message, 500, details)


class SessionNotFoundError(NotFoundError):
    def __init__(self, session_id: str):
        super().__init__(f"Session not found ({session_id})", {"session_id": session_id}, "SESSION_NOT_FOUND")


_NOT_FOUND = (
    domain_errors.PatientNotFoundError,
    domain_errors.HistoryEntryNotFoundError,
    domain_errors.MedicationNotFoundError,
)


def from_domain_error(exc: domain_errors.DomainError) -> APIError:
    code = exc.error_code or "DOMAIN_ERROR"
    if isinstance(exc, domain_errors.PatientValidationError):
        return ValidationError(exc.message, exc.details, code)
    if isinstance(exc, _NOT_FOUND):
        return NotFoundError(exc.message, exc.details, code)
    if isinstance(exc, domain_errors.InvalidTransitionError):
        return ConflictError(exc.message, exc.details, code)
    return BadRequestError(code, exc.message, exc.details)


def from_service_error(exc: HealthFlowException) -> APIError:
    """Capacity exhaustion maps to 429 whether raised directly or as a cause."""
    cause = getattr(exc, "cause", None)
    if isinstance(exc, CapacityExceededError) or isinstance(cause, CapacityExceededError):
        capacity = exc if isinstance(exc, CapacityExceededError) else cause
        return RateLimitError(capacity.message, capacity.details)
    if isinstance(exc, (ExtractionFailedError, SummaryFailedError)):
        return DownstreamError(exc.user_message, exc.details, exc.error_code)
    return InternalError(exc.message, {"error_code": exc.error_code})
