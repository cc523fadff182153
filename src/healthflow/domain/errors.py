"""
Domain-specific error types for business rule violations.
"""

from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base domain error."""

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


class PatientValidationError(DomainError):
    """Patient details failed one or more field rules."""

    def __init__(self, field_errors: Dict[str, str]) -> None:
        self.field_errors = dict(field_errors)
        fields = ", ".join(sorted(self.field_errors))
        message = f"Invalid patient details: {fields}"
        super().__init__(
            message, "INVALID_PATIENT_DATA", {"field_errors": self.field_errors}
        )


class PatientNotFoundError(DomainError):
    """Patient record not found."""

    def __init__(self, upid: str) -> None:
        message = f"No patient record found for UPID '{upid}'"
        super().__init__(message, "PATIENT_NOT_FOUND", {"upid": upid})


class HistoryEntryNotFoundError(DomainError):
    """Requested prescription is not in the patient's history."""

    def __init__(self, upid: str, index: int) -> None:
        message = f"Patient '{upid}' has no prescription at position {index}"
        super().__init__(
            message, "HISTORY_ENTRY_NOT_FOUND", {"upid": upid, "index": index}
        )


class MedicationNotFoundError(DomainError):
    """Medication id not present in the draft prescription."""

    def __init__(self, medication_id: str) -> None:
        message = f"Medication '{medication_id}' not found"
        super().__init__(
            message, "MEDICATION_NOT_FOUND", {"medication_id": medication_id}
        )


class InvalidTransitionError(DomainError):
    """Action not allowed on the session's current screen."""

    def __init__(self, action: str, screen: str) -> None:
        message = f"Cannot {action} from the '{screen}' screen"
        super().__init__(
            message, "INVALID_TRANSITION", {"action": action, "screen": screen}
        )


class ConfirmationRequiredError(DomainError):
    """Destructive action attempted without explicit confirmation."""

    def __init__(self, action: str) -> None:
        message = f"'{action}' is irreversible and must be explicitly confirmed"
        super().__init__(message, "CONFIRMATION_REQUIRED", {"action": action})
