"""
Patient record repository interface for data access abstraction.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional

from ....domain.entities.patient import PatientDetails, PatientRecord
from ....domain.entities.prescription import PrescriptionData


class RecordRepository(ABC):
    """Abstract repository for patient records keyed by UPID."""

    @abstractmethod
    def load_all(self) -> Dict[str, PatientRecord]:
        """Restore every record from durable storage (empty if unreadable)."""
        pass

    @abstractmethod
    def lookup(self, upid: str) -> Optional[PatientRecord]:
        """Find a record by UPID; input case and whitespace are ignored."""
        pass

    @abstractmethod
    def commit_session(
        self,
        details: PatientDetails,
        prescription: PrescriptionData,
        now: Optional[datetime] = None,
    ) -> bool:
        """Prepend a finalized prescription to the patient's history.

        Returns False when the commit was dropped as a duplicate.
        """
        pass

    @abstractmethod
    def delete_record(self, upid: str) -> bool:
        """Remove a record permanently. Returns False if it did not exist."""
        pass

    @abstractmethod
    def recent_records(self, limit: int = 3) -> List[PatientRecord]:
        """Records ordered by most recent prescription, newest first."""
        pass

    @abstractmethod
    def new_upid(self) -> str:
        """Generate a UPID not already used by a stored record."""
        pass
