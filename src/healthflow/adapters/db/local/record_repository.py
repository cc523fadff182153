"""
Key-value backed implementation of RecordRepository.

The whole store is one JSON blob under a single key. Every mutation works on
a copy of the in-memory map, persists the full blob, and only then swaps the
copy in, so a failed write leaves the previous state untouched.
"""

import copy
import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from pydantic import ValidationError

from healthflow.adapters.storage.key_value_store import KeyValueStore
from healthflow.application.ports.repositories.record_repo import RecordRepository
from healthflow.core.exceptions import PersistenceError
from healthflow.core.utils.datetime_utils import ensure_utc, get_current_timestamp
from healthflow.domain.entities.patient import PatientDetails, PatientRecord
from healthflow.domain.entities.prescription import Medication, PrescriptionData
from healthflow.domain.enums.frequency import Frequency
from healthflow.domain.value_objects.upid import Upid

from .models import (
    MedicationDocument,
    PatientDetailsDocument,
    PatientRecordDocument,
    PrescriptionDocument,
)

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "healthflow_v1_records"
DEFAULT_DEDUP_WINDOW_SECONDS = 30.0


class LocalRecordRepository(RecordRepository):
    """RecordRepository persisted as a single blob in a KeyValueStore."""

    def __init__(
        self,
        store: KeyValueStore,
        key: str = DEFAULT_STORAGE_KEY,
        dedup_window_seconds: float = DEFAULT_DEDUP_WINDOW_SECONDS,
        clock: Callable[[], datetime] = get_current_timestamp,
    ) -> None:
        self._store = store
        self._key = key
        self._dedup_window = timedelta(seconds=dedup_window_seconds)
        self._clock = clock
        self._records: Dict[str, PatientRecord] = self.load_all()

    @property
    def dedup_window(self) -> timedelta:
        return self._dedup_window

    def __len__(self) -> int:
        return len(self._records)

    def load_all(self) -> Dict[str, PatientRecord]:
        """Restore the store; a corrupt blob yields an empty store."""
        raw = self._store.get(self._key)
        if raw is None:
            return {}
        try:
            records = self._decode(raw)
        except PersistenceError as e:
            logger.error(f"Failed to load records, starting with an empty store: {e.message}", exc_info=True)
            return {}
        logger.info(f"Loaded {len(records)} patient records")
        return records

    def lookup(self, upid: str) -> Optional[PatientRecord]:
        try:
            key = Upid.parse(upid).value
        except ValueError:
            return None
        record = self._records.get(key)
        return copy.deepcopy(record) if record else None

    def commit_session(
        self,
        details: PatientDetails,
        prescription: PrescriptionData,
        now: Optional[datetime] = None,
    ) -> bool:
        key = Upid.parse(details.upid).value
        when = ensure_utc(prescription.date or now or self._clock())

        existing = self._records.get(key)
        if existing and self._is_duplicate(existing, when):
            logger.info(f"Dropped duplicate commit for {key} at {when.isoformat()}")
            return False

        snapshot = copy.deepcopy(details)
        snapshot.upid = key
        history = copy.deepcopy(existing.history) if existing else []
        updated = dict(self._records)
        updated[key] = PatientRecord(details=snapshot, history=[prescription.stamped(when), *history])

        self._persist(updated)
        self._records = updated
        logger.info(f"Committed prescription for {key} ({len(updated[key].history)} in history)")
        return True

    def delete_record(self, upid: str) -> bool:
        try:
            key = Upid.parse(upid).value
        except ValueError:
            return False
        if key not in self._records:
            return False

        updated = dict(self._records)
        del updated[key]
        self._persist(updated)
        self._records = updated
        logger.info(f"Deleted patient record {key}")
        return True

    def recent_records(self, limit: int = 3) -> List[PatientRecord]:
        oldest = datetime.min.replace(tzinfo=timezone.utc)
        ordered = sorted(
            self._records.values(),
            key=lambda record: record.last_visit or oldest,
            reverse=True,
        )
        return [copy.deepcopy(record) for record in ordered[:limit]]

    def new_upid(self) -> str:
        while True:
            candidate = Upid.generate().value
            if candidate not in self._records:
                return candidate
            logger.warning(f"Generated UPID {candidate} already in use, regenerating")

    def _is_duplicate(self, record: PatientRecord, when: datetime) -> bool:
        for entry in record.history:
            if entry.date and abs(when - entry.date) < self._dedup_window:
                return True
        return False

    def _persist(self, records: Dict[str, PatientRecord]) -> None:
        payload = {
            key: self._domain_to_document(record).model_dump(mode="json", by_alias=True)
            for key, record in records.items()
        }
        self._store.set(self._key, json.dumps(payload))

    def _decode(self, raw: str) -> Dict[str, PatientRecord]:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise PersistenceError("Stored records are not valid JSON", {"error": str(e)}) from e
        if not isinstance(data, dict):
            raise PersistenceError(
                "Stored records are not a JSON object", {"type": type(data).__name__}
            )

        records: Dict[str, PatientRecord] = {}
        for key, value in data.items():
            try:
                upid = Upid.parse(key).value
                document = PatientRecordDocument.model_validate(value)
            except (ValueError, ValidationError) as e:
                logger.warning(f"Skipping malformed stored record {key!r}: {e}")
                continue
            record = self._document_to_domain(document)
            record.details.upid = upid
            records[upid] = record
        return records

    @staticmethod
    def _domain_to_document(record: PatientRecord) -> PatientRecordDocument:
        details = record.details
        return PatientRecordDocument(
            details=PatientDetailsDocument(
                name=details.name,
                age=details.age,
                gender=getattr(details.gender, "value", details.gender),
                upid=details.upid,
                phone=details.phone,
                email=details.email,
                allergies=details.allergies,
            ),
            history=[
                PrescriptionDocument(
                    diagnosis=entry.diagnosis,
                    medications=[
                        MedicationDocument(
                            id=med.id,
                            name=med.name,
                            dosage=med.dosage,
                            frequency=med.frequency.value,
                            duration=med.duration,
                            instructions=med.instructions,
                            custom_frequency=med.custom_frequency,
                        )
                        for med in entry.medications
                    ],
                    advice=entry.advice,
                    follow_up=entry.follow_up,
                    date=entry.date,
                )
                for entry in record.history
            ],
        )

    @staticmethod
    def _document_to_domain(document: PatientRecordDocument) -> PatientRecord:
        d = document.details
        details = PatientDetails(
            name=d.name,
            age=d.age,
            gender=d.gender,
            upid=d.upid,
            phone=d.phone,
            email=d.email,
            allergies=d.allergies,
        )
        history = []
        for entry in document.history:
            medications = []
            for med in entry.medications:
                frequency = Frequency.parse(med.frequency)
                custom = med.custom_frequency
                if frequency is Frequency.CUSTOM and custom is None and med.frequency != Frequency.CUSTOM.value:
                    custom = med.frequency
                medications.append(
                    Medication(
                        id=med.id,
                        name=med.name,
                        dosage=med.dosage,
                        frequency=frequency,
                        duration=med.duration,
                        instructions=med.instructions,
                        custom_frequency=custom,
                    )
                )
            date = ensure_utc(entry.date) if entry.date else None
            history.append(
                PrescriptionData(
                    diagnosis=entry.diagnosis,
                    medications=medications,
                    advice=entry.advice,
                    follow_up=entry.follow_up,
                    date=date,
                )
            )
        return PatientRecord(details=details, history=history)
