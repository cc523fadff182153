"""FastAPI dependency providers."""

import logging
from functools import lru_cache
from typing import Annotated, Dict, Optional

from fastapi import Depends

from ..adapters.db.local.record_repository import LocalRecordRepository
from ..adapters.external.email_service_simulated import SimulatedEmailService
from ..adapters.external.extraction_service_openai import OpenAIExtractionService
from ..adapters.external.summary_service_openai import OpenAISummaryService
from ..adapters.storage.key_value_store import FileKeyValueStore
from ..application.ports.repositories.record_repo import RecordRepository
from ..application.ports.services.email_service import EmailService
from ..application.ports.services.extraction_service import ExtractionService
from ..application.ports.services.summary_service import SummaryService
from ..application.use_cases.consultation_flow import ConsultationFlowUseCase
from ..core.config import get_settings
from ..domain.entities.session import ConsultationSession
from .errors import SessionNotFoundError

logger = logging.getLogger("healthflow")


class SessionRegistry:
    """In-process consultation sessions keyed by session id."""

    def __init__(self) -> None:
        self._sessions: Dict[str, ConsultationSession] = {}

    def add(self, session: ConsultationSession) -> ConsultationSession:
        self._sessions[session.session_id] = session
        return session

    def get(self, session_id: str) -> Optional[ConsultationSession]:
        return self._sessions.get(session_id)

    def require(self, session_id: str) -> ConsultationSession:
        session = self.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def __len__(self) -> int:
        return len(self._sessions)


@lru_cache()
def get_record_repository() -> RecordRepository:
    """Get record repository instance backed by the configured store directory."""
    settings = get_settings()
    store = FileKeyValueStore(settings.store.path)
    logger.info(f"Record store at {store.directory} (key={settings.store.key})")
    return LocalRecordRepository(
        store,
        key=settings.store.key,
        dedup_window_seconds=settings.store.dedup_window_seconds,
    )


@lru_cache()
def get_extraction_service() -> ExtractionService:
    return OpenAIExtractionService()


@lru_cache()
def get_summary_service() -> SummaryService:
    return OpenAISummaryService()


@lru_cache()
def get_email_service() -> EmailService:
    return SimulatedEmailService()


@lru_cache()
def get_session_registry() -> SessionRegistry:
    return SessionRegistry()


def get_consultation_flow(
    records: Annotated[RecordRepository, Depends(get_record_repository)],
    extraction: Annotated[ExtractionService, Depends(get_extraction_service)],
    summary: Annotated[SummaryService, Depends(get_summary_service)],
    email: Annotated[EmailService, Depends(get_email_service)],
) -> ConsultationFlowUseCase:
    return ConsultationFlowUseCase(records, extraction, summary, email)


# Dependency annotations for FastAPI
RecordRepositoryDep = Annotated[RecordRepository, Depends(get_record_repository)]
SessionRegistryDep = Annotated[SessionRegistry, Depends(get_session_registry)]
ConsultationFlowDep = Annotated[ConsultationFlowUseCase, Depends(get_consultation_flow)]
