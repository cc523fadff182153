"""
Health check endpoints.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Request
from pydantic import BaseModel

from ...core.config import get_settings
from ..deps import RecordRepositoryDep
from ..schemas.common import ApiResponse
from ..utils.responses import ok

router = APIRouter(prefix="/health", tags=["health"])


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    timestamp: datetime
    version: str
    service: str
    records: int


@router.get("", response_model=ApiResponse[HealthResponse])
async def health_check(request: Request, records: RecordRepositoryDep):
    """
    Health check endpoint.

    Returns the current status of the service and the number of stored
    patient records.
    """
    settings = get_settings()
    return ok(request, data=HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=settings.app_version,
        service=settings.app_name,
        records=len(records.load_all()),
    ), message="OK")
