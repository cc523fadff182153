"""Stored patient record endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Query, Request

from ..deps import ConsultationFlowDep, SessionRegistryDep
from ..schemas import ApiResponse, ErrorResponse, PatientRecordSchema, RecordSummaryResponse
from ..utils.responses import ok

router = APIRouter(prefix="/records", tags=["Patient Records"])

_NOT_FOUND = {404: {"model": ErrorResponse, "description": "Patient record not found"}}


@router.get("/recent", response_model=ApiResponse[List[PatientRecordSchema]])
async def recent_records(
    request: Request,
    flow: ConsultationFlowDep,
    limit: int = Query(3, ge=1, le=50, description="Maximum number of records"),
):
    """Most recently visited patients, newest first."""
    records = flow.recent_records(limit)
    return ok(request, data=[PatientRecordSchema.from_domain(r) for r in records])


@router.get("/{upid}", response_model=ApiResponse[PatientRecordSchema], responses=_NOT_FOUND)
async def get_record(request: Request, upid: str, flow: ConsultationFlowDep):
    record = flow.lookup_record(upid)
    return ok(request, data=PatientRecordSchema.from_domain(record))


@router.post(
    "/{upid}/summary",
    response_model=ApiResponse[RecordSummaryResponse],
    responses={
        **_NOT_FOUND,
        429: {"model": ErrorResponse, "description": "AI service capacity exceeded"},
        502: {"model": ErrorResponse, "description": "Summary generation failed"},
    },
)
async def generate_summary(
    request: Request,
    upid: str,
    flow: ConsultationFlowDep,
    sessions: SessionRegistryDep,
    session_id: Optional[str] = Query(None, description="Session that serializes summary requests"),
):
    """Three-sentence AI summary of the patient's prescription history."""
    session = sessions.require(session_id) if session_id else None
    record = flow.lookup_record(upid)
    summary = await flow.generate_summary(upid, session)
    message = "OK" if summary is not None else "Summary already in progress"
    return ok(
        request,
        data=RecordSummaryResponse(upid=record.upid, patient_name=record.details.name, summary=summary),
        message=message,
    )


@router.delete(
    "/{upid}",
    response_model=ApiResponse[dict],
    responses={**_NOT_FOUND, 400: {"model": ErrorResponse, "description": "Deletion not confirmed"}},
)
async def delete_record(
    request: Request,
    upid: str,
    flow: ConsultationFlowDep,
    sessions: SessionRegistryDep,
    confirm: bool = Query(False, description="Must be true; deletion is permanent"),
    session_id: Optional[str] = Query(None, description="Session to reset after deletion"),
):
    session = sessions.require(session_id) if session_id else None
    flow.delete_record(upid, confirmed=confirm, session=session)
    return ok(request, data={"upid": upid.strip().upper(), "deleted": True}, message="Deleted")
