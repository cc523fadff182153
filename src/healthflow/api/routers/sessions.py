"""Consultation session endpoints.

Each endpoint drives one screen transition or review edit. Domain and
service errors propagate to the application's exception handlers.
"""

import logging

from fastapi import APIRouter, Request, status

from ..deps import ConsultationFlowDep, SessionRegistryDep
from ..schemas import (
    ApiResponse,
    EmailReceiptSchema,
    ErrorResponse,
    ExtractRequest,
    MedicationSchema,
    PatientDetailsRequest,
    SessionSchema,
    UpdateMedicationRequest,
    UpdatePrescriptionRequest,
)
from ..utils.responses import ok

router = APIRouter(prefix="/sessions", tags=["Consultation Sessions"])
logger = logging.getLogger("healthflow")

_TRANSITION_ERRORS = {
    404: {"model": ErrorResponse, "description": "Session not found"},
    409: {"model": ErrorResponse, "description": "Not allowed on the current screen"},
}


@router.post(
    "",
    response_model=ApiResponse[SessionSchema],
    status_code=status.HTTP_201_CREATED,
    summary="Start a consultation on the intake screen",
)
async def create_session(request: Request, flow: ConsultationFlowDep, sessions: SessionRegistryDep):
    session = sessions.add(flow.start_session())
    return ok(request, data=SessionSchema.from_domain(session), message="Created")


@router.get("/{session_id}", response_model=ApiResponse[SessionSchema], responses=_TRANSITION_ERRORS)
async def get_session(request: Request, session_id: str, sessions: SessionRegistryDep):
    session = sessions.require(session_id)
    return ok(request, data=SessionSchema.from_domain(session))


@router.post(
    "/{session_id}/patient",
    response_model=ApiResponse[SessionSchema],
    responses={**_TRANSITION_ERRORS, 422: {"model": ErrorResponse, "description": "Invalid patient details"}},
    summary="Submit intake details and move to voice capture",
)
async def submit_patient(
    request: Request,
    session_id: str,
    body: PatientDetailsRequest,
    flow: ConsultationFlowDep,
    sessions: SessionRegistryDep,
):
    session = sessions.require(session_id)
    flow.submit_patient_details(session, body.to_domain())
    return ok(request, data=SessionSchema.from_domain(session))


@router.post(
    "/{session_id}/extract",
    response_model=ApiResponse[SessionSchema],
    responses={
        **_TRANSITION_ERRORS,
        429: {"model": ErrorResponse, "description": "AI service capacity exceeded"},
        502: {"model": ErrorResponse, "description": "Extraction failed"},
    },
    summary="Extract a draft prescription from the dictation",
)
async def extract_prescription(
    request: Request,
    session_id: str,
    body: ExtractRequest,
    flow: ConsultationFlowDep,
    sessions: SessionRegistryDep,
):
    session = sessions.require(session_id)
    prescription = await flow.extract(session, body.transcription)
    message = "Extracted" if prescription is not None else "Extraction already in progress"
    return ok(request, data=SessionSchema.from_domain(session), message=message)


@router.patch("/{session_id}/prescription", response_model=ApiResponse[SessionSchema], responses=_TRANSITION_ERRORS)
async def update_prescription(
    request: Request,
    session_id: str,
    body: UpdatePrescriptionRequest,
    flow: ConsultationFlowDep,
    sessions: SessionRegistryDep,
):
    session = sessions.require(session_id)
    flow.update_prescription_fields(
        session, diagnosis=body.diagnosis, advice=body.advice, follow_up=body.follow_up
    )
    return ok(request, data=SessionSchema.from_domain(session))


@router.post(
    "/{session_id}/medications",
    response_model=ApiResponse[MedicationSchema],
    status_code=status.HTTP_201_CREATED,
    responses=_TRANSITION_ERRORS,
)
async def add_medication(request: Request, session_id: str, flow: ConsultationFlowDep, sessions: SessionRegistryDep):
    session = sessions.require(session_id)
    medication = flow.add_medication(session)
    return ok(request, data=MedicationSchema.from_domain(medication), message="Created")


@router.patch(
    "/{session_id}/medications/{medication_id}",
    response_model=ApiResponse[MedicationSchema],
    responses=_TRANSITION_ERRORS,
)
async def update_medication(
    request: Request,
    session_id: str,
    medication_id: str,
    body: UpdateMedicationRequest,
    flow: ConsultationFlowDep,
    sessions: SessionRegistryDep,
):
    session = sessions.require(session_id)
    medication = flow.update_medication(session, medication_id, body.model_dump(exclude_none=True))
    return ok(request, data=MedicationSchema.from_domain(medication))


@router.delete(
    "/{session_id}/medications/{medication_id}",
    response_model=ApiResponse[SessionSchema],
    responses=_TRANSITION_ERRORS,
)
async def remove_medication(
    request: Request,
    session_id: str,
    medication_id: str,
    flow: ConsultationFlowDep,
    sessions: SessionRegistryDep,
):
    session = sessions.require(session_id)
    flow.remove_medication(session, medication_id)
    return ok(request, data=SessionSchema.from_domain(session), message="Deleted")


@router.post(
    "/{session_id}/finalize",
    response_model=ApiResponse[SessionSchema],
    responses=_TRANSITION_ERRORS,
    summary="Finalize the prescription and save it to the patient's history",
)
async def finalize(request: Request, session_id: str, flow: ConsultationFlowDep, sessions: SessionRegistryDep):
    session = sessions.require(session_id)
    flow.finalize(session)
    return ok(request, data=SessionSchema.from_domain(session))


@router.post(
    "/{session_id}/history/{upid}/{index}",
    response_model=ApiResponse[SessionSchema],
    responses=_TRANSITION_ERRORS,
    summary="Open a stored prescription on the final screen",
)
async def open_history(
    request: Request,
    session_id: str,
    upid: str,
    index: int,
    flow: ConsultationFlowDep,
    sessions: SessionRegistryDep,
):
    session = sessions.require(session_id)
    flow.open_history(session, upid, index)
    return ok(request, data=SessionSchema.from_domain(session))


@router.post("/{session_id}/back", response_model=ApiResponse[SessionSchema], responses=_TRANSITION_ERRORS)
async def go_back(request: Request, session_id: str, flow: ConsultationFlowDep, sessions: SessionRegistryDep):
    session = sessions.require(session_id)
    flow.back(session)
    return ok(request, data=SessionSchema.from_domain(session))


@router.post("/{session_id}/reset", response_model=ApiResponse[SessionSchema], responses=_TRANSITION_ERRORS)
async def reset(request: Request, session_id: str, flow: ConsultationFlowDep, sessions: SessionRegistryDep):
    session = sessions.require(session_id)
    flow.reset(session)
    return ok(request, data=SessionSchema.from_domain(session))


@router.post(
    "/{session_id}/send",
    response_model=ApiResponse[EmailReceiptSchema],
    responses=_TRANSITION_ERRORS,
    summary="Email the final prescription to the patient",
)
async def send_prescription(request: Request, session_id: str, flow: ConsultationFlowDep, sessions: SessionRegistryDep):
    session = sessions.require(session_id)
    receipt = await flow.send_prescription(session)
    if receipt is None:
        return ok(request, data=None, message="Send already in progress")
    logger.info(f"Prescription for {session.upid} sent, message_id={receipt.message_id}")
    return ok(request, data=EmailReceiptSchema.from_domain(receipt), message="Sent")
