# pyright: reportMissingTypeStubs=false
"""
Patient handoff API endpoints.

A clinician assigned to a patient requests a handoff to a colleague; the
receiving clinician approves or rejects it; the requester may cancel while it
is still pending.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from api.dependencies import get_handoff_service
from api.responses import PatientHandoffListResponse, PatientHandoffResponse
from auth.dependencies import UserContext, get_current_user
from core.constants import MAX_HANDOFF_MESSAGE_LENGTH, MAX_HANDOFF_REASON_LENGTH
from models import AssignmentRole
from services.patient_handoff_service import PatientHandoffService

logger = logging.getLogger(__name__)

router = APIRouter()


class HandoffCreateRequest(BaseModel):
    """Request model for creating a handoff."""
    receiving_clinician_id: int
    requested_role: Optional[AssignmentRole] = None  # None inherits the requester's role on approval
    message: Optional[str] = Field(None, max_length=MAX_HANDOFF_MESSAGE_LENGTH)


class HandoffApproveRequest(BaseModel):
    """Request model for approving a handoff."""
    reason: Optional[str] = Field(None, max_length=MAX_HANDOFF_REASON_LENGTH)


class HandoffRejectRequest(BaseModel):
    """Request model for rejecting a handoff. Blank reasons are rejected by the service."""
    reason: Optional[str] = Field(None, max_length=MAX_HANDOFF_REASON_LENGTH)


@router.post(
    "/patients/{patient_id}/handoffs",
    summary="Request a patient handoff",
    response_model=PatientHandoffResponse,
    status_code=status.HTTP_201_CREATED
)
def request_handoff(
    patient_id: int,
    request: HandoffCreateRequest,
    current_user: UserContext = Depends(get_current_user),
    service: PatientHandoffService = Depends(get_handoff_service)
) -> PatientHandoffResponse:
    """Request that another clinician take over a patient. Requester must be assigned."""
    handoff = service.request_handoff(
        patient_id,
        current_user,
        receiving_clinician_id=request.receiving_clinician_id,
        requested_role=request.requested_role,
        message=request.message
    )
    return PatientHandoffResponse.model_validate(handoff)


@router.get(
    "/patients/{patient_id}/handoffs",
    summary="List a patient's handoffs",
    response_model=PatientHandoffListResponse
)
def list_patient_handoffs(
    patient_id: int,
    current_user: UserContext = Depends(get_current_user),
    service: PatientHandoffService = Depends(get_handoff_service)
) -> PatientHandoffListResponse:
    """Get every handoff of a patient, newest request first."""
    handoffs = service.list_for_patient(patient_id, current_user)
    return PatientHandoffListResponse(
        handoffs=[PatientHandoffResponse.model_validate(h) for h in handoffs]
    )


@router.get(
    "/handoffs/pending",
    summary="List pending handoffs for the current clinician",
    response_model=PatientHandoffListResponse
)
def list_pending_handoffs(
    current_user: UserContext = Depends(get_current_user),
    service: PatientHandoffService = Depends(get_handoff_service)
) -> PatientHandoffListResponse:
    """Get pending handoffs the caller sent or received."""
    handoffs = service.list_pending_for_clinician(current_user.user_id, current_user)
    return PatientHandoffListResponse(
        handoffs=[PatientHandoffResponse.model_validate(h) for h in handoffs]
    )


@router.get(
    "/handoffs/{handoff_id}",
    summary="Get a handoff",
    response_model=PatientHandoffResponse
)
def get_handoff(
    handoff_id: int,
    current_user: UserContext = Depends(get_current_user),
    service: PatientHandoffService = Depends(get_handoff_service)
) -> PatientHandoffResponse:
    return PatientHandoffResponse.model_validate(service.get_handoff(handoff_id, current_user))


@router.post(
    "/handoffs/{handoff_id}/approve",
    summary="Approve a handoff",
    response_model=PatientHandoffResponse
)
def approve_handoff(
    handoff_id: int,
    request: Optional[HandoffApproveRequest] = None,
    current_user: UserContext = Depends(get_current_user),
    service: PatientHandoffService = Depends(get_handoff_service)
) -> PatientHandoffResponse:
    """Approve a pending handoff. Receiving clinician only."""
    reason = request.reason if request else None
    handoff = service.approve_handoff(handoff_id, current_user, reason=reason)
    return PatientHandoffResponse.model_validate(handoff)


@router.post(
    "/handoffs/{handoff_id}/reject",
    summary="Reject a handoff",
    response_model=PatientHandoffResponse
)
def reject_handoff(
    handoff_id: int,
    request: HandoffRejectRequest,
    current_user: UserContext = Depends(get_current_user),
    service: PatientHandoffService = Depends(get_handoff_service)
) -> PatientHandoffResponse:
    """Reject a pending handoff with a reason. Receiving clinician only."""
    handoff = service.reject_handoff(handoff_id, current_user, request.reason)
    return PatientHandoffResponse.model_validate(handoff)


@router.post(
    "/handoffs/{handoff_id}/cancel",
    summary="Cancel a handoff",
    response_model=PatientHandoffResponse
)
def cancel_handoff(
    handoff_id: int,
    current_user: UserContext = Depends(get_current_user),
    service: PatientHandoffService = Depends(get_handoff_service)
) -> PatientHandoffResponse:
    """Cancel a pending handoff. Requesting clinician only."""
    handoff = service.cancel_handoff(handoff_id, current_user)
    return PatientHandoffResponse.model_validate(handoff)
