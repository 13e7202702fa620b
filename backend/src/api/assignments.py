# pyright: reportMissingTypeStubs=false
"""
Clinician assignment API endpoints.

Admins and owners assign clinicians to patients; any active member may read
a patient's assignments.
"""

import logging

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from api.dependencies import get_assignment_service
from api.responses import ClinicianAssignmentListResponse, ClinicianAssignmentResponse
from auth.dependencies import UserContext, get_current_user
from models import AssignmentRole
from services.clinician_assignment_service import ClinicianAssignmentService

logger = logging.getLogger(__name__)

router = APIRouter()


class AssignClinicianRequest(BaseModel):
    """Request model for assigning a clinician to a patient."""
    clinician_id: int
    role: AssignmentRole = AssignmentRole.SECONDARY


@router.get(
    "/patients/{patient_id}/assignments",
    summary="List clinicians assigned to a patient",
    response_model=ClinicianAssignmentListResponse
)
def list_assignments(
    patient_id: int,
    current_user: UserContext = Depends(get_current_user),
    service: ClinicianAssignmentService = Depends(get_assignment_service)
) -> ClinicianAssignmentListResponse:
    """Get a patient's clinician assignments in the order they were made."""
    assignments = service.list_for_patient(patient_id, current_user)
    return ClinicianAssignmentListResponse(
        assignments=[ClinicianAssignmentResponse.model_validate(a) for a in assignments]
    )


@router.post(
    "/patients/{patient_id}/assignments",
    summary="Assign a clinician to a patient",
    response_model=ClinicianAssignmentResponse,
    status_code=status.HTTP_201_CREATED
)
def assign_clinician(
    patient_id: int,
    request: AssignClinicianRequest,
    current_user: UserContext = Depends(get_current_user),
    service: ClinicianAssignmentService = Depends(get_assignment_service)
) -> ClinicianAssignmentResponse:
    """
    Assign a clinician to a patient.

    Admin or owner only.
    """
    assignment = service.assign(patient_id, request.clinician_id, request.role, current_user)
    return ClinicianAssignmentResponse.model_validate(assignment)


@router.delete(
    "/patients/{patient_id}/assignments/{clinician_id}",
    summary="Remove a clinician from a patient",
    status_code=status.HTTP_204_NO_CONTENT
)
def unassign_clinician(
    patient_id: int,
    clinician_id: int,
    current_user: UserContext = Depends(get_current_user),
    service: ClinicianAssignmentService = Depends(get_assignment_service)
) -> None:
    """
    Remove a clinician assignment.

    Admin or owner only. The last primary clinician cannot be removed.
    """
    service.unassign(patient_id, clinician_id, current_user)
