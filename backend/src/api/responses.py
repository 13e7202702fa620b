"""
Shared response models for API endpoints.

This module contains Pydantic response models that are shared across
the assignment, handoff and organization endpoints.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from models import AssignmentRole, HandoffStatus, OrganizationRole


class ClinicianAssignmentResponse(BaseModel):
    """Response model for a clinician assignment."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    clinician_id: int
    role: AssignmentRole
    assigned_at: datetime
    assigned_by: Optional[int] = None


class ClinicianAssignmentListResponse(BaseModel):
    """Response model for listing a patient's assignments."""
    assignments: List[ClinicianAssignmentResponse]


class PatientHandoffResponse(BaseModel):
    """Response model for a patient handoff."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    requesting_clinician_id: int
    receiving_clinician_id: int
    status: HandoffStatus
    requested_role: Optional[AssignmentRole] = None
    message: Optional[str] = None
    reason: Optional[str] = None
    requested_at: datetime
    responded_at: Optional[datetime] = None
    responded_by: Optional[int] = None


class PatientHandoffListResponse(BaseModel):
    """Response model for listing handoffs."""
    handoffs: List[PatientHandoffResponse]


class ClinicianResponse(BaseModel):
    """Response model for an active organization member."""
    user_id: int
    full_name: Optional[str] = None
    email: str
    role: OrganizationRole


class ClinicianListResponse(BaseModel):
    """Response model for listing organization clinicians."""
    clinicians: List[ClinicianResponse]
