# pyright: reportMissingTypeStubs=false
"""
Organization API endpoints.
"""

from fastapi import APIRouter, Depends

from api.dependencies import get_membership_directory
from api.responses import ClinicianListResponse, ClinicianResponse
from auth.dependencies import UserContext, get_current_user
from auth.permissions import AuthorizationGuard, require
from services.membership_service import SqlMembershipDirectory

router = APIRouter()


@router.get(
    "/organization/clinicians",
    summary="List active members of the current organization",
    response_model=ClinicianListResponse
)
def list_clinicians(
    current_user: UserContext = Depends(get_current_user),
    directory: SqlMembershipDirectory = Depends(get_membership_directory)
) -> ClinicianListResponse:
    """
    Get the active members of the caller's organization.

    Used to pick the receiving clinician of a handoff or the clinician to assign.
    """
    guard = AuthorizationGuard(directory.db, directory)
    require(guard.can_view_organization(current_user, current_user.organization_id))
    members = directory.list_active_members(current_user.organization_id)
    return ClinicianListResponse(
        clinicians=[
            ClinicianResponse(
                user_id=member.user_id,
                full_name=member.full_name,
                email=member.user.email,
                role=member.role
            )
            for member in members
        ]
    )
