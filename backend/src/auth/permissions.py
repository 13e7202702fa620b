"""
Authorization guard for care-team operations.

All capability checks for assignments and handoffs live here, as plain
predicates over the acting user. Callers turn a False into
NotAuthorizedError with ``require`` before performing any write.
"""

from typing import Optional

from sqlalchemy.orm import Session

from auth.dependencies import UserContext
from core.exceptions import NotAuthorizedError
from models import PatientHandoff
from services.membership_service import MembershipDirectory
from utils.assignment_queries import is_clinician_assigned


def require(allowed: bool, message: Optional[str] = None) -> None:
    """
    Raise NotAuthorizedError unless a capability check passed.

    Args:
        allowed: Result of one of the guard predicates
        message: Optional message for the error
    """
    if not allowed:
        raise NotAuthorizedError(message) if message else NotAuthorizedError()


class AuthorizationGuard:
    """Capability predicates. Holds no state of its own."""

    def __init__(self, db: Session, directory: MembershipDirectory):
        self.db = db
        self.directory = directory

    def can_view_organization(self, actor: UserContext, organization_id: int) -> bool:
        """Any active member may read assignments, handoffs and the clinician list."""
        if actor.organization_id != organization_id:
            return False
        return self.directory.role(actor.user_id, organization_id) is not None

    def can_manage_assignments(self, actor: UserContext, organization_id: int) -> bool:
        """Admins and owners of the organization may assign and unassign clinicians."""
        if actor.organization_id != organization_id:
            return False
        role = self.directory.role(actor.user_id, organization_id)
        return role is not None and role.can_manage_assignments

    def can_request_handoff(self, actor: UserContext, patient_id: int) -> bool:
        """Only a clinician currently assigned to the patient (any role) may hand it off."""
        return is_clinician_assigned(self.db, patient_id, actor.user_id)

    def can_respond_to_handoff(self, actor: UserContext, handoff: PatientHandoff) -> bool:
        """Only the receiving clinician may approve or reject."""
        return actor.user_id == handoff.receiving_clinician_id

    def can_cancel_handoff(self, actor: UserContext, handoff: PatientHandoff) -> bool:
        """Only the requesting clinician may cancel."""
        return actor.user_id == handoff.requesting_clinician_id
