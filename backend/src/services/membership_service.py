"""
Organization membership directory.

The authorization guard never trusts a role carried by the caller; it asks the
directory. The directory is an external collaborator (the user-management
service owns the data), consumed here through the MembershipDirectory protocol.
"""

import logging
from typing import List, Optional, Protocol

from sqlalchemy.orm import Session

from models import OrganizationMember, OrganizationRole

logger = logging.getLogger(__name__)


class MembershipDirectory(Protocol):
    """Read-only lookup of organization roles."""

    def role(self, user_id: int, organization_id: int) -> Optional[OrganizationRole]:
        """Role of an active member, or None when the user is not an active member."""
        ...

    def display_name(self, user_id: int, organization_id: int) -> Optional[str]:
        """Organization-specific display name, or None when not a member."""
        ...


class SqlMembershipDirectory:
    """MembershipDirectory backed by the organization_members table."""

    def __init__(self, db: Session):
        self.db = db

    def _get_active_membership(self, user_id: int, organization_id: int) -> Optional[OrganizationMember]:
        return self.db.query(OrganizationMember).filter(
            OrganizationMember.user_id == user_id,
            OrganizationMember.organization_id == organization_id,
            OrganizationMember.is_active == True
        ).first()

    def role(self, user_id: int, organization_id: int) -> Optional[OrganizationRole]:
        membership = self._get_active_membership(user_id, organization_id)
        return membership.role if membership else None

    def display_name(self, user_id: int, organization_id: int) -> Optional[str]:
        membership = self._get_active_membership(user_id, organization_id)
        if not membership:
            return None
        # Fall back to email when no organization-specific name was set
        return membership.full_name or membership.user.email

    def list_active_members(self, organization_id: int) -> List[OrganizationMember]:
        """Active members of an organization ordered by name."""
        return self.db.query(OrganizationMember).filter(
            OrganizationMember.organization_id == organization_id,
            OrganizationMember.is_active == True
        ).order_by(OrganizationMember.full_name, OrganizationMember.user_id).all()
