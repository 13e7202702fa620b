"""
Organization membership model.

This model represents the many-to-many relationship between users and
organizations, storing the organization-specific role and display name.
It is the user directory the authorization guard reads roles from.
"""

import enum
from datetime import datetime

from sqlalchemy import Boolean, Enum, ForeignKey, Index, String, TIMESTAMP, UniqueConstraint, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base


class OrganizationRole(str, enum.Enum):
    """Role a user holds inside one organization."""

    OWNER = "owner"
    ADMIN = "admin"
    CLINICIAN = "clinician"
    CASE_MANAGER = "case_manager"
    MEMBER = "member"

    @property
    def can_manage_assignments(self) -> bool:
        """Owners and admins may assign and unassign clinicians."""
        return self in (OrganizationRole.OWNER, OrganizationRole.ADMIN)


class OrganizationMember(Base):
    """Membership of a user in an organization with an organization-specific role."""

    __tablename__ = "organization_members"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    organization_id: Mapped[int] = mapped_column(ForeignKey("organizations.id", ondelete="CASCADE"))
    role: Mapped[OrganizationRole] = mapped_column(
        Enum(
            OrganizationRole,
            name="organization_role",
            native_enum=False,
            length=20,
            values_callable=lambda roles: [role.value for role in roles],
        ),
        nullable=False,
        default=OrganizationRole.MEMBER,
    )
    full_name: Mapped[str] = mapped_column(String(255), default="")  # Organization-specific name
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    user = relationship("User", back_populates="memberships")
    organization = relationship("Organization", back_populates="members")

    __table_args__ = (
        UniqueConstraint('user_id', 'organization_id', name='uq_user_organization'),
        Index('idx_organization_members_organization', 'organization_id'),
        # Role lookups always filter on active memberships
        Index(
            'idx_organization_members_user_active_organization',
            'user_id', 'is_active', 'organization_id',
            postgresql_where=text('is_active = TRUE')
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<OrganizationMember(id={self.id}, user_id={self.user_id}, "
            f"organization_id={self.organization_id}, role={self.role})>"
        )
