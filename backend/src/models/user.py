"""
User model for organization personnel.

Users are global identities; their role and display name are organization
specific and live on OrganizationMember.
"""

from datetime import datetime

from sqlalchemy import String, TIMESTAMP, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base


class User(Base):
    """Identity of a person who can act inside one or more organizations."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True)  # Globally unique (not per-organization)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    memberships = relationship(
        "OrganizationMember",
        back_populates="user",
        cascade="all, delete-orphan"
    )
    """Organization memberships. Roles and names are organization-specific."""

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
