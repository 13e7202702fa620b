"""
Organization model representing a tenant of the practice-management system.

An organization owns its members, its patients, the clinician assignments of
those patients and every handoff between its clinicians. Provisioning of
organizations happens elsewhere; this subsystem only reads them.
"""

from datetime import datetime

from sqlalchemy import String, TIMESTAMP, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base
from core.constants import MAX_STRING_LENGTH


class Organization(Base):
    """Tenant that scopes every patient, member and care-team record."""

    __tablename__ = "organizations"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(MAX_STRING_LENGTH))
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    members = relationship("OrganizationMember", back_populates="organization", cascade="all, delete-orphan")
    patients = relationship("Patient", back_populates="organization")

    def __repr__(self) -> str:
        return f"<Organization(id={self.id}, name='{self.name}')>"
