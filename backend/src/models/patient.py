"""
Patient model.

Only the columns the care-team subsystem needs are mapped here: identity,
owning organization and the display name used in handoff notifications.
Patient CRUD lives in the records service.
"""

from datetime import datetime

from sqlalchemy import String, ForeignKey, TIMESTAMP, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base


class Patient(Base):
    """
    Patient belonging to exactly one organization.

    Who may access the patient's clinical data is recorded in
    ClinicianAssignment, never on the patient row itself.
    """

    __tablename__ = "patients"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    """Unique identifier for the patient."""

    organization_id: Mapped[int] = mapped_column(ForeignKey("organizations.id"), index=True)
    """Reference to the organization that owns this patient."""

    full_name: Mapped[str] = mapped_column(String(255))
    """Full name of the patient."""

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    """Timestamp when the patient was first created."""

    # Relationships
    organization = relationship("Organization", back_populates="patients")

    clinician_assignments = relationship(
        "ClinicianAssignment",
        back_populates="patient",
        cascade="all, delete-orphan",
        order_by="ClinicianAssignment.id",
    )
    """Clinicians currently responsible for this patient."""

    handoffs = relationship("PatientHandoff", back_populates="patient", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Patient(id={self.id}, organization_id={self.organization_id}, full_name='{self.full_name}')>"
