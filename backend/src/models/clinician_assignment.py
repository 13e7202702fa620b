"""
Clinician assignment model.

This model represents the assignment of clinicians to patients.
A patient can have multiple assigned clinicians (primary and secondary),
and a clinician can be assigned to multiple patients. The table is the single
source of truth for who may currently access a patient's clinical data.
"""

import enum
from datetime import datetime

from sqlalchemy import Enum, ForeignKey, Index, TIMESTAMP, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base


class AssignmentRole(str, enum.Enum):
    """Capacity in which a clinician treats a patient."""

    PRIMARY = "primary"
    SECONDARY = "secondary"


class ClinicianAssignment(Base):
    """
    Assignment of a clinician to a patient.

    Rows are never updated in place: a role change is an unassign followed
    by a new assignment.
    """

    __tablename__ = "clinician_assignments"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    """Unique identifier for the assignment. Also gives insertion order."""

    patient_id: Mapped[int] = mapped_column(ForeignKey("patients.id", ondelete="CASCADE"))
    """Reference to the patient."""

    clinician_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    """Reference to the clinician (user)."""

    organization_id: Mapped[int] = mapped_column(ForeignKey("organizations.id", ondelete="CASCADE"))
    """Reference to the organization (for organization-scoped queries)."""

    role: Mapped[AssignmentRole] = mapped_column(
        Enum(
            AssignmentRole,
            name="assignment_role",
            native_enum=False,
            length=20,
            values_callable=lambda roles: [role.value for role in roles],
        ),
        nullable=False,
    )
    """Primary or secondary responsibility."""

    assigned_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    """Timestamp when the assignment was created."""

    assigned_by: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    """User who created the assignment (an admin, or the approver of a handoff)."""

    # Relationships
    patient = relationship("Patient", back_populates="clinician_assignments")
    """Relationship to the Patient entity."""

    clinician = relationship("User", foreign_keys=[clinician_id])
    """Relationship to the User (clinician) entity."""

    __table_args__ = (
        # One assignment per patient-clinician pair; concurrent inserts collide here
        UniqueConstraint('patient_id', 'clinician_id', name='uq_clinician_assignments_patient_clinician'),
        Index('idx_clinician_assignments_clinician', 'clinician_id', 'organization_id'),
    )

    def __repr__(self) -> str:
        return (
            f"<ClinicianAssignment(patient_id={self.patient_id}, clinician_id={self.clinician_id}, "
            f"role={self.role})>"
        )
