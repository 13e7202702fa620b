"""
Patient handoff model.

A handoff is a request from one clinician to transfer responsibility for a
patient to another clinician of the same organization. It is created in the
``requested`` state and moves exactly once to a terminal state.
"""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint, Enum, ForeignKey, Index, Text, TIMESTAMP, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base
from models.clinician_assignment import AssignmentRole


class HandoffStatus(str, enum.Enum):
    """Lifecycle state of a handoff."""

    REQUESTED = "requested"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not HandoffStatus.REQUESTED


class PatientHandoff(Base):
    """Transfer request of a patient between two clinicians."""

    __tablename__ = "patient_handoffs"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    patient_id: Mapped[int] = mapped_column(ForeignKey("patients.id", ondelete="CASCADE"))

    organization_id: Mapped[int] = mapped_column(ForeignKey("organizations.id", ondelete="CASCADE"))
    """Denormalized from the patient so pending lists stay organization-scoped without a join."""

    requesting_clinician_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    receiving_clinician_id: Mapped[int] = mapped_column(ForeignKey("users.id"))

    status: Mapped[HandoffStatus] = mapped_column(
        Enum(
            HandoffStatus,
            name="handoff_status",
            native_enum=False,
            length=20,
            values_callable=lambda statuses: [status.value for status in statuses],
        ),
        nullable=False,
        default=HandoffStatus.REQUESTED,
    )

    requested_role: Mapped[Optional[AssignmentRole]] = mapped_column(
        Enum(
            AssignmentRole,
            name="assignment_role",
            native_enum=False,
            length=20,
            values_callable=lambda roles: [role.value for role in roles],
        ),
        nullable=True,
    )
    """Role the receiving clinician gets on approval. NULL inherits the requester's role."""

    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    """Free-text note from the requester."""

    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    """Reason given by the receiving clinician (required on reject, optional on approve)."""

    requested_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    responded_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    responded_by: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    # Relationships
    patient = relationship("Patient", back_populates="handoffs")

    __table_args__ = (
        CheckConstraint(
            'requesting_clinician_id <> receiving_clinician_id',
            name='ck_patient_handoffs_distinct_clinicians'
        ),
        # At most one pending request per (patient, requester); concurrent requests collide here
        Index(
            'uq_patient_handoffs_pending_requester',
            'patient_id', 'requesting_clinician_id',
            unique=True,
            postgresql_where=text("status = 'requested'"),
            sqlite_where=text("status = 'requested'"),
        ),
        Index('idx_patient_handoffs_patient_requested_at', 'patient_id', 'requested_at'),
        Index('idx_patient_handoffs_receiving_status', 'receiving_clinician_id', 'status'),
        Index('idx_patient_handoffs_requesting_status', 'requesting_clinician_id', 'status'),
    )

    def __repr__(self) -> str:
        return (
            f"<PatientHandoff(id={self.id}, patient_id={self.patient_id}, "
            f"requesting={self.requesting_clinician_id}, receiving={self.receiving_clinician_id}, "
            f"status={self.status})>"
        )
