"""
Utility functions for clinician assignment lookups.

These queries are shared by the authorization guard, the assignment store and
the handoff state machine, so "is clinician X assigned to patient Y" is
answered the same way everywhere.
"""

from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import func

from models import AssignmentRole, ClinicianAssignment, Patient


def get_patient_in_organization(
    db: Session,
    patient_id: int,
    organization_id: int
) -> Optional[Patient]:
    """
    Get a patient only if it belongs to the given organization.

    Args:
        db: Database session
        patient_id: Patient ID
        organization_id: Organization ID

    Returns:
        Patient, or None if missing or owned by another organization
    """
    return db.query(Patient).filter(
        Patient.id == patient_id,
        Patient.organization_id == organization_id
    ).first()


def get_assignment(
    db: Session,
    patient_id: int,
    clinician_id: int
) -> Optional[ClinicianAssignment]:
    """Get the assignment row of a clinician for a patient, if any."""
    return db.query(ClinicianAssignment).filter(
        ClinicianAssignment.patient_id == patient_id,
        ClinicianAssignment.clinician_id == clinician_id
    ).first()


def is_clinician_assigned(
    db: Session,
    patient_id: int,
    clinician_id: int
) -> bool:
    """
    Check if a clinician currently appears in a patient's assignments (any role).

    Args:
        db: Database session
        patient_id: Patient ID
        clinician_id: Clinician (user) ID

    Returns:
        True if assigned, False otherwise
    """
    return get_assignment(db, patient_id, clinician_id) is not None


def get_assignments_for_patient(db: Session, patient_id: int) -> List[ClinicianAssignment]:
    """All assignments of a patient in insertion order."""
    return db.query(ClinicianAssignment).filter(
        ClinicianAssignment.patient_id == patient_id
    ).order_by(ClinicianAssignment.id).all()


def count_primary_clinicians(db: Session, patient_id: int) -> int:
    """Number of clinicians assigned to the patient with the primary role."""
    return db.query(func.count(ClinicianAssignment.id)).filter(
        ClinicianAssignment.patient_id == patient_id,
        ClinicianAssignment.role == AssignmentRole.PRIMARY
    ).scalar() or 0
