# Package initialization
# Import all models to ensure relationships are properly established
from .organization import Organization
from .user import User
from .organization_member import OrganizationMember, OrganizationRole
from .patient import Patient
from .clinician_assignment import ClinicianAssignment, AssignmentRole
from .patient_handoff import PatientHandoff, HandoffStatus

__all__ = [
    "Organization",
    "User",
    "OrganizationMember",
    "OrganizationRole",
    "Patient",
    "ClinicianAssignment",
    "AssignmentRole",
    "PatientHandoff",
    "HandoffStatus",
]
