"""
Utility modules for the care-team backend.

This package contains shared helpers used across the application, including
datetime utilities and database query helpers for assignments.
"""

from utils.assignment_queries import get_patient_in_organization, is_clinician_assigned

__all__ = ['get_patient_in_organization', 'is_clinician_assigned']
