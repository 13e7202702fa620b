"""Application constants and configuration values."""

from core.config import FRONTEND_URL

# Database field lengths
MAX_STRING_LENGTH = 255
MAX_HANDOFF_MESSAGE_LENGTH = 2000
MAX_HANDOFF_REASON_LENGTH = 2000

# Database connection settings
DB_POOL_RECYCLE_SECONDS = 300  # 5 minutes

# CORS origins for development and production
_CORS_ORIGINS_RAW = [
    "http://localhost:5173",      # React dev server (Vite)
    FRONTEND_URL,
]

# Filter out None values and empty strings to avoid CORS errors
CORS_ORIGINS = [origin for origin in _CORS_ORIGINS_RAW if origin and origin.strip()]

# Notification event kinds (one per handoff state transition)
NOTIFICATION_HANDOFF_REQUEST = "handoff_request"
NOTIFICATION_HANDOFF_APPROVED = "handoff_approved"
NOTIFICATION_HANDOFF_REJECTED = "handoff_rejected"
NOTIFICATION_HANDOFF_CANCELLED = "handoff_cancelled"

# Audit actions
AUDIT_ASSIGNMENT_CREATED = "patient.assignment.created"
AUDIT_ASSIGNMENT_REMOVED = "patient.assignment.removed"
AUDIT_HANDOFF_REQUESTED = "patient.handoff.requested"
AUDIT_HANDOFF_APPROVED = "patient.handoff.approved"
AUDIT_HANDOFF_REJECTED = "patient.handoff.rejected"
AUDIT_HANDOFF_CANCELLED = "patient.handoff.cancelled"

# Audit resource types
RESOURCE_CLINICIAN_ASSIGNMENT = "clinician_assignment"
RESOURCE_PATIENT_HANDOFF = "patient_handoff"

# Name of the logger the default audit sink writes to
AUDIT_LOGGER_NAME = "audit"
