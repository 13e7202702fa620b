"""
Test configuration and shared fixtures for the care-team test suite.

Each test gets its own in-memory SQLite database with the full schema and
foreign keys enforced. Thread-based concurrency tests build their own
file-backed database with ``create_file_engine``.
"""

import threading
from typing import Any, Dict, Generator, List, Tuple

import pytest
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

from auth.dependencies import UserContext
from auth.permissions import AuthorizationGuard
from core.database import create_database_engine, create_session_factory, create_tables
from services.audit_service import AuditRecorder
from services.clinician_assignment_service import ClinicianAssignmentService
from services.membership_service import SqlMembershipDirectory
from services.patient_handoff_service import PatientHandoffService
from utils.datetime_utils import utc_now

# Import all models to ensure they're registered with SQLAlchemy before any relationships are resolved
from models import (
    AssignmentRole,
    ClinicianAssignment,
    Organization,
    OrganizationMember,
    OrganizationRole,
    Patient,
    User,
)


def create_memory_engine() -> Engine:
    """In-memory SQLite engine with the schema created. One connection shared by all sessions."""
    engine = create_database_engine("sqlite://", poolclass=StaticPool)
    create_tables(engine)
    return engine


def create_file_engine(path: str) -> Engine:
    """
    File-backed SQLite engine for multi-threaded tests.

    Every session gets its own connection, so concurrent writers really
    contend on the database lock and the unique indexes.
    """
    engine = create_database_engine(
        f"sqlite:///{path}",
        poolclass=NullPool,
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    create_tables(engine)
    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    return create_session_factory(engine)


@pytest.fixture(scope="function")
def db_engine() -> Generator[Engine, None, None]:
    engine = create_memory_engine()
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Provide a database session on a fresh schema for each test."""
    session = make_session_factory(db_engine)()
    yield session
    session.close()


# ===== Collaborator fakes =====

class FakeAuditSink:
    """Audit sink that keeps records in memory and can fail a number of times first."""

    def __init__(self, failures: int = 0):
        self.failures = failures
        self.attempts = 0
        self.records: List[Tuple[str, str, int, int]] = []
        self._lock = threading.Lock()

    def record(self, action: str, resource_type: str, resource_id: int, actor_id: int) -> None:
        with self._lock:
            self.attempts += 1
            if self.failures > 0:
                self.failures -= 1
                raise ConnectionError("audit store unavailable")
            self.records.append((action, resource_type, resource_id, actor_id))

    def actions(self) -> List[str]:
        return [record[0] for record in self.records]


class FakeNotificationDispatcher:
    """Notification dispatcher that keeps events in memory, or always fails."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.events: List[Tuple[str, int, Dict[str, Any]]] = []
        self._lock = threading.Lock()

    def emit(self, event_kind: str, recipient_id: int, payload: Dict[str, Any]) -> None:
        if self.fail:
            raise ConnectionError("notification service unavailable")
        with self._lock:
            self.events.append((event_kind, recipient_id, payload))

    def kinds(self) -> List[str]:
        return [event[0] for event in self.events]


@pytest.fixture
def audit_sink() -> FakeAuditSink:
    return FakeAuditSink()


@pytest.fixture
def notifier() -> FakeNotificationDispatcher:
    return FakeNotificationDispatcher()


# ===== Helper functions =====

def create_user_with_membership(
    db_session: Session,
    organization: Organization,
    full_name: str,
    email: str,
    role: OrganizationRole,
    is_active: bool = True
) -> Tuple[User, OrganizationMember]:
    """
    Create a user and their organization membership.

    Args:
        db_session: Database session
        organization: Organization the user belongs to
        full_name: Organization-specific display name
        email: User's email (must be globally unique)
        role: Role in the organization
        is_active: Whether the membership is active

    Returns:
        Tuple of (User, OrganizationMember)
    """
    user = User(email=email)
    db_session.add(user)
    db_session.flush()  # Flush to get user.id

    membership = OrganizationMember(
        user_id=user.id,
        organization_id=organization.id,
        role=role,
        full_name=full_name,
        is_active=is_active
    )
    db_session.add(membership)
    db_session.commit()
    return user, membership


def add_membership(
    db_session: Session,
    user: User,
    organization: Organization,
    role: OrganizationRole,
    full_name: str = ""
) -> OrganizationMember:
    """Add an existing user to another organization."""
    membership = OrganizationMember(
        user_id=user.id,
        organization_id=organization.id,
        role=role,
        full_name=full_name,
        is_active=True
    )
    db_session.add(membership)
    db_session.commit()
    return membership


def create_assignment(
    db_session: Session,
    patient: Patient,
    clinician: User,
    role: AssignmentRole,
    assigned_by: User
) -> ClinicianAssignment:
    """Insert an assignment directly, bypassing the service (no audit)."""
    assignment = ClinicianAssignment(
        patient_id=patient.id,
        clinician_id=clinician.id,
        organization_id=patient.organization_id,
        role=role,
        assigned_at=utc_now(),
        assigned_by=assigned_by.id
    )
    db_session.add(assignment)
    db_session.commit()
    return assignment


def actor_for(user: User, organization: Organization) -> UserContext:
    return UserContext(user_id=user.id, organization_id=organization.id, email=user.email)


def build_services(
    db_session: Session,
    audit_sink: Any,
    notifier: Any,
    revoke_requester_on_approve: bool = True,
    audit_max_attempts: int = 3
) -> Tuple[ClinicianAssignmentService, PatientHandoffService]:
    """Wire the assignment and handoff services to the given fakes, without audit retry delays."""
    directory = SqlMembershipDirectory(db_session)
    guard = AuthorizationGuard(db_session, directory)
    audit = AuditRecorder(audit_sink, max_attempts=audit_max_attempts, wait_seconds=0)
    assignments = ClinicianAssignmentService(db_session, guard, directory, audit)
    handoffs = PatientHandoffService(
        db_session,
        guard,
        directory,
        assignments,
        audit,
        notifier,
        revoke_requester_on_approve=revoke_requester_on_approve
    )
    return assignments, handoffs


# ===== Domain fixtures =====

@pytest.fixture
def organization(db_session) -> Organization:
    organization = Organization(name="Riverside Care")
    db_session.add(organization)
    db_session.commit()
    return organization


@pytest.fixture
def other_organization(db_session) -> Organization:
    organization = Organization(name="Hillside Clinic")
    db_session.add(organization)
    db_session.commit()
    return organization


@pytest.fixture
def admin(db_session, organization) -> User:
    user, _ = create_user_with_membership(
        db_session, organization, "Alice Admin", "admin@riverside.test", OrganizationRole.ADMIN
    )
    return user


@pytest.fixture
def clinician_x(db_session, organization) -> User:
    user, _ = create_user_with_membership(
        db_session, organization, "Dr. Xavier", "x@riverside.test", OrganizationRole.CLINICIAN
    )
    return user


@pytest.fixture
def clinician_y(db_session, organization) -> User:
    user, _ = create_user_with_membership(
        db_session, organization, "Dr. Yara", "y@riverside.test", OrganizationRole.CLINICIAN
    )
    return user


@pytest.fixture
def clinician_z(db_session, organization) -> User:
    user, _ = create_user_with_membership(
        db_session, organization, "Dr. Zane", "z@riverside.test", OrganizationRole.CLINICIAN
    )
    return user


@pytest.fixture
def outsider(db_session, other_organization) -> User:
    user, _ = create_user_with_membership(
        db_session, other_organization, "Dr. Outside", "out@hillside.test", OrganizationRole.CLINICIAN
    )
    return user


@pytest.fixture
def patient(db_session, organization) -> Patient:
    patient = Patient(organization_id=organization.id, full_name="Pat Doe")
    db_session.add(patient)
    db_session.commit()
    return patient


@pytest.fixture
def assigned_patient(db_session, patient, clinician_x, admin) -> Patient:
    """Patient with clinician X as its only (primary) clinician."""
    create_assignment(db_session, patient, clinician_x, AssignmentRole.PRIMARY, admin)
    return patient


@pytest.fixture
def services(db_session, audit_sink, notifier) -> Tuple[ClinicianAssignmentService, PatientHandoffService]:
    return build_services(db_session, audit_sink, notifier)


@pytest.fixture
def assignment_service(services) -> ClinicianAssignmentService:
    return services[0]


@pytest.fixture
def handoff_service(services) -> PatientHandoffService:
    return services[1]
