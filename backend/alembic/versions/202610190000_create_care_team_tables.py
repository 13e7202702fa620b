"""Create care team tables

Organizations, users and memberships are the minimal tenancy schema the
assignment and handoff tables hang off.

Revision ID: 202610190000
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '202610190000'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'organizations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_organizations_id', 'organizations', ['id'])

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_users_id', 'users', ['id'])

    op.create_table(
        'organization_members',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('organization_id', sa.Integer(), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=False, server_default=''),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('user_id', 'organization_id', name='uq_user_organization'),
    )
    op.create_index('ix_organization_members_id', 'organization_members', ['id'])
    op.create_index('idx_organization_members_organization', 'organization_members', ['organization_id'])
    op.create_index(
        'idx_organization_members_user_active_organization',
        'organization_members',
        ['user_id', 'is_active', 'organization_id'],
        postgresql_where=sa.text('is_active = TRUE')
    )

    op.create_table(
        'patients',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('organization_id', sa.Integer(), sa.ForeignKey('organizations.id'), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_patients_id', 'patients', ['id'])
    op.create_index('ix_patients_organization_id', 'patients', ['organization_id'])

    op.create_table(
        'clinician_assignments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('patient_id', sa.Integer(), sa.ForeignKey('patients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('clinician_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('organization_id', sa.Integer(), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('assigned_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('assigned_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.UniqueConstraint('patient_id', 'clinician_id', name='uq_clinician_assignments_patient_clinician'),
    )
    op.create_index('ix_clinician_assignments_id', 'clinician_assignments', ['id'])
    op.create_index(
        'idx_clinician_assignments_clinician', 'clinician_assignments', ['clinician_id', 'organization_id']
    )

    op.create_table(
        'patient_handoffs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('patient_id', sa.Integer(), sa.ForeignKey('patients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('organization_id', sa.Integer(), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('requesting_clinician_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('receiving_clinician_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('requested_role', sa.String(20), nullable=True),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('requested_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('responded_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('responded_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.CheckConstraint(
            'requesting_clinician_id <> receiving_clinician_id',
            name='ck_patient_handoffs_distinct_clinicians'
        ),
    )
    op.create_index('ix_patient_handoffs_id', 'patient_handoffs', ['id'])
    # At most one pending request per (patient, requester)
    op.create_index(
        'uq_patient_handoffs_pending_requester',
        'patient_handoffs',
        ['patient_id', 'requesting_clinician_id'],
        unique=True,
        postgresql_where=sa.text("status = 'requested'")
    )
    op.create_index('idx_patient_handoffs_patient_requested_at', 'patient_handoffs', ['patient_id', 'requested_at'])
    op.create_index('idx_patient_handoffs_receiving_status', 'patient_handoffs', ['receiving_clinician_id', 'status'])
    op.create_index('idx_patient_handoffs_requesting_status', 'patient_handoffs', ['requesting_clinician_id', 'status'])


def downgrade() -> None:
    op.drop_table('patient_handoffs')
    op.drop_table('clinician_assignments')
    op.drop_table('patients')
    op.drop_table('organization_members')
    op.drop_table('users')
    op.drop_table('organizations')
