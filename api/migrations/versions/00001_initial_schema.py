"""Initial schema - membership applications, members, users, settings.

Revision ID: 00001
Revises:
Create Date: 2026-10-17

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '00001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # =====================
    # Independent tables (no foreign keys)
    # =====================

    # users
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('national_id', sa.String(11), nullable=True),
        sa.Column('student_number', sa.String(50), nullable=True),
        sa.Column('role', sa.String(20), nullable=False, server_default='user'),
        sa.Column('is_active', sa.Boolean(), default=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
        sa.UniqueConstraint('national_id'),
        sa.UniqueConstraint('student_number'),
    )

    # community_members
    op.create_table(
        'community_members',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False, server_default=''),
        sa.Column('national_id', sa.String(11), nullable=True),
        sa.Column('student_number', sa.String(50), nullable=False),
        sa.Column('department', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='APPROVED'),
        sa.Column('source', sa.String(20), nullable=False, server_default='WEBSITE'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('roster_synced_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('student_number', name='uq_community_members_student_number'),
    )
    op.create_index('ix_community_members_status', 'community_members', ['status'])

    # settings
    op.create_table(
        'settings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('key', sa.String(100), nullable=False),
        sa.Column('value', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('key'),
    )
    op.create_index('idx_settings_key', 'settings', ['key'])

    # membership_applications
    op.create_table(
        'membership_applications',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('national_id', sa.String(11), nullable=True),
        sa.Column('student_number', sa.String(50), nullable=True),
        sa.Column('phone', sa.String(11), nullable=True),
        sa.Column('department', sa.String(255), nullable=True),
        sa.Column('roster_check_status', sa.String(20), nullable=False, server_default='NOT_CHECKED'),
        sa.Column('roster_checked_at', sa.DateTime(), nullable=True),
        sa.Column('matched_member_ref', sa.String(64), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='PENDING'),
        sa.Column('auto_approved', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('auto_approval_reason', sa.String(200), nullable=True),
        sa.Column('rejection_reason', sa.String(500), nullable=True),
        sa.Column('approval_date', sa.DateTime(), nullable=True),
        sa.Column('rejected_at', sa.DateTime(), nullable=True),
        sa.Column('reviewer_ref', sa.String(64), nullable=True),
        sa.Column('created_account_ref', sa.String(64), nullable=True),
        sa.Column('account_created_at', sa.DateTime(), nullable=True),
        sa.Column('source', sa.String(20), nullable=False, server_default='WEBSITE'),
        sa.Column('submitted_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('ip_address', sa.String(64), nullable=True),
        sa.Column('user_agent', sa.String(512), nullable=True),
        sa.Column('processing_notes', sa.String(1000), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email', name='uq_membership_applications_email'),
        sa.UniqueConstraint('student_number', name='uq_membership_applications_student_number'),
        sa.UniqueConstraint('national_id', name='uq_membership_applications_national_id'),
        sa.CheckConstraint(
            'national_id IS NOT NULL OR student_number IS NOT NULL',
            name='ck_membership_applications_identification',
        ),
        sa.CheckConstraint(
            "status IN ('PENDING', 'APPROVED', 'REJECTED')",
            name='ck_membership_applications_status',
        ),
        sa.CheckConstraint(
            "roster_check_status IN ('NOT_CHECKED', 'FOUND', 'NOT_FOUND', 'ERROR')",
            name='ck_membership_applications_roster_status',
        ),
        sa.CheckConstraint(
            "source IN ('WEBSITE', 'ADMIN')",
            name='ck_membership_applications_source',
        ),
    )
    op.create_index(
        'ix_membership_applications_identification',
        'membership_applications',
        ['national_id', 'student_number'],
    )
    op.create_index(
        'ix_membership_applications_status_created',
        'membership_applications',
        ['status', 'created_at'],
    )
    op.create_index('ix_membership_applications_roster_status', 'membership_applications', ['roster_check_status'])
    op.create_index('ix_membership_applications_auto_approved', 'membership_applications', ['auto_approved'])

    # =====================
    # Dependent tables
    # =====================

    # application_decisions
    op.create_table(
        'application_decisions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('application_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(20), nullable=False),
        sa.Column('from_status', sa.String(20), nullable=False),
        sa.Column('to_status', sa.String(20), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('reviewer_ref', sa.String(64), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(
            ['application_id'], ['membership_applications.id'], ondelete='CASCADE'
        ),
    )
    op.create_index('ix_application_decisions_application', 'application_decisions', ['application_id'])
    op.create_index('ix_application_decisions_reviewer', 'application_decisions', ['reviewer_ref'])
    op.create_index('ix_application_decisions_created', 'application_decisions', ['created_at'])


def downgrade() -> None:
    # Drop in reverse order of dependencies
    op.drop_table('application_decisions')
    op.drop_table('membership_applications')
    op.drop_index('idx_settings_key', 'settings')
    op.drop_table('settings')
    op.drop_index('ix_community_members_status', 'community_members')
    op.drop_table('community_members')
    op.drop_table('users')
