"""Baseline migration - counsellors, submissions, staffing and notifications

Revision ID: 0001_baseline
Revises:
Create Date: 2026-01-05

Creates every table used by the availability and staffing-intelligence
engine and seeds the default notification settings.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB


# revision identifiers, used by Alembic.
revision: str = '0001_baseline'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSON_TYPE = sa.JSON().with_variant(JSONB(), "postgresql")

DEFAULT_SETTINGS = [
    ("event_reminder_enabled", "true", "Enable event reminders"),
    ("event_reminder_days", "[30,14,7,3,1]", "Days before event to send reminders"),
    ("duplicate_detection_enabled", "true", "Enable duplicate submission detection"),
    ("duplicate_threshold", "0.7", "Similarity threshold for duplicates (0-1)"),
    ("staffing_warning_enabled", "true", "Enable counsellor overload warnings"),
    ("counsellor_overload_threshold", "5", "Max events per counsellor in 30 days"),
    ("anomaly_detection_enabled", "true", "Enable anomaly detection"),
    ("weekly_report_enabled", "true", "Enable weekly intelligence report"),
    ("weekly_report_day", "1", "Day of week for report (0=Sun, 1=Mon)"),
]


def _timestamps(*names: str) -> list[sa.Column]:
    return [
        sa.Column(name, sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False)
        for name in names
    ]


def upgrade() -> None:
    """Create engine tables and seed settings."""

    # ==========================================================================
    # Counsellors and presets
    # ==========================================================================
    op.create_table(
        'counsellors',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('username', sa.String(100), nullable=False, unique=True),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        *_timestamps('created_at', 'updated_at'),
    )

    for table_name in ('organizers', 'event_names', 'event_types'):
        op.create_table(
            table_name,
            sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column('name', sa.String(255), nullable=False, unique=True),
            sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
            *_timestamps('created_at'),
        )

    op.create_table(
        'country_counsellor_suggestions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('country', sa.String(100), nullable=False),
        sa.Column('counsellor_id', sa.Integer(),
                  sa.ForeignKey('counsellors.id', ondelete='CASCADE'), nullable=False),
        *_timestamps('created_at'),
        sa.UniqueConstraint('country', 'counsellor_id', name='uq_country_counsellor'),
    )

    # ==========================================================================
    # Submissions and staffing
    # ==========================================================================
    op.create_table(
        'submissions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('organizer', sa.String(500), nullable=False),
        sa.Column('organizer_id', sa.Integer(),
                  sa.ForeignKey('organizers.id', ondelete='SET NULL')),
        sa.Column('event_name_id', sa.Integer(),
                  sa.ForeignKey('event_names.id', ondelete='SET NULL')),
        sa.Column('event_type_id', sa.Integer(),
                  sa.ForeignKey('event_types.id', ondelete='SET NULL')),
        sa.Column('city', sa.String(255), nullable=False),
        sa.Column('country', sa.String(100), nullable=False),
        sa.Column('proposed_staffing', sa.Text()),
        sa.Column('remarks', sa.Text()),
        sa.Column('sent_by_counsellor_id', sa.Integer(),
                  sa.ForeignKey('counsellors.id', ondelete='SET NULL')),
        sa.Column('payment_status', sa.String(20), nullable=False, server_default='UNPAID'),
        sa.Column('event_status', sa.String(20), nullable=False, server_default='ONGOING'),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('submitted_by', sa.String(100), nullable=False),
        sa.Column('confirmed_at', sa.DateTime(timezone=True)),
        *_timestamps('created_at', 'updated_at'),
    )
    op.create_index('idx_submissions_dates', 'submissions', ['start_date', 'end_date'])
    op.create_index('idx_submissions_status', 'submissions', ['status'])
    op.create_index('idx_submissions_submitted_by', 'submissions', ['submitted_by'])

    for table_name in ('submission_assignments', 'submission_suggestions'):
        op.create_table(
            table_name,
            sa.Column('submission_id', sa.Integer(),
                      sa.ForeignKey('submissions.id', ondelete='CASCADE'), primary_key=True),
            sa.Column('counsellor_id', sa.Integer(),
                      sa.ForeignKey('counsellors.id', ondelete='CASCADE'), primary_key=True),
        )
    op.create_index('idx_assignments_counsellor', 'submission_assignments', ['counsellor_id'])

    # ==========================================================================
    # Notifications
    # ==========================================================================
    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('priority', sa.String(20), nullable=False, server_default='medium'),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('metadata', JSON_TYPE),
        sa.Column('target_role', sa.String(20), nullable=False, server_default='admin'),
        sa.Column('target_user', sa.String(100)),
        sa.Column('status', sa.String(20), nullable=False, server_default='unread'),
        sa.Column('related_submission_id', sa.Integer(),
                  sa.ForeignKey('submissions.id', ondelete='CASCADE')),
        sa.Column('expires_at', sa.DateTime(timezone=True)),
        *_timestamps('created_at'),
        sa.Column('read_at', sa.DateTime(timezone=True)),
    )
    op.create_index('idx_notifications_target', 'notifications', ['target_role', 'target_user'])
    op.create_index('idx_notifications_status', 'notifications', ['status'])
    op.create_index('idx_notifications_type', 'notifications', ['type'])
    op.create_index('idx_notifications_created', 'notifications', ['created_at'])

    settings_table = op.create_table(
        'notification_settings',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('setting_key', sa.String(100), nullable=False, unique=True),
        sa.Column('setting_value', sa.Text(), nullable=False),
        sa.Column('description', sa.Text()),
        *_timestamps('updated_at'),
    )

    op.create_table(
        'duplicate_dismissals',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('submission_id_1', sa.Integer(), nullable=False),
        sa.Column('submission_id_2', sa.Integer(), nullable=False),
        sa.Column('dismissed_by', sa.String(100), nullable=False),
        *_timestamps('dismissed_at'),
        sa.UniqueConstraint('submission_id_1', 'submission_id_2', name='uq_duplicate_pair'),
    )

    # ==========================================================================
    # Activity log
    # ==========================================================================
    op.create_table(
        'activity_log',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('action', sa.String(50), nullable=False),
        sa.Column('username', sa.String(100), nullable=False),
        sa.Column('details', JSON_TYPE),
        sa.Column('ip_address', sa.String(45)),
        *_timestamps('created_at'),
    )
    op.create_index('idx_activity_log_created', 'activity_log', ['created_at'])
    op.create_index('idx_activity_log_username', 'activity_log', ['username'])
    op.create_index('idx_activity_log_action', 'activity_log', ['action'])

    op.bulk_insert(
        settings_table,
        [
            {"setting_key": key, "setting_value": value, "description": description}
            for key, value, description in DEFAULT_SETTINGS
        ],
    )


def downgrade() -> None:
    """Drop all engine tables."""
    for table_name in (
        'activity_log',
        'duplicate_dismissals',
        'notification_settings',
        'notifications',
        'submission_suggestions',
        'submission_assignments',
        'submissions',
        'country_counsellor_suggestions',
        'event_types',
        'event_names',
        'organizers',
        'counsellors',
    ):
        op.drop_table(table_name)
