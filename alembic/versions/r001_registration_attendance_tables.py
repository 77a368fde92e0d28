"""Create registration and attendance tables

Revision ID: r001_registration_attendance
Revises:
Create Date: 2026-10-19

Creates events, registrations, attendance_status and qr_scan_logs.

attendance_status is keyed by registration_id so scans can use a single
INSERT ... ON CONFLICT (registration_id) DO UPDATE ... WHERE status <> 'attended'.
qr_scan_logs has no foreign key: invalid scans may reference unknown ids.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "r001_registration_attendance"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "events",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("event_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("outsider_allowed", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("outsider_max_participants", sa.Integer(), nullable=True),
        sa.Column("total_participants", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "registrations",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("event_id", sa.String(), nullable=False),
        sa.Column("registration_type", sa.String(length=20), nullable=False),
        sa.Column("team_name", sa.String(), nullable=True),
        sa.Column("primary_name", sa.String(), nullable=False),
        sa.Column("primary_email", sa.String(), nullable=False),
        sa.Column("primary_identifier", sa.String(), nullable=True),
        sa.Column("participant_key", sa.String(), nullable=False),
        sa.Column("members", sa.JSON(), nullable=False),
        sa.Column("participant_count", sa.Integer(), nullable=False),
        sa.Column("organization_class", sa.String(length=20), nullable=False),
        sa.Column("qr_code_data", sa.JSON(), nullable=False),
        sa.Column("qr_code_generated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("custom_field_responses", sa.JSON(), nullable=True),
        sa.Column("user_email", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("event_id", "participant_key", name="uq_registrations_event_participant"),
    )
    op.create_index("ix_registrations_event_id", "registrations", ["event_id"])
    op.create_index("ix_registrations_primary_email", "registrations", ["primary_email"])
    op.create_index("ix_registrations_primary_identifier", "registrations", ["primary_identifier"])
    op.create_index("ix_registrations_organization_class", "registrations", ["organization_class"])

    op.create_table(
        "attendance_status",
        sa.Column("registration_id", sa.String(), nullable=False),
        sa.Column("event_id", sa.String(), nullable=False),
        sa.Column("status", sa.String(length=20), server_default=sa.text("'absent'"), nullable=False),
        sa.Column("marked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("marked_by", sa.String(), nullable=True),
        sa.ForeignKeyConstraint(["registration_id"], ["registrations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("registration_id"),
    )
    op.create_index("ix_attendance_status_event_id", "attendance_status", ["event_id"])

    op.create_table(
        "qr_scan_logs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("registration_id", sa.String(), nullable=True),
        sa.Column("event_id", sa.String(), nullable=False),
        sa.Column("scanned_by", sa.String(), nullable=False),
        sa.Column("scan_result", sa.String(length=20), nullable=False),
        sa.Column("failure_reason", sa.String(length=50), nullable=True),
        sa.Column("scanner_info", sa.JSON(), nullable=True),
        sa.Column("scanned_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_qr_scan_logs_registration_id", "qr_scan_logs", ["registration_id"])
    op.create_index("ix_qr_scan_logs_event_id", "qr_scan_logs", ["event_id"])


def downgrade() -> None:
    op.drop_index("ix_qr_scan_logs_event_id", table_name="qr_scan_logs")
    op.drop_index("ix_qr_scan_logs_registration_id", table_name="qr_scan_logs")
    op.drop_table("qr_scan_logs")
    op.drop_index("ix_attendance_status_event_id", table_name="attendance_status")
    op.drop_table("attendance_status")
    op.drop_index("ix_registrations_organization_class", table_name="registrations")
    op.drop_index("ix_registrations_primary_identifier", table_name="registrations")
    op.drop_index("ix_registrations_primary_email", table_name="registrations")
    op.drop_index("ix_registrations_event_id", table_name="registrations")
    op.drop_table("registrations")
    op.drop_table("events")
