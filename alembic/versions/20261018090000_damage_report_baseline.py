"""damage report baseline

Revision ID: 20261018090000
Revises:
Create Date: 2026-10-18

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

# revision identifiers, used by Alembic.
revision = "20261018090000"
down_revision = None
branch_labels = None
depends_on = None


def _party_columns(prefix: str) -> list[sa.Column]:
    return [
        sa.Column(f"{prefix}_staff", sa.String(length=80), nullable=True),
        sa.Column(f"{prefix}_phone", sa.String(length=40), nullable=True),
        sa.Column(f"{prefix}_damage", sa.Text(), nullable=True),
        sa.Column(f"{prefix}_signature", sa.Text(), nullable=True),
        sa.Column(f"{prefix}_submitted_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    existing = set(inspect(bind).get_table_names())

    if "reports" not in existing:
        op.create_table(
            "reports",
            sa.Column("id", sa.String(length=32), primary_key=True),
            sa.Column("container_no", sa.String(length=40), nullable=False),
            sa.Column("bl_no", sa.String(length=40), nullable=False),
            sa.Column("report_date", sa.String(length=20), nullable=False),
            sa.Column("vehicle_no", sa.String(length=40), nullable=False),
            sa.Column("driver_name", sa.String(length=80), nullable=False),
            sa.Column("driver_phone", sa.String(length=40), nullable=False),
            sa.Column("driver_damage", sa.Text(), nullable=True),
            sa.Column("driver_signature", sa.Text(), nullable=True),
            sa.Column("driver_submitted_at", sa.DateTime(timezone=True), nullable=True),
            *_party_columns("field"),
            *_party_columns("office"),
            sa.Column("damage_photos", sa.JSON(), nullable=False),
            sa.Column("status", sa.String(length=32), nullable=False),
            sa.Column("rejection_reason", sa.Text(), nullable=True),
            sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
            sa.Column("action_history", sa.JSON(), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("version", sa.Integer(), nullable=False),
        )
        op.create_index("ix_reports_container_no", "reports", ["container_no"])
        op.create_index("ix_reports_vehicle_no", "reports", ["vehicle_no"])
        op.create_index("ix_reports_status", "reports", ["status"])
        op.create_index("ix_reports_created_at", "reports", ["created_at"])

    if "cargo" not in existing:
        op.create_table(
            "cargo",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("container_no", sa.String(length=40), nullable=False),
            sa.Column("bl_no", sa.String(length=40), nullable=False),
        )
        op.create_index("ix_cargo_container_no", "cargo", ["container_no"], unique=True)

    if "vehicles" not in existing:
        op.create_table(
            "vehicles",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("vehicle_no", sa.String(length=40), nullable=False),
            sa.Column("driver_name", sa.String(length=80), nullable=False),
            sa.Column("driver_phone", sa.String(length=40), nullable=False),
        )
        op.create_index("ix_vehicles_vehicle_no", "vehicles", ["vehicle_no"], unique=True)

    for table in ("field_staff", "office_staff", "admin_staff"):
        if table not in existing:
            op.create_table(
                table,
                sa.Column("id", sa.Integer(), primary_key=True),
                sa.Column("name", sa.String(length=80), nullable=False),
                sa.Column("phone", sa.String(length=40), nullable=False),
            )
            op.create_index(f"ix_{table}_name", table, ["name"])

    if "notifications" not in existing:
        op.create_table(
            "notifications",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("target_role", sa.String(length=20), nullable=False),
            sa.Column("report_id", sa.String(length=32), sa.ForeignKey("reports.id"), nullable=True),
            sa.Column("type", sa.String(length=50), nullable=False),
            sa.Column("message", sa.String(length=500), nullable=False),
            sa.Column("is_read", sa.Boolean(), nullable=False),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        )
        op.create_index("ix_notifications_target_role", "notifications", ["target_role"])
        op.create_index("ix_notifications_report_id", "notifications", ["report_id"])
        op.create_index("ix_notifications_is_read", "notifications", ["is_read"])
        op.create_index("ix_notifications_created_at", "notifications", ["created_at"])


def downgrade() -> None:
    bind = op.get_bind()
    existing = set(inspect(bind).get_table_names())
    for table in ("notifications", "admin_staff", "office_staff", "field_staff", "vehicles", "cargo", "reports"):
        if table in existing:
            op.drop_table(table)
