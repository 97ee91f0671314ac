"""create notifications

Revision ID: 20261018_0005
Revises: 20261018_0004
Create Date: 2026-10-18 00:40:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261018_0005"
down_revision = "20261018_0004"
branch_labels = None
depends_on = None


notification_type_enum = sa.Enum(
    "timetable_published",
    "timetable_updated",
    "system",
    "announcement",
    name="notification_type",
)
notification_audience_enum = sa.Enum("all", "students", "teachers", "coordinators", name="notification_audience")
notification_priority_enum = sa.Enum("low", "medium", "high", name="notification_priority")


def upgrade() -> None:
    op.create_table(
        "notifications",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("notification_type", notification_type_enum, nullable=False),
        sa.Column("target_audience", notification_audience_enum, nullable=False),
        sa.Column("related_timetable_id", sa.String(length=36), nullable=True),
        sa.Column("priority", notification_priority_enum, nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by_id", sa.String(length=36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_notifications_target_audience", "notifications", ["target_audience"])
    op.create_index("ix_notifications_related_timetable_id", "notifications", ["related_timetable_id"])


def downgrade() -> None:
    op.drop_index("ix_notifications_related_timetable_id", table_name="notifications")
    op.drop_index("ix_notifications_target_audience", table_name="notifications")
    op.drop_table("notifications")
    notification_priority_enum.drop(op.get_bind(), checkfirst=True)
    notification_type_enum.drop(op.get_bind(), checkfirst=True)
    notification_audience_enum.drop(op.get_bind(), checkfirst=True)
