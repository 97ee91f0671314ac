"""create timetables and timetable entries

Revision ID: 20261018_0004
Revises: 20261018_0003
Create Date: 2026-10-18 00:30:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261018_0004"
down_revision = "20261018_0003"
branch_labels = None
depends_on = None


assignment_kind_enum = sa.Enum(
    "lecture",
    "lab",
    "split_lab",
    "lunch",
    "break_",
    "library",
    "mini_project",
    "mentor",
    name="assignment_kind",
)


def upgrade() -> None:
    op.create_table(
        "timetables",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("year", sa.String(length=20), nullable=False),
        sa.Column("branch", sa.String(length=50), nullable=False),
        sa.Column("section", sa.String(length=10), nullable=False),
        sa.Column("semester", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("academic_year", sa.String(length=20), nullable=False),
        sa.Column("time_slots", sa.JSON(), nullable=False),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("published_version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("revision_history", sa.JSON(), nullable=False),
        sa.Column("created_by_id", sa.String(length=36), nullable=True),
        sa.Column("last_modified_by_id", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("year", "branch", "section", "academic_year", name="uq_timetables_class_identity"),
    )
    op.create_index("ix_timetables_branch", "timetables", ["branch"])
    op.create_index("ix_timetables_is_published", "timetables", ["is_published"])
    op.create_index("ix_timetables_created_by_id", "timetables", ["created_by_id"])

    op.create_table(
        "timetable_entries",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "timetable_id",
            sa.String(length=36),
            sa.ForeignKey("timetables.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("day", sa.String(length=10), nullable=False),
        sa.Column("slot_key", sa.String(length=20), nullable=False),
        sa.Column("time_slot", sa.String(length=50), nullable=False),
        sa.Column("kind", assignment_kind_enum, nullable=False),
        sa.Column("subject_acronym", sa.String(length=50), nullable=True),
        sa.Column("subject_code", sa.String(length=50), nullable=True),
        sa.Column("subject_name", sa.String(length=200), nullable=True),
        sa.Column("teacher_id", sa.String(length=36), nullable=True),
        sa.Column("teacher_name", sa.String(length=200), nullable=True),
        sa.Column("teacher_username", sa.String(length=100), nullable=True),
        sa.Column("room", sa.String(length=100), nullable=True),
        sa.Column("batch", sa.String(length=20), nullable=True),
        sa.Column("group_id", sa.String(length=36), nullable=True),
        sa.Column("is_continuation", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    )
    op.create_index("ix_timetable_entries_timetable_id", "timetable_entries", ["timetable_id"])
    op.create_index("ix_timetable_entries_group_id", "timetable_entries", ["group_id"])
    op.create_index("ix_timetable_entries_day_teacher", "timetable_entries", ["day", "teacher_id"])


def downgrade() -> None:
    op.drop_index("ix_timetable_entries_day_teacher", table_name="timetable_entries")
    op.drop_index("ix_timetable_entries_group_id", table_name="timetable_entries")
    op.drop_index("ix_timetable_entries_timetable_id", table_name="timetable_entries")
    op.drop_table("timetable_entries")
    op.drop_index("ix_timetables_created_by_id", table_name="timetables")
    op.drop_index("ix_timetables_is_published", table_name="timetables")
    op.drop_index("ix_timetables_branch", table_name="timetables")
    op.drop_table("timetables")
    assignment_kind_enum.drop(op.get_bind(), checkfirst=True)
