"""create teacher directory and code counters

Revision ID: 20261018_0002
Revises: 20261018_0001
Create Date: 2026-10-18 00:10:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261018_0002"
down_revision = "20261018_0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "teachers",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("teacher_code", sa.String(length=50), nullable=False),
        sa.Column("display_name", sa.String(length=200), nullable=False),
        sa.Column("department", sa.String(length=200), nullable=False, server_default="General"),
        sa.Column("designation", sa.String(length=200), nullable=False, server_default="Assistant Professor"),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("username", sa.String(length=100), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_by_id", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_teachers_teacher_code", "teachers", ["teacher_code"], unique=True)
    op.create_index("ix_teachers_email", "teachers", ["email"], unique=True)
    op.create_index("ix_teachers_username", "teachers", ["username"], unique=True)

    op.create_table(
        "teacher_code_counters",
        sa.Column("prefix", sa.String(length=50), primary_key=True, nullable=False),
        sa.Column("seq", sa.Integer(), nullable=False, server_default="0"),
    )


def downgrade() -> None:
    op.drop_table("teacher_code_counters")
    op.drop_index("ix_teachers_username", table_name="teachers")
    op.drop_index("ix_teachers_email", table_name="teachers")
    op.drop_index("ix_teachers_teacher_code", table_name="teachers")
    op.drop_table("teachers")
