"""create subjects

Revision ID: 20261018_0003
Revises: 20261018_0002
Create Date: 2026-10-18 00:20:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261018_0003"
down_revision = "20261018_0002"
branch_labels = None
depends_on = None


subject_type_enum = sa.Enum("theory", "lab", "project", name="subject_type")


def upgrade() -> None:
    op.create_table(
        "subjects",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("acronym", sa.String(length=50), nullable=False),
        sa.Column("type", subject_type_enum, nullable=False, server_default="theory"),
        sa.Column("credit_hours", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("semester", sa.Integer(), nullable=False),
        sa.Column("branches", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_by_id", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("code", "year", "semester", name="uq_subjects_code_year_semester"),
    )
    op.create_index("ix_subjects_code", "subjects", ["code"])


def downgrade() -> None:
    op.drop_index("ix_subjects_code", table_name="subjects")
    op.drop_table("subjects")
    subject_type_enum.drop(op.get_bind(), checkfirst=True)
