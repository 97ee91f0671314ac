"""create class sections

Revision ID: 20261018_0006
Revises: 20261018_0005
Create Date: 2026-10-18 00:50:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261018_0006"
down_revision = "20261018_0005"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "class_sections",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("year", sa.String(length=20), nullable=False),
        sa.Column("branch", sa.String(length=50), nullable=False),
        sa.Column("section", sa.String(length=10), nullable=False),
        sa.Column("semester", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("academic_year", sa.String(length=20), nullable=False),
        sa.Column("total_students", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "class_teacher_id",
            sa.String(length=36),
            sa.ForeignKey("teachers.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_by_id", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("year", "branch", "section", "academic_year", name="uq_class_sections_identity"),
    )
    op.create_index("ix_class_sections_branch", "class_sections", ["branch"])


def downgrade() -> None:
    op.drop_index("ix_class_sections_branch", table_name="class_sections")
    op.drop_table("class_sections")
