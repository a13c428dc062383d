"""add loan applications table

Revision ID: 0002_loan_applications
Revises: 0001_users
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "0002_loan_applications"
down_revision = "0001_users"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "loan_applications",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("purpose", sa.String(length=500), nullable=False),
        sa.Column("tenure_months", sa.Integer(), nullable=False),
        sa.Column("monthly_income", sa.Numeric(), nullable=False),
        sa.Column("employment_type", sa.String(length=100), nullable=False),
        sa.Column("pan", sa.LargeBinary(), nullable=True),
        sa.Column("aadhar", sa.LargeBinary(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("verified_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("admin_action_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("admin_action_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("submitted_by", sa.String(length=100), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["verified_by"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["admin_action_by"], ["users.id"], ondelete="SET NULL"),
        sa.CheckConstraint("amount >= 0", name="ck_loan_app_amount_nonneg"),
        sa.CheckConstraint("monthly_income >= 0", name="ck_loan_app_income_nonneg"),
        sa.CheckConstraint("tenure_months > 0", name="ck_loan_app_tenure_positive"),
        sa.CheckConstraint("version >= 1", name="ck_loan_app_version_positive"),
        sa.CheckConstraint(
            "status IN ('pending', 'verified', 'rejected', 'approved')", name="ck_loan_app_status"
        ),
    )
    op.create_index("ix_loan_applications_status", "loan_applications", ["status"])
    op.create_index("ix_loan_applications_created_at", "loan_applications", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_loan_applications_created_at", table_name="loan_applications")
    op.drop_index("ix_loan_applications_status", table_name="loan_applications")
    op.drop_table("loan_applications")
