import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base
from app.models.types import EncryptedString


class LoanApplication(Base):
    __tablename__ = "loan_applications"
    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_loan_app_amount_nonneg"),
        CheckConstraint("monthly_income >= 0", name="ck_loan_app_income_nonneg"),
        CheckConstraint("tenure_months > 0", name="ck_loan_app_tenure_positive"),
        CheckConstraint("version >= 1", name="ck_loan_app_version_positive"),
        CheckConstraint(
            "status IN ('pending', 'verified', 'rejected', 'approved')",
            name="ck_loan_app_status",
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=False)

    amount = Column(Numeric(14, 2), nullable=False)
    purpose = Column(String(500), nullable=False)
    tenure_months = Column(Integer, nullable=False)
    monthly_income = Column(Numeric, nullable=False)
    employment_type = Column(String(100), nullable=False)

    pan = Column(EncryptedString(), nullable=True)
    aadhar = Column(EncryptedString(), nullable=True)

    status = Column(String(20), nullable=False, default="pending", server_default="pending", index=True)
    verified_by = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    verified_at = Column(DateTime(timezone=True), nullable=True)
    admin_action_by = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    admin_action_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    submitted_by = Column(String(100), nullable=True)

    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), index=True)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    __mapper_args__ = {"version_id_col": version}
