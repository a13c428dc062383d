from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.schemas.common import ApplicationStatus


class LoanApplicationCreate(BaseModel):
    """Raw submission payload; range and shape rules live in the validation service."""

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    amount: Optional[float] = None
    purpose: Optional[str] = None
    tenure_months: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("tenure", "tenureMonths", "tenure_months")
    )
    monthly_income: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("monthlyIncome", "monthly_income")
    )
    employment_type: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("employmentType", "employment_type")
    )
    pan: Optional[str] = Field(default=None, validation_alias=AliasChoices("panCard", "pan"))
    aadhar: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("aadharCard", "aadhar")
    )

    @field_validator("phone", "pan", "aadhar", mode="before")
    @classmethod
    def _digits_as_text(cls, value):
        # JSON numbers are accepted for digit-only identifiers
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class RejectionRequest(BaseModel):
    rejection_reason: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("rejectionReason", "rejection_reason", "reason")
    )


class StatusOverrideRequest(BaseModel):
    status: Optional[str] = None


class _CamelModel(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


class ApplicationSubmitted(_CamelModel):
    id: UUID
    status: ApplicationStatus
    submitted_at: Optional[datetime] = None


class ActorSummary(_CamelModel):
    id: UUID
    name: str
    email: str


class LoanApplicationOut(_CamelModel):
    id: UUID
    name: str
    email: str
    phone: str
    amount: float
    purpose: str
    tenure: int
    monthly_income: float
    employment_type: str
    pan_card: Optional[str] = None
    aadhar_card: Optional[str] = None
    status: ApplicationStatus
    verified_by: Optional[ActorSummary] = None
    verified_at: Optional[datetime] = None
    admin_action_by: Optional[ActorSummary] = None
    admin_action_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    submitted_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DashboardStats(_CamelModel):
    total_applications: int = 0
    pending_applications: int = 0
    verified_applications: int = 0
    approved_applications: int = 0
    rejected_applications: int = 0
    total_loan_amount: float = 0
    approved_loan_amount: float = 0
    average_loan_amount: float = 0
