from __future__ import annotations

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.loan_application import LoanApplication
from app.schemas.applications import DashboardStats
from app.schemas.common import ApplicationStatus


def _as_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


async def build_dashboard_stats(db: AsyncSession) -> DashboardStats:
    stmt = select(
        LoanApplication.status,
        func.count(),
        func.coalesce(func.sum(LoanApplication.amount), 0),
    ).group_by(LoanApplication.status)
    rows = (await db.execute(stmt)).all()

    counts: dict[str, int] = {}
    amounts: dict[str, Decimal] = {}
    for status, count, amount in rows:
        counts[status] = int(count or 0)
        amounts[status] = _as_decimal(amount)

    total_applications = sum(counts.values())
    total_amount = sum(amounts.values(), Decimal("0"))
    approved_amount = amounts.get(ApplicationStatus.APPROVED.value, Decimal("0"))
    average = total_amount / total_applications if total_applications else Decimal("0")

    return DashboardStats(
        total_applications=total_applications,
        pending_applications=counts.get(ApplicationStatus.PENDING.value, 0),
        verified_applications=counts.get(ApplicationStatus.VERIFIED.value, 0),
        approved_applications=counts.get(ApplicationStatus.APPROVED.value, 0),
        rejected_applications=counts.get(ApplicationStatus.REJECTED.value, 0),
        total_loan_amount=float(total_amount),
        approved_loan_amount=float(approved_amount),
        average_loan_amount=float(average),
    )
