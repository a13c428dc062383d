from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.core.limiter import limiter
from app.core.response_envelope import success_envelope
from app.core.settings import settings
from app.schemas.applications import (
    LoanApplicationCreate,
    RejectionRequest,
    StatusOverrideRequest,
)
from app.schemas.auth import AuthenticatedUser
from app.services import applications as workflow
from app.services import dashboard, status_override

router = APIRouter(prefix="/applications", tags=["applications"])


@router.post(
    "/submit",
    status_code=status.HTTP_201_CREATED,
    summary="Submit a loan application (public)",
)
@limiter.limit(lambda: f"{settings.rate_limit_per_minute}/minute")
async def submit_application(
    payload: LoanApplicationCreate,
    request: Request,
    db: AsyncSession = Depends(deps.get_db_session),
) -> dict:
    origin = request.client.host if request.client else None
    result = await workflow.submit_application(db, payload, origin=origin)
    return success_envelope("Application submitted successfully", result)


@router.get("", summary="List applications visible to the caller's role")
async def list_applications(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    caller: AuthenticatedUser = Depends(deps.require_authenticated_user),
    db: AsyncSession = Depends(deps.get_db_session),
) -> dict:
    items = await workflow.list_applications(db, caller, status_filter)
    return success_envelope("Applications fetched successfully", items)


@router.get("/stats", summary="Dashboard statistics")
async def get_dashboard_stats(
    _: AuthenticatedUser = Depends(deps.require_authenticated_user),
    db: AsyncSession = Depends(deps.get_db_session),
) -> dict:
    stats = await dashboard.build_dashboard_stats(db)
    return success_envelope("Dashboard statistics fetched successfully", stats)


@router.patch("/{application_id}/verify", summary="Verify a pending application")
async def verify_application(
    application_id: str,
    caller: AuthenticatedUser = Depends(deps.require_verifier),
    db: AsyncSession = Depends(deps.get_db_session),
) -> dict:
    result = await workflow.verify_application(db, application_id, caller)
    return success_envelope("Application verified successfully", result)


@router.patch("/{application_id}/reject", summary="Reject a pending application as verifier")
async def reject_application(
    application_id: str,
    payload: Optional[RejectionRequest] = None,
    caller: AuthenticatedUser = Depends(deps.require_verifier),
    db: AsyncSession = Depends(deps.get_db_session),
) -> dict:
    reason = payload.rejection_reason if payload else None
    result = await workflow.reject_application(db, application_id, caller, reason)
    return success_envelope("Application rejected successfully", result)


@router.patch("/{application_id}/approve", summary="Approve a pending application")
async def approve_application(
    application_id: str,
    caller: AuthenticatedUser = Depends(deps.require_admin),
    db: AsyncSession = Depends(deps.get_db_session),
) -> dict:
    result = await workflow.approve_application(db, application_id, caller)
    return success_envelope("Application approved successfully", result)


@router.patch("/{application_id}/admin-reject", summary="Reject a pending application as admin")
async def admin_reject_application(
    application_id: str,
    payload: Optional[RejectionRequest] = None,
    caller: AuthenticatedUser = Depends(deps.require_admin),
    db: AsyncSession = Depends(deps.get_db_session),
) -> dict:
    reason = payload.rejection_reason if payload else None
    result = await workflow.admin_reject_application(db, application_id, caller, reason)
    return success_envelope("Application rejected by admin", result)


@router.patch(
    "/{application_id}",
    summary="Administrative status override (no transition checks)",
)
async def override_application_status(
    application_id: str,
    payload: StatusOverrideRequest,
    caller: AuthenticatedUser = Depends(deps.require_authenticated_user),
    db: AsyncSession = Depends(deps.get_db_session),
) -> dict:
    result = await status_override.override_status(db, application_id, payload.status, caller)
    return success_envelope("Application status updated successfully", result)
