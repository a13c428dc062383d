"""Loan application intake and the role-gated status workflow.

Only ``pending`` applications can move. Verifiers either verify or reject;
admins either approve or reject. Each transition stamps the acting user and
time, and commits through the mapper's version counter so two reviewers racing
on the same row cannot both win.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased
from sqlalchemy.orm.exc import StaleDataError

from app.core.errors import Forbidden, InvalidTransition, NotFound, ValidationFailed
from app.core.logging import audit_event
from app.models.loan_application import LoanApplication
from app.models.user import User
from app.schemas.applications import (
    ActorSummary,
    ApplicationSubmitted,
    LoanApplicationCreate,
    LoanApplicationOut,
)
from app.schemas.auth import AuthenticatedUser
from app.schemas.common import ApplicationStatus, Role, parse_status
from app.services import validation

logger = logging.getLogger(__name__)

DEFAULT_VERIFIER_REJECTION = "Application rejected by verifier"
DEFAULT_ADMIN_REJECTION = "Application rejected by admin"


@dataclass(frozen=True)
class Transition:
    action: str
    target: ApplicationStatus
    role: Role
    forbidden_message: str
    precondition_message: str
    default_reason: str | None = None


VERIFY = Transition(
    action="verify",
    target=ApplicationStatus.VERIFIED,
    role=Role.VERIFIER,
    forbidden_message="Only verifiers can verify applications",
    precondition_message="Only pending applications can be verified",
)
REJECT = Transition(
    action="reject",
    target=ApplicationStatus.REJECTED,
    role=Role.VERIFIER,
    forbidden_message="Only verifiers can reject applications",
    precondition_message="Only pending applications can be rejected",
    default_reason=DEFAULT_VERIFIER_REJECTION,
)
APPROVE = Transition(
    action="approve",
    target=ApplicationStatus.APPROVED,
    role=Role.ADMIN,
    forbidden_message="Only admins can approve applications",
    precondition_message="Only pending applications can be approved",
)
ADMIN_REJECT = Transition(
    action="admin_reject",
    target=ApplicationStatus.REJECTED,
    role=Role.ADMIN,
    forbidden_message="Only admins can reject applications",
    precondition_message="Only pending applications can be rejected by admin",
    default_reason=DEFAULT_ADMIN_REJECTION,
)


def _parse_id(application_id: str | UUID) -> UUID:
    if isinstance(application_id, UUID):
        return application_id
    try:
        return UUID(str(application_id))
    except ValueError as exc:
        raise NotFound("Application not found") from exc


def mask_identifier(value: str | None) -> str | None:
    if value is None:
        return None
    if len(value) <= 4:
        return "*" * len(value)
    return "*" * (len(value) - 4) + value[-4:]


def _actor(user: User | None) -> ActorSummary | None:
    if user is None:
        return None
    return ActorSummary(id=user.id, name=user.name, email=user.email)


def serialize_application(
    application: LoanApplication,
    *,
    verifier: User | None = None,
    admin_actor: User | None = None,
    reveal_documents: bool = True,
) -> LoanApplicationOut:
    pan = application.pan if reveal_documents else mask_identifier(application.pan)
    aadhar = application.aadhar if reveal_documents else mask_identifier(application.aadhar)
    return LoanApplicationOut(
        id=application.id,
        name=application.name,
        email=application.email,
        phone=application.phone,
        amount=application.amount,
        purpose=application.purpose,
        tenure=application.tenure_months,
        monthly_income=application.monthly_income,
        employment_type=application.employment_type,
        pan_card=pan,
        aadhar_card=aadhar,
        status=application.status,
        verified_by=_actor(verifier),
        verified_at=application.verified_at,
        admin_action_by=_actor(admin_actor),
        admin_action_at=application.admin_action_at,
        rejection_reason=application.rejection_reason,
        submitted_by=application.submitted_by,
        created_at=application.created_at,
        updated_at=application.updated_at,
    )


async def get_application(db: AsyncSession, application_id: str | UUID) -> LoanApplication:
    stmt = select(LoanApplication).where(LoanApplication.id == _parse_id(application_id))
    application = (await db.execute(stmt)).scalar_one_or_none()
    if application is None:
        raise NotFound("Application not found")
    return application


async def resolve_actors(
    db: AsyncSession, application: LoanApplication
) -> tuple[User | None, User | None]:
    verifier = await db.get(User, application.verified_by) if application.verified_by else None
    admin_actor = (
        await db.get(User, application.admin_action_by) if application.admin_action_by else None
    )
    return verifier, admin_actor


async def submit_application(
    db: AsyncSession,
    payload: LoanApplicationCreate,
    *,
    origin: str | None,
) -> ApplicationSubmitted:
    errors = validation.validate_loan_application(payload)
    if errors:
        raise ValidationFailed(errors)

    application = LoanApplication(
        name=validation.sanitize_string(payload.name),
        email=payload.email.strip().lower(),
        phone=validation.sanitize_string(payload.phone),
        amount=payload.amount,
        purpose=validation.sanitize_string(payload.purpose),
        tenure_months=payload.tenure_months,
        monthly_income=payload.monthly_income,
        employment_type=validation.sanitize_string(payload.employment_type),
        pan=validation.sanitize_string(payload.pan) if payload.pan else None,
        aadhar=validation.sanitize_string(payload.aadhar) if payload.aadhar else None,
        status=ApplicationStatus.PENDING.value,
        submitted_by=origin or "unknown",
    )
    db.add(application)
    await db.commit()
    await db.refresh(application)
    logger.info("Loan application %s submitted from %s", application.id, application.submitted_by)
    return ApplicationSubmitted(
        id=application.id,
        status=application.status,
        submitted_at=application.created_at,
    )


def resolve_status_filter(
    caller: AuthenticatedUser, requested: str | None
) -> ApplicationStatus | None:
    """Return the status to filter on, or ``None`` for every application."""
    if caller.role is not Role.ADMIN:
        # A verifier's queue is always the applications still awaiting review
        return ApplicationStatus.PENDING
    if requested is None or not requested.strip():
        return ApplicationStatus.PENDING
    if requested.strip().lower() == "all":
        return None
    try:
        return parse_status(requested)
    except ValueError as exc:
        raise ValidationFailed([str(exc)]) from exc


async def list_applications(
    db: AsyncSession,
    caller: AuthenticatedUser,
    status_filter: str | None = None,
) -> list[LoanApplicationOut]:
    status = resolve_status_filter(caller, status_filter)
    verifier = aliased(User)
    admin_actor = aliased(User)
    stmt = (
        select(LoanApplication, verifier, admin_actor)
        .outerjoin(verifier, verifier.id == LoanApplication.verified_by)
        .outerjoin(admin_actor, admin_actor.id == LoanApplication.admin_action_by)
        .order_by(LoanApplication.created_at.desc())
    )
    if status is not None:
        stmt = stmt.where(LoanApplication.status == status.value)
    rows = (await db.execute(stmt)).all()
    return [
        serialize_application(
            application,
            verifier=verifier_row,
            admin_actor=admin_row,
            reveal_documents=caller.is_admin,
        )
        for application, verifier_row, admin_row in rows
    ]


async def _apply_transition(
    db: AsyncSession,
    application_id: str | UUID,
    caller: AuthenticatedUser,
    transition: Transition,
    reason: str | None = None,
) -> LoanApplicationOut:
    if caller.role is not transition.role:
        raise Forbidden(transition.forbidden_message)

    application = await get_application(db, application_id)
    if application.status != ApplicationStatus.PENDING.value:
        raise InvalidTransition(transition.precondition_message)

    previous = application.status
    now = datetime.now(timezone.utc)
    application.status = transition.target.value
    if transition.role is Role.VERIFIER:
        application.verified_by = caller.id
        application.verified_at = now
    else:
        application.admin_action_by = caller.id
        application.admin_action_at = now
    if transition.target is ApplicationStatus.REJECTED:
        cleaned = validation.sanitize_string(reason) if reason else ""
        application.rejection_reason = cleaned or transition.default_reason

    db.add(application)
    try:
        await db.commit()
    except StaleDataError as exc:
        await db.rollback()
        logger.info("Concurrent %s lost the race on application %s", transition.action, application.id)
        raise InvalidTransition(
            "The application was updated by another request. Please refresh and retry."
        ) from exc
    await db.refresh(application)

    audit_event(
        f"loan_application.{transition.action}",
        actor_id=caller.id,
        target_id=application.id,
        from_status=previous,
        to_status=application.status,
    )
    verifier, admin_actor = await resolve_actors(db, application)
    return serialize_application(application, verifier=verifier, admin_actor=admin_actor)


async def verify_application(
    db: AsyncSession, application_id: str | UUID, caller: AuthenticatedUser
) -> LoanApplicationOut:
    return await _apply_transition(db, application_id, caller, VERIFY)


async def reject_application(
    db: AsyncSession,
    application_id: str | UUID,
    caller: AuthenticatedUser,
    reason: str | None = None,
) -> LoanApplicationOut:
    return await _apply_transition(db, application_id, caller, REJECT, reason)


async def approve_application(
    db: AsyncSession, application_id: str | UUID, caller: AuthenticatedUser
) -> LoanApplicationOut:
    return await _apply_transition(db, application_id, caller, APPROVE)


async def admin_reject_application(
    db: AsyncSession,
    application_id: str | UUID,
    caller: AuthenticatedUser,
    reason: str | None = None,
) -> LoanApplicationOut:
    return await _apply_transition(db, application_id, caller, ADMIN_REJECT, reason)
