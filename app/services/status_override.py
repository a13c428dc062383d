"""Administrative status override.

Writes ``status`` directly. It skips the pending-only precondition and does not
stamp any actor fields, so it is kept apart from the transition API in
``app.services.applications`` and every use is logged at WARNING.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.core.errors import Conflict, ValidationFailed
from app.core.logging import audit_event
from app.schemas.applications import LoanApplicationOut
from app.schemas.auth import AuthenticatedUser
from app.schemas.common import parse_status
from app.services.applications import get_application, resolve_actors, serialize_application

logger = logging.getLogger(__name__)


async def override_status(
    db: AsyncSession,
    application_id: str | UUID,
    status: str | None,
    caller: AuthenticatedUser,
) -> LoanApplicationOut:
    try:
        target = parse_status(status)
    except ValueError as exc:
        raise ValidationFailed([str(exc)]) from exc
    if target is None:
        raise ValidationFailed(["Status is required"])

    application = await get_application(db, application_id)
    previous = application.status
    application.status = target.value
    db.add(application)
    try:
        await db.commit()
    except StaleDataError as exc:
        await db.rollback()
        raise Conflict("The application was updated by another request. Please refresh and retry.") from exc
    await db.refresh(application)

    logger.warning(
        "Status override on application %s by %s: %s -> %s",
        application.id,
        caller.id,
        previous,
        application.status,
    )
    audit_event(
        "loan_application.status_override",
        actor_id=caller.id,
        target_id=application.id,
        from_status=previous,
        to_status=application.status,
    )
    verifier, admin_actor = await resolve_actors(db, application)
    return serialize_application(application, verifier=verifier, admin_actor=admin_actor)
