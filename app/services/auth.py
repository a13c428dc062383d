from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.auth_utils import constant_time_verify
from app.core.errors import Conflict, Internal, Unauthorized, ValidationFailed
from app.core.logging import audit_event
from app.core.security import JWTKeyError, create_access_token, get_password_hash
from app.models.user import User
from app.schemas.auth import LoginResponse, RegisterRequest, UserPublic
from app.schemas.common import Role
from app.services import validation

logger = logging.getLogger(__name__)


def normalize_email(email: Any) -> Any:
    if not isinstance(email, str):
        return email
    return email.strip().lower()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    stmt = select(User).where(User.email == normalize_email(email))
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def create_user(db: AsyncSession, payload: RegisterRequest) -> User:
    """Validate, hash and persist a staff account. Shared by registration and provisioning."""
    email = normalize_email(payload.email)
    errors = validation.validate_user_input(payload.name, email, payload.password, payload.role)
    if errors:
        raise ValidationFailed(errors)

    if await get_user_by_email(db, email):
        raise Conflict("User with this email already exists")

    user = User(
        name=validation.sanitize_string(payload.name),
        email=email,
        hashed_password=get_password_hash(payload.password),
        role=(payload.role or Role.VERIFIER.value),
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError as exc:
        # Lost a race with a concurrent registration for the same address
        await db.rollback()
        raise Conflict("User with this email already exists") from exc
    await db.refresh(user)
    audit_event("user.created", target_id=user.id, role=user.role)
    return user


async def register(db: AsyncSession, payload: RegisterRequest) -> UserPublic:
    user = await create_user(db, payload)
    return UserPublic.model_validate(user)


async def login(db: AsyncSession, email: str | None, password: str | None) -> LoginResponse:
    email = normalize_email(email)
    errors = validation.validate_login_input(email, password)
    if errors:
        raise ValidationFailed(errors)

    user = await get_user_by_email(db, email)
    if not constant_time_verify(user.hashed_password if user else None, password):
        logger.info("Failed login attempt")
        raise Unauthorized("Invalid credentials")

    try:
        token = create_access_token(str(user.id), email=user.email, role=user.role)
    except JWTKeyError as exc:
        raise Internal("JWT configuration error") from exc

    return LoginResponse(token=token, user=UserPublic.model_validate(user))
