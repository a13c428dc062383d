from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import BadRequest, NotFound
from app.core.logging import audit_event
from app.models.user import User
from app.schemas.auth import AuthenticatedUser, UserPublic
from app.schemas.users import CreateUserRequest, DeletedUser
from app.services import auth as auth_service


def _parse_user_id(user_id: str | UUID) -> UUID:
    if isinstance(user_id, UUID):
        return user_id
    try:
        return UUID(str(user_id))
    except ValueError as exc:
        raise NotFound("User not found.") from exc


async def list_users(db: AsyncSession) -> list[UserPublic]:
    stmt = select(User).order_by(User.created_at.desc())
    users = (await db.execute(stmt)).scalars().all()
    return [UserPublic.model_validate(user) for user in users]


async def add_user(db: AsyncSession, payload: CreateUserRequest) -> UserPublic:
    user = await auth_service.create_user(db, payload)
    return UserPublic.model_validate(user)


async def delete_user(
    db: AsyncSession, user_id: str | UUID, caller: AuthenticatedUser
) -> DeletedUser:
    target_id = _parse_user_id(user_id)
    if target_id == caller.id:
        raise BadRequest("You cannot delete yourself.")
    user = await db.get(User, target_id)
    if user is None:
        raise NotFound("User not found.")
    deleted = DeletedUser(id=user.id, name=user.name, email=user.email)
    await db.delete(user)
    await db.commit()
    audit_event("user.deleted", actor_id=caller.id, target_id=deleted.id)
    return deleted


async def get_profile(db: AsyncSession, caller: AuthenticatedUser) -> UserPublic:
    user = await db.get(User, caller.id)
    if user is None:
        raise NotFound("User not found")
    return UserPublic.model_validate(user)
