from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.core.response_envelope import success_envelope
from app.schemas.auth import AuthenticatedUser
from app.schemas.users import CreateUserRequest
from app.services import users as users_service

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/profile", summary="Current user's profile")
async def get_profile(
    caller: AuthenticatedUser = Depends(deps.require_authenticated_user),
    db: AsyncSession = Depends(deps.get_db_session),
) -> dict:
    profile = await users_service.get_profile(db, caller)
    return success_envelope("Profile fetched successfully", profile)


@router.get("", summary="List staff accounts")
async def list_users(
    _: AuthenticatedUser = Depends(deps.require_admin),
    db: AsyncSession = Depends(deps.get_db_session),
) -> dict:
    users = await users_service.list_users(db)
    return success_envelope("Users fetched successfully", users)


@router.post("", status_code=status.HTTP_201_CREATED, summary="Provision a staff account")
async def add_user(
    payload: CreateUserRequest,
    _: AuthenticatedUser = Depends(deps.require_admin),
    db: AsyncSession = Depends(deps.get_db_session),
) -> dict:
    user = await users_service.add_user(db, payload)
    return success_envelope("User created successfully", user)


@router.delete("/{user_id}", summary="Delete a staff account")
async def delete_user(
    user_id: str,
    caller: AuthenticatedUser = Depends(deps.require_admin),
    db: AsyncSession = Depends(deps.get_db_session),
) -> dict:
    deleted = await users_service.delete_user(db, user_id, caller)
    return success_envelope("User deleted successfully", deleted)
