from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.core.limiter import limiter
from app.core.response_envelope import success_envelope
from app.core.settings import settings
from app.schemas.auth import LoginRequest, RegisterRequest
from app.services import auth as auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED, summary="Register a staff account")
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(deps.get_db_session),
) -> dict:
    user = await auth_service.register(db, payload)
    return success_envelope("User registered successfully", user)


@router.post("/login", summary="Exchange credentials for a bearer token")
@limiter.limit(lambda: f"{settings.rate_limit_per_minute}/minute")
async def login(
    credentials: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(deps.get_db_session),
) -> dict:
    result = await auth_service.login(db, credentials.email, credentials.password)
    return success_envelope("Login successful", result)
