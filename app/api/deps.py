import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.context import set_user_id
from app.core.errors import Forbidden, Internal, Unauthorized
from app.core.security import JWTKeyError, decode_token
from app.db.session import get_db
from app.schemas.auth import AuthenticatedUser
from app.schemas.common import Role

logger = logging.getLogger(__name__)

# auto_error is off so a missing or non-Bearer header surfaces as our own 401 envelope
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


async def get_db_session(db: AsyncSession = Depends(get_db)) -> AsyncSession:
    return db


def identity_from_token(token: str) -> AuthenticatedUser:
    try:
        payload = decode_token(token, expected_type="access")
    except JWTKeyError as exc:
        raise Internal("JWT configuration error") from exc
    except ValueError as exc:
        raise Unauthorized("Invalid token") from exc

    try:
        return AuthenticatedUser(
            id=payload.get("id") or payload.get("sub"),
            email=payload.get("email") or "",
            role=payload.get("role"),
        )
    except ValidationError as exc:
        raise Unauthorized("Invalid token") from exc


async def get_current_identity(
    token: Optional[str] = Depends(oauth2_scheme),
) -> AuthenticatedUser:
    if not token:
        raise Unauthorized("No token provided")
    identity = identity_from_token(token)
    set_user_id(str(identity.id))
    return identity


async def require_authenticated_user(
    identity: AuthenticatedUser = Depends(get_current_identity),
) -> AuthenticatedUser:
    """Simple guard to require an authenticated caller (no role checks)."""
    return identity


def require_roles(*roles: Role):
    allowed = frozenset(roles)
    label = " or ".join(role.value.capitalize() for role in roles)

    async def dependency(
        identity: AuthenticatedUser = Depends(require_authenticated_user),
    ) -> AuthenticatedUser:
        if identity.role not in allowed:
            logger.info("Role %s denied; requires %s", identity.role.value, label)
            raise Forbidden(f"{label} access required")
        return identity

    return dependency


require_admin = require_roles(Role.ADMIN)
require_verifier = require_roles(Role.VERIFIER, Role.ADMIN)
