from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.settings import settings


_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$", re.IGNORECASE)
_DURATION_UNITS = {
    "": "seconds",
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
}


@lru_cache(maxsize=1)
def _pwd_context() -> CryptContext:
    return CryptContext(
        schemes=["bcrypt"],
        deprecated="auto",
        bcrypt__rounds=settings.password_hash_rounds,
    )


def get_password_hash(password: str) -> str:
    return _pwd_context().hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return _pwd_context().verify(plain_password, hashed_password)


class JWTKeyError(RuntimeError):
    pass


def parse_duration(value: str | int) -> timedelta:
    """Parse ``"7d"``, ``"12h"``, ``"30m"``, ``"45s"`` or a bare number of seconds."""
    if isinstance(value, int):
        return timedelta(seconds=value)
    match = _DURATION_RE.match(value or "")
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit.lower()]: int(amount)})


def _load_signing_secret() -> str:
    if not settings.jwt_secret:
        raise JWTKeyError("JWT signing secret not configured")
    return settings.jwt_secret


def create_access_token(
    subject: str,
    *,
    email: str,
    role: str,
    expires_delta: timedelta | None = None,
) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or parse_duration(settings.jwt_expires_in))
    to_encode: dict[str, Any] = {
        "sub": subject,
        "id": subject,
        "email": email,
        "role": role,
        "iat": now,
        "exp": expire,
        "type": "access",
    }
    secret = _load_signing_secret()
    return jwt.encode(to_encode, secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str, expected_type: str | None = None) -> dict[str, Any]:
    secret = _load_signing_secret()
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise ValueError("Invalid token") from exc
    if expected_type and payload.get("type") != expected_type:
        raise ValueError(f"Unexpected token type: {payload.get('type')}")
    return payload
