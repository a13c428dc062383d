from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.schemas.common import Role


class RegisterRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UserPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    id: UUID
    name: str
    email: str
    role: Role
    created_at: Optional[datetime] = None


class LoginResponse(BaseModel):
    token: str
    user: UserPublic


class AuthenticatedUser(BaseModel):
    """Verified identity decoded from a bearer token."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    email: str = ""
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN
