from uuid import UUID

from pydantic import BaseModel

from app.schemas.auth import RegisterRequest


class CreateUserRequest(RegisterRequest):
    pass


class DeletedUser(BaseModel):
    id: UUID
    name: str
    email: str
