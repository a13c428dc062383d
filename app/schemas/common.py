from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    VERIFIER = "verifier"

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


class ApplicationStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"
    APPROVED = "approved"

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


def parse_status(value: str | ApplicationStatus | None) -> ApplicationStatus | None:
    if value is None:
        return None
    if isinstance(value, ApplicationStatus):
        return value
    cleaned = str(value).strip().lower()
    if not cleaned:
        return None
    member = ApplicationStatus._value2member_map_.get(cleaned)
    if member is None:
        raise ValueError(f"Status must be one of: {', '.join(ApplicationStatus.values())}")
    return member
