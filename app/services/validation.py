"""Input checks run before any mutation.

Every validator returns a list of human-readable messages; an empty list means
the input is acceptable. Nothing here touches the database.
"""

from __future__ import annotations

import math
import re
from typing import Any

from app.schemas.common import Role

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^[0-9]{10}$")
# Denylist only: removes inline <script> blocks, it is not an HTML sanitizer.
SCRIPT_RE = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)

MIN_PASSWORD_LENGTH = 6
MIN_LOAN_AMOUNT = 1_000
MAX_LOAN_AMOUNT = 10_000_000
MIN_TENURE_MONTHS = 6
MAX_TENURE_MONTHS = 84
MIN_MONTHLY_INCOME = 10_000


def is_valid_email(email: Any) -> bool:
    return isinstance(email, str) and bool(EMAIL_RE.match(email))


def is_valid_password(password: Any) -> bool:
    return isinstance(password, str) and len(password) >= MIN_PASSWORD_LENGTH


def is_valid_phone(phone: Any) -> bool:
    return isinstance(phone, str) and bool(PHONE_RE.match(phone))


def _text_length(value: Any) -> int:
    if not isinstance(value, str):
        return 0
    return len(value.strip())


def _in_range(value: Any, low: float, high: float | None = None) -> bool:
    if value is None or isinstance(value, bool):
        return False
    if not math.isfinite(value):
        return False
    if high is None:
        return value >= low
    return low <= value <= high


def sanitize_string(value: str) -> str:
    return SCRIPT_RE.sub("", value.strip())


def validate_user_input(
    name: Any, email: Any, password: Any, role: Any = None
) -> list[str]:
    errors: list[str] = []
    if _text_length(name) < 2:
        errors.append("Name must be at least 2 characters long")
    if not is_valid_email(email):
        errors.append("Valid email is required")
    if not is_valid_password(password):
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    if role is not None and role not in Role.values():
        errors.append("Role must be either admin or verifier")
    return errors


def validate_login_input(email: Any, password: Any) -> list[str]:
    errors: list[str] = []
    if not is_valid_email(email):
        errors.append("Valid email is required")
    if not password:
        errors.append("Password is required")
    return errors


def validate_loan_application(payload: Any) -> list[str]:
    errors: list[str] = []
    if _text_length(payload.name) < 2:
        errors.append("Applicant name must be at least 2 characters long")
    if not is_valid_email(payload.email):
        errors.append("Valid email is required")
    if not is_valid_phone(payload.phone):
        errors.append("Valid 10-digit phone number is required")
    if not _in_range(payload.amount, MIN_LOAN_AMOUNT, MAX_LOAN_AMOUNT):
        errors.append("Loan amount must be between ₹1,000 and ₹1,00,00,000")
    if _text_length(payload.purpose) < 3:
        errors.append("Loan purpose must be at least 3 characters long")
    if not _in_range(payload.tenure_months, MIN_TENURE_MONTHS, MAX_TENURE_MONTHS):
        errors.append(
            f"Loan tenure must be between {MIN_TENURE_MONTHS} and {MAX_TENURE_MONTHS} months"
        )
    if not _in_range(payload.monthly_income, MIN_MONTHLY_INCOME):
        errors.append("Monthly income must be at least ₹10,000")
    if _text_length(payload.employment_type) < 3:
        errors.append("Employment type is required")
    return errors
