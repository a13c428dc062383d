from app.models.loan_application import LoanApplication
from app.models.user import User

__all__ = [
    "LoanApplication",
    "User",
]
