"""
Custom validators
"""
import re
from typing import Iterable, Optional

from app.db.models import UserRole

EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'


def validate_email(email: str) -> bool:
    """Validate email format"""
    return bool(email) and bool(re.match(EMAIL_PATTERN, email))


def normalize_role(role: Optional[str]) -> str:
    """
    Map an arbitrary role string onto one of the application roles.
    Unknown or missing values fall back to ``client``.
    """
    valid = {r.value for r in UserRole}
    if role in valid:
        return role
    return UserRole.client.value


def missing_fields(values: dict, required: Iterable[str]) -> list:
    """Names of required keys whose values are falsy"""
    return [name for name in required if not values.get(name)]
