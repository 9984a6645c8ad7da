"""
Utility helper functions
"""
from datetime import date, datetime
from typing import Any, Dict, Iterable, Optional
import enum
import uuid

from sqlalchemy import inspect


def utcnow() -> datetime:
    return datetime.utcnow()


def parse_uuid(value: Any) -> Optional[uuid.UUID]:
    """Coerce a uuid-ish value; returns None for blanks and garbage"""
    if value is None or value == "":
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, AttributeError, TypeError):
        return None


def serialize_value(value: Any) -> Any:
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, enum.Enum):
        return value.value
    return value


def row_to_dict(row, exclude: Iterable[str] = ()) -> Optional[Dict[str, Any]]:
    """Serialize an ORM row's column attributes to JSON-friendly values"""
    if row is None:
        return None
    skip = set(exclude)
    out: Dict[str, Any] = {}
    for attr in inspect(row).mapper.column_attrs:
        if attr.key in skip:
            continue
        out[attr.key] = serialize_value(getattr(row, attr.key))
    return out


def month_start(now: Optional[datetime] = None) -> datetime:
    now = now or utcnow()
    return datetime(now.year, now.month, 1)


def truncate_text(text: str, length: int = 100) -> str:
    """Truncate text to specified length"""
    if len(text) <= length:
        return text
    return text[:length]
