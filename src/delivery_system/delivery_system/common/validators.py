from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_max_length(value: str, field_name: str, max_len: int) -> str:
    if value is not None and len(value) > max_len:
        raise ValidationError(f"{field_name} must be at most {max_len} characters")
    return value


def require_int(value: Any, field_name: str, *, minimum: Optional[int] = None) -> int:
    try:
        out = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a whole number")
    if minimum is not None and out < minimum:
        raise ValidationError(f"{field_name} must be at least {minimum}")
    return out


def require_decimal(value: Any, field_name: str, *, minimum: Optional[Decimal] = None) -> Decimal:
    try:
        out = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not out.is_finite():
        raise ValidationError(f"{field_name} must be a number")
    if minimum is not None and out < minimum:
        raise ValidationError(f"{field_name} must be at least {minimum}")
    return out


def optional_int(value: Any, field_name: str) -> Optional[int]:
    if value is None or (isinstance(value, str) and value.strip() in {"", "all"}):
        return None
    return require_int(value, field_name)


def optional_text(value: Any) -> Optional[str]:
    v = (str(value) if value is not None else "").strip()
    return v or None
