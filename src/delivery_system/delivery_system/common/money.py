from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

ZERO = Decimal("0")
_CENTS = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """Coerce DB/JSON numbers into Decimal (None -> 0)."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(value: Decimal, places: int = 2) -> float:
    """Round half-up and return a float for JSON payloads."""
    quantum = _CENTS if places == 2 else Decimal(1).scaleb(-places)
    return float(to_decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def optional_float(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None
