from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from ..core.enums import DROP_RATE_TYPES, AdditionalRateType


@dataclass(frozen=True)
class RateQuote:
    base_rate: Decimal
    additional_rate_type: AdditionalRateType
    additional_rate: Decimal
    total_rate: Decimal


@dataclass(frozen=True)
class DropStop:
    """One stop of a multi-drop run, in delivery order."""

    area_id: Optional[int]
    base_rate: Decimal


@dataclass(frozen=True)
class DropCharge:
    sequence: int
    base_rate: Decimal
    additional_rate_type: AdditionalRateType
    additional_rate: Decimal
    total_rate: Decimal

    @property
    def drop_cost(self) -> Decimal:
        return self.total_rate


def drop_cost(*, additional_rate_type: AdditionalRateType, additional_rate: Decimal, total_rate: Decimal) -> Decimal:
    """Cost a delivered order contributes to its run.

    Drop surcharges replace the base rate (only the first stop pays the base);
    any other order costs its full total rate.
    """
    if additional_rate_type in DROP_RATE_TYPES:
        return additional_rate
    return total_rate
