from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Sequence

from ...core.enums import AdditionalRateType
from ..model import DropCharge, DropStop, RateQuote


class RateCalculator(ABC):
    """Calculator interface (Strategy Pattern for delivery rates)."""

    @abstractmethod
    def surcharge(self, additional_rate_type: AdditionalRateType) -> Decimal:
        raise NotImplementedError

    @abstractmethod
    def quote(self, *, base_rate: Decimal, additional_rate_type: AdditionalRateType) -> RateQuote:
        raise NotImplementedError

    @abstractmethod
    def sequence_drops(self, stops: Sequence[DropStop]) -> list[DropCharge]:
        raise NotImplementedError
