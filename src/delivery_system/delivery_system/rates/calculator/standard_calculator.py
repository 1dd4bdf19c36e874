from __future__ import annotations

from decimal import Decimal
from typing import Mapping, Optional, Sequence

from ...core.constants import DEFAULT_SURCHARGES
from ...core.enums import AdditionalRateType
from ..model import DropCharge, DropStop, RateQuote
from .base import RateCalculator


class StandardRateCalculator(RateCalculator):
    """Standard rule: total = area-group base rate + surcharge for the rate type.

    Multi-drop runs: the first stop pays its own base rate, each later stop pays
    the same-zone surcharge when it shares the previous stop's area, else the
    other-zone surcharge.
    """

    def __init__(self, surcharges: Optional[Mapping[str, Decimal]] = None):
        table = dict(DEFAULT_SURCHARGES)
        table.update(surcharges or {})
        self._surcharges = {str(k): Decimal(v) for k, v in table.items()}

    def surcharge(self, additional_rate_type: AdditionalRateType) -> Decimal:
        if additional_rate_type == AdditionalRateType.NONE:
            return Decimal("0")
        return self._surcharges.get(additional_rate_type.value, Decimal("0"))

    def quote(self, *, base_rate: Decimal, additional_rate_type: AdditionalRateType) -> RateQuote:
        base_rate = Decimal(base_rate or 0)
        additional = self.surcharge(additional_rate_type)
        return RateQuote(
            base_rate=base_rate,
            additional_rate_type=additional_rate_type,
            additional_rate=additional,
            total_rate=base_rate + additional,
        )

    def sequence_drops(self, stops: Sequence[DropStop]) -> list[DropCharge]:
        charges: list[DropCharge] = []
        previous_area_id: Optional[int] = None
        for index, stop in enumerate(stops):
            base_rate = Decimal(stop.base_rate or 0)
            if index == 0:
                rate_type = AdditionalRateType.NONE
                additional = Decimal("0")
                total = base_rate
            else:
                same_area = stop.area_id is not None and previous_area_id is not None and stop.area_id == previous_area_id
                rate_type = AdditionalRateType.DROP_SAME_ZONE if same_area else AdditionalRateType.DROP_OTHER_ZONE
                additional = self.surcharge(rate_type)
                total = additional
            previous_area_id = stop.area_id
            charges.append(
                DropCharge(
                    sequence=index + 1,
                    base_rate=base_rate,
                    additional_rate_type=rate_type,
                    additional_rate=additional,
                    total_rate=total,
                )
            )
        return charges
