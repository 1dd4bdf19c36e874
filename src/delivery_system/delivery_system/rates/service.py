from __future__ import annotations

import logging
from decimal import Decimal
from typing import Mapping, Optional, Sequence

from ..core.enums import AdditionalRateType
from ..core.exceptions import NotFoundError, ValidationError
from ..masterdata.repository import MasterDataRepository
from .calculator.base import RateCalculator
from .calculator.standard_calculator import StandardRateCalculator
from .model import DropCharge, DropStop, RateQuote

logger = logging.getLogger(__name__)


def parse_rate_type(value: Optional[str]) -> AdditionalRateType:
    v = (value or "").strip() or AdditionalRateType.NONE.value
    try:
        return AdditionalRateType(v)
    except ValueError:
        raise ValidationError(f"Unknown additional rate type: {v}")


class RateService:
    """Use case: price deliveries from the area-group base rate and surcharge table."""

    def __init__(
        self,
        masterdata: MasterDataRepository,
        *,
        default_surcharges: Optional[Mapping[str, Decimal]] = None,
    ):
        self._masterdata = masterdata
        self._defaults = dict(default_surcharges or {})

    def surcharge_table(self) -> dict[str, Decimal]:
        """Defaults overridden by active global rate settings."""
        table = dict(self._defaults)
        for setting in self._masterdata.list_rate_settings(active_only=True):
            if setting.province_id is not None:
                continue
            if setting.rate_type in {t.value for t in AdditionalRateType if t != AdditionalRateType.NONE}:
                table[setting.rate_type] = setting.rate
        return table

    def calculator(self) -> RateCalculator:
        return StandardRateCalculator(self.surcharge_table())

    def quote(self, *, base_rate: Decimal, additional_rate_type: AdditionalRateType) -> RateQuote:
        return self.calculator().quote(base_rate=base_rate, additional_rate_type=additional_rate_type)

    def quote_for_client(self, *, client_id: int, additional_rate_type: AdditionalRateType) -> RateQuote:
        client = self._masterdata.get_client(int(client_id))
        if not client:
            raise NotFoundError("Client not found")
        if client.area_group_id is None:
            logger.info("Client %s has no rate zone; base rate is 0", client.code)
        return self.quote(base_rate=client.base_rate, additional_rate_type=additional_rate_type)

    def sequence_drops(self, stops: Sequence[DropStop]) -> list[DropCharge]:
        return self.calculator().sequence_drops(stops)
