from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from ..core.constants import BATCH_NUMBER_PREFIX, L300_MAX_VALUE
from ..core.enums import VehicleType


def batch_number_prefix(planned_date: date, prefix: str = BATCH_NUMBER_PREFIX) -> str:
    return f"{prefix}-{planned_date.strftime('%y%m%d')}-"


def next_batch_number(planned_date: date, latest: Optional[str], prefix: str = BATCH_NUMBER_PREFIX) -> str:
    """BTH-yymmdd-NNN, one after the latest number already used for the date."""
    head = batch_number_prefix(planned_date, prefix)
    seq = 1
    if latest and latest.startswith(head):
        try:
            seq = int(latest[-3:]) + 1
        except ValueError:
            seq = 1
    return f"{head}{seq:03d}"


def determine_vehicle_type(total_value: Decimal, *, l300_max_value: Decimal = L300_MAX_VALUE) -> VehicleType:
    return VehicleType.L300 if Decimal(total_value) <= l300_max_value else VehicleType.TRUCK
