"""Helpers shared by the route and allocation planners."""

from __future__ import annotations

from decimal import Decimal
from typing import Optional, Sequence

from ..core.constants import UNASSIGNED_ZONE, UNKNOWN_PROVINCE
from ..orders.model import DeliveryOrder
from ..rates.calculator.base import RateCalculator
from ..rates.model import DropCharge, DropStop

# Sort key for clients without a recorded distance: after every real one.
MISSING_DISTANCE_SORT_KM = Decimal("999")


def drop_stop(order: DeliveryOrder, *, base_rate: Optional[Decimal] = None) -> DropStop:
    return DropStop(area_id=order.area_id, base_rate=order.zone_base_rate if base_rate is None else base_rate)


def sequence_orders(orders: Sequence[DeliveryOrder], calculator: RateCalculator) -> list[tuple[DeliveryOrder, DropCharge]]:
    """Pair each order with its multi-drop charge, in the given delivery order."""
    charges = calculator.sequence_drops([drop_stop(o) for o in orders])
    return list(zip(orders, charges))


def distance_of(order: DeliveryOrder) -> Decimal:
    return order.distance_km if order.distance_km is not None else Decimal("0")


def province_summary(orders: Sequence[DeliveryOrder]) -> list[dict]:
    counts: dict[str, int] = {}
    for o in orders:
        name = o.client.province_label if o.client else UNKNOWN_PROVINCE
        counts[name] = counts.get(name, 0) + 1
    return [{"name": name, "count": count} for name, count in counts.items()]


def zone_summary(orders: Sequence[DeliveryOrder]) -> list[dict]:
    zones: dict[str, dict] = {}
    for o in orders:
        name = o.client.zone_name if o.client else UNASSIGNED_ZONE
        if name not in zones:
            zones[name] = {"name": name, "code": o.client.zone_code if o.client else "-", "count": 0}
        zones[name]["count"] += 1
    return list(zones.values())
