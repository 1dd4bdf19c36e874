from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal
from itertools import groupby
from typing import Optional, Sequence

from ..common.datetime_utils import days_between, format_day, iso, today_local
from ..common.money import round_money
from ..common.transactions import Transaction, no_transaction
from ..core.constants import DEFAULT_UPCOMING_DAYS, UNASSIGNED_ZONE
from ..core.enums import AdditionalRateType
from ..core.exceptions import NotFoundError, ValidationError
from ..orders.model import DeliveryOrder, delivery_status
from ..orders.repository import OrderRepository
from ..rates.service import RateService
from .drops import (
    MISSING_DISTANCE_SORT_KM,
    distance_of,
    drop_stop,
    province_summary,
    sequence_orders,
    zone_summary,
)

logger = logging.getLogger(__name__)


def sequence_by_distance(orders: Sequence[DeliveryOrder], *, today: date) -> list[DeliveryOrder]:
    """Nearest-neighbour run outward from the warehouse on client distance.

    Overdue orders count as zero distance away so they are delivered first.
    """
    remaining = list(orders)
    route: list[DeliveryOrder] = []
    current = Decimal("0")
    while remaining:
        nearest_index = 0
        nearest: Optional[Decimal] = None
        for index, order in enumerate(remaining):
            gap = Decimal("0") if order.is_overdue(today) else abs(distance_of(order) - current)
            if nearest is None or gap < nearest:
                nearest = gap
                nearest_index = index
        nxt = remaining.pop(nearest_index)
        route.append(nxt)
        current = distance_of(nxt)
    return route


class RoutePlannerService:
    """Use cases: daily delivery route, route costing and delivery confirmation."""

    def __init__(
        self,
        orders: OrderRepository,
        rates: RateService,
        *,
        upcoming_days: int = DEFAULT_UPCOMING_DAYS,
        transaction: Optional[Transaction] = None,
    ):
        self._orders = orders
        self._rates = rates
        self._upcoming_days = upcoming_days
        self._transaction = transaction or no_transaction

    def plan(self, *, plan_date: date, today: Optional[date] = None) -> dict:
        today = today or today_local()
        pending = list(self._orders.list_pending(scheduled_to=plan_date, exclude_pickup=True))
        pending.sort(
            key=lambda o: (o.po_date, o.distance_km if o.distance_km is not None else MISSING_DISTANCE_SORT_KM)
        )

        zones = []
        estimated_cost = Decimal("0")
        route_km = Decimal("0")
        if pending:
            route = sequence_by_distance(pending, today=today)
            stops = []
            legs = Decimal("0")
            previous_km = Decimal("0")
            for order, charge in sequence_orders(route, self._rates.calculator()):
                km = distance_of(order)
                part_numbers = list(dict.fromkeys(i.part_number for i in order.items))
                stops.append(
                    {
                        "id": order.order_id,
                        "po_number": order.po_number,
                        "po_date": iso(order.po_date),
                        "scheduled_date": iso(order.scheduled_date),
                        "client_id": order.client_id,
                        "client_code": order.client_code,
                        "province_name": order.client.province_label if order.client else None,
                        "area_name": order.client.area_name if order.client else None,
                        "zone_name": order.client.zone_name if order.client else None,
                        "zone_code": order.client.zone_code if order.client else None,
                        "distance_km": float(km),
                        "leg_distance_km": float(abs(km - previous_km)),
                        "cutoff_time": order.client.cutoff_time.strftime("%H:%M") if order.client and order.client.cutoff_time else None,
                        "total_items": order.total_items,
                        "total_quantity": order.total_quantity,
                        "total_amount": round_money(order.total_amount),
                        "base_rate": round_money(order.zone_base_rate),
                        "drop_cost": round_money(charge.drop_cost),
                        "is_overdue": order.is_overdue(today),
                        "days_until_due": days_between(today, order.scheduled_date),
                        "days_since_po": days_between(order.po_date, today),
                        "route_sequence": charge.sequence,
                        "primary_product": part_numbers[0] if part_numbers else "-",
                        "products": ", ".join(part_numbers) or "-",
                    }
                )
                legs += abs(km - previous_km)
                previous_km = km
                estimated_cost += charge.drop_cost

            max_km = max(distance_of(o) for o in route)
            route_km = legs + max_km
            zones.append(
                {
                    "id": "all-orders",
                    "order_count": len(stops),
                    "total_items": sum(o.total_items for o in route),
                    "total_quantity": sum(o.total_quantity for o in route),
                    "total_amount": round_money(sum((o.total_amount for o in route), Decimal("0"))),
                    "estimated_cost": round_money(estimated_cost),
                    "total_route_km": round_money(route_km, 1),
                    "max_distance": float(max_km),
                    "overdue_count": sum(1 for s in stops if s["is_overdue"]),
                    "oldest_po_date": iso(pending[0].po_date),
                    "province_summary": province_summary(pending),
                    "zone_summary": zone_summary(pending),
                    "orders": stops,
                }
            )

        summary = {
            "total_pending": len(pending),
            "total_zones": len({o.client.area_group_id for o in pending if o.client and o.client.area_group_id}),
            "total_estimated_cost": round_money(estimated_cost),
            "total_route_km": round_money(route_km, 1),
            "overdue_orders": sum(1 for o in pending if o.is_overdue(today)),
            "due_today": sum(1 for o in pending if o.scheduled_date == today),
            "oldest_po": iso(min((o.po_date for o in pending), default=None)),
        }
        return {
            "selected_date": iso(plan_date),
            "zones": zones,
            "summary": summary,
            "upcoming_orders": self.upcoming(plan_date=plan_date, today=today),
        }

    def upcoming(self, *, plan_date: date, today: Optional[date] = None) -> list[dict]:
        """Pending deliveries in the days after plan_date, grouped by scheduled date."""
        today = today or today_local()
        orders = list(
            self._orders.list_pending(
                scheduled_from=plan_date + timedelta(days=1),
                scheduled_to=plan_date + timedelta(days=self._upcoming_days),
                exclude_pickup=True,
            )
        )
        orders.sort(key=lambda o: (o.scheduled_date, o.po_date))

        calculator = self._rates.calculator()
        out = []
        for day, group in groupby(orders, key=lambda o: o.scheduled_date):
            day_orders = list(group)
            rows = []
            day_cost = Decimal("0")
            for order, charge in sequence_orders(day_orders, calculator):
                rows.append(
                    {
                        "id": order.order_id,
                        "po_number": order.po_number,
                        "po_date": iso(order.po_date),
                        "client_code": order.client_code,
                        "province_name": order.client.province_label if order.client else None,
                        "area_name": order.client.area_name if order.client else None,
                        "zone_name": order.client.zone_name if order.client else None,
                        "base_rate": round_money(order.zone_base_rate),
                        "drop_cost": round_money(charge.drop_cost),
                        "total_amount": round_money(order.total_amount),
                        "total_items": order.total_items,
                    }
                )
                day_cost += charge.drop_cost
            zones: dict[str, int] = {}
            for o in day_orders:
                name = o.client.zone_name if o.client else UNASSIGNED_ZONE
                zones[name] = zones.get(name, 0) + 1
            out.append(
                {
                    "date": iso(day),
                    "day_name": day.strftime("%A"),
                    "formatted_date": format_day(day),
                    "days_from_now": days_between(today, day),
                    "order_count": len(day_orders),
                    "total_amount": round_money(sum((o.total_amount for o in day_orders), Decimal("0"))),
                    "total_rate": round_money(day_cost),
                    "zone_count": len({o.client.area_group_id for o in day_orders if o.client and o.client.area_group_id}),
                    "zones": zones,
                    "orders": rows,
                }
            )
        return out

    def calculate_route(self, *, order_ids: Sequence[int]) -> dict:
        """Cost a hand-picked run: grouped by rate zone, oldest PO first within each zone."""
        orders = sorted(self._orders.list_by_ids([int(i) for i in order_ids]), key=lambda o: (o.po_date, o.order_id))

        groups: dict[Optional[int], list[DeliveryOrder]] = {}
        for o in orders:
            groups.setdefault(o.client.area_group_id if o.client else None, []).append(o)
        ordered = [o for group in groups.values() for o in group]

        route = []
        cumulative = Decimal("0")
        for order, charge in sequence_orders(ordered, self._rates.calculator()):
            cumulative += charge.drop_cost
            route.append(
                {
                    "sequence": charge.sequence,
                    "order_id": order.order_id,
                    "po_number": order.po_number,
                    "po_date": iso(order.po_date),
                    "client_code": order.client_code,
                    "area": order.client.area_name if order.client else None,
                    "zone": order.client.area_group_name if order.client else None,
                    "distance_km": float(distance_of(order)),
                    "drop_cost": round_money(charge.drop_cost),
                    "cumulative_cost": round_money(cumulative),
                }
            )
        return {
            "route": route,
            "total_cost": round_money(cumulative),
            "total_orders": len(route),
            "zones_covered": len(groups),
        }

    def confirm_delivery(
        self,
        *,
        order_id: int,
        delivery_date: date,
        base_rate: Optional[Decimal] = None,
        drop_cost: Optional[Decimal] = None,
    ) -> DeliveryOrder:
        """Single delivery: full base rate, no drop surcharge."""
        order = self._orders.get_by_id(int(order_id))
        if not order:
            raise NotFoundError("Delivery order not found")
        base = order.zone_base_rate if base_rate is None else base_rate
        total = base if drop_cost is None else drop_cost
        status = delivery_status(actual_date=delivery_date, scheduled_date=order.scheduled_date)

        with self._transaction():
            self._orders.apply_charge(
                order.order_id,
                base_rate=base,
                additional_rate_type=AdditionalRateType.NONE,
                additional_rate=Decimal("0"),
                total_rate=total,
            )
            self._orders.record_delivery(order.order_id, actual_date=delivery_date, status=status)
        logger.info("Delivery confirmed for PO# %s (%s)", order.po_number, status.value)
        return self._orders.get_by_id(order.order_id)

    def confirm_bulk(self, *, entries: Sequence[tuple[int, Optional[Decimal]]], delivery_date: date) -> int:
        """Multi-drop confirmation in the given order; entries are (order_id, base_rate or None)."""
        if not entries:
            raise ValidationError("At least one order is required")
        found = {o.order_id: o for o in self._orders.list_by_ids([int(i) for i, _ in entries])}
        missing = [str(i) for i, _ in entries if int(i) not in found]
        if missing:
            raise ValidationError(f"Delivery order(s) not found: {', '.join(missing)}")
        run = [(found[int(order_id)], base_rate) for order_id, base_rate in entries]

        charges = self._rates.calculator().sequence_drops([drop_stop(o, base_rate=b) for o, b in run])
        with self._transaction():
            for (order, _), charge in zip(run, charges):
                self._orders.apply_charge(
                    order.order_id,
                    base_rate=charge.base_rate,
                    additional_rate_type=charge.additional_rate_type,
                    additional_rate=charge.additional_rate,
                    total_rate=charge.total_rate,
                )
                self._orders.record_delivery(
                    order.order_id,
                    actual_date=delivery_date,
                    status=delivery_status(actual_date=delivery_date, scheduled_date=order.scheduled_date),
                )
        logger.info("%s delivery order(s) confirmed for %s", len(run), iso(delivery_date))
        return len(run)
