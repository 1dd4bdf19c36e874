from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from ..common.datetime_utils import iso, today_local
from ..common.money import round_money
from ..common.transactions import Transaction, no_transaction
from ..core.constants import DEFAULT_MAX_ORDERS_PER_BATCH, L300_MAX_VALUE, UNASSIGNED_ZONE
from ..core.enums import AdditionalRateType, BatchStatus, OrderStatus, VehicleType
from ..core.exceptions import NotFoundError, ValidationError
from ..masterdata.repository import MasterDataRepository
from ..notifications.service import NotificationService
from ..orders.model import DeliveryOrder, delivery_status
from ..orders.repository import OrderRepository
from ..rates.service import RateService
from .batch_numbers import batch_number_prefix, determine_vehicle_type, next_batch_number
from .drops import distance_of, province_summary, sequence_orders, zone_summary
from .model import BatchSuggestion, DeliveryBatch, NewBatch
from .repository import BatchRepository

logger = logging.getLogger(__name__)


class AllocationPlannerService:
    """Use cases: group pending orders into vehicle batches and run them to completion."""

    def __init__(
        self,
        orders: OrderRepository,
        batches: BatchRepository,
        rates: RateService,
        masterdata: MasterDataRepository,
        notifications: NotificationService,
        *,
        l300_max_value: Decimal = L300_MAX_VALUE,
        max_orders_per_batch: int = DEFAULT_MAX_ORDERS_PER_BATCH,
        transaction: Optional[Transaction] = None,
    ):
        self._orders = orders
        self._batches = batches
        self._rates = rates
        self._masterdata = masterdata
        self._notifications = notifications
        self._l300_max_value = Decimal(l300_max_value)
        self._max_orders = max(1, int(max_orders_per_batch))
        self._transaction = transaction or no_transaction

    def vehicle_for(self, total_value: Decimal) -> VehicleType:
        return determine_vehicle_type(total_value, l300_max_value=self._l300_max_value)

    def _unallocated(self, plan_date: date) -> list[DeliveryOrder]:
        return list(self._orders.list_pending(scheduled_to=plan_date, exclude_pickup=True, unbatched_only=True))

    def _batch(self, batch_id: int) -> DeliveryBatch:
        batch = self._batches.get(int(batch_id))
        if not batch:
            raise NotFoundError("Delivery batch not found")
        return batch

    def overview(self, *, plan_date: date, today: Optional[date] = None) -> dict:
        today = today or today_local()
        pending = self._unallocated(plan_date)

        zones = []
        if pending:
            rows = []
            batch_cost = Decimal("0")
            for order, charge in sequence_orders(pending, self._rates.calculator()):
                batch_cost += charge.drop_cost
                rows.append(
                    {
                        "id": order.order_id,
                        "po_number": order.po_number,
                        "po_date": iso(order.po_date),
                        "scheduled_date": iso(order.scheduled_date),
                        "client_code": order.client_code,
                        "client_name": order.client.name if order.client else None,
                        "province_name": order.client.province_label if order.client else None,
                        "area_name": order.client.area_name if order.client else None,
                        "zone_name": order.client.zone_name if order.client else None,
                        "zone_code": order.client.zone_code if order.client else None,
                        "area_group_id": order.client.area_group_id if order.client else None,
                        "distance_km": float(distance_of(order)),
                        "total_items": order.total_items,
                        "total_amount": round_money(order.total_amount),
                        "drop_cost": round_money(charge.drop_cost),
                        "is_overdue": order.is_overdue(today),
                    }
                )
            total_value = sum((o.total_amount for o in pending), Decimal("0"))
            vehicle = self.vehicle_for(total_value)
            zones.append(
                {
                    "id": "all-orders",
                    "order_count": len(pending),
                    "total_items": sum(o.total_items for o in pending),
                    "total_value": round_money(total_value),
                    "batch_cost": round_money(batch_cost),
                    "recommended_vehicle": vehicle.value,
                    "recommended_vehicle_label": vehicle.label,
                    "overdue_count": sum(1 for o in pending if o.is_overdue(today)),
                    "province_summary": province_summary(pending),
                    "zone_summary": zone_summary(pending),
                    "orders": rows,
                }
            )

        batches = []
        allocated_value = Decimal("0")
        for batch in self._batches.list_for_date(plan_date):
            batch_orders = self._orders.list_by_batch(batch.batch_id)
            allocated_value += batch.total_value
            item = batch.to_dict()
            item["province_names"] = list(
                dict.fromkeys(o.client.province_name for o in batch_orders if o.client and o.client.province_name)
            )
            item["orders"] = [
                {
                    "id": o.order_id,
                    "po_number": o.po_number,
                    "client_code": o.client_code,
                    "total_amount": round_money(o.total_amount),
                    "province_name": o.client.province_name if o.client else None,
                }
                for o in batch_orders
            ]
            batches.append(item)

        vehicles = [
            {
                "id": v.vehicle_id,
                "code": v.code,
                "name": v.name,
                "type": v.vehicle_type.value,
                "plate_number": v.plate_number,
                "max_value": round_money(v.max_value),
            }
            for v in self._masterdata.list_vehicles(active_only=True)
        ]

        return {
            "selected_date": iso(plan_date),
            "zones": zones,
            "batches": batches,
            "vehicles": vehicles,
            "suggestions": [s.to_dict() for s in self.suggest_batches(plan_date=plan_date, pending=pending)],
            "summary": {
                "unallocated_zones": len(zones),
                "unallocated_orders": len(pending),
                "unallocated_value": round_money(sum((o.total_amount for o in pending), Decimal("0"))),
                "allocated_batches": len(batches),
                "allocated_orders": sum(b["order_count"] for b in batches),
                "allocated_value": round_money(allocated_value),
            },
        }

    def suggest_batches(
        self, *, plan_date: date, pending: Optional[Sequence[DeliveryOrder]] = None
    ) -> list[BatchSuggestion]:
        """Group unallocated orders by scheduled date and rate zone, capped per vehicle run."""
        orders = list(pending) if pending is not None else self._unallocated(plan_date)
        groups: dict[tuple, list[DeliveryOrder]] = {}
        for o in sorted(orders, key=lambda x: (x.scheduled_date, x.po_date, x.order_id)):
            key = (o.scheduled_date, o.client.area_group_id if o.client else None)
            groups.setdefault(key, []).append(o)

        calculator = self._rates.calculator()
        suggestions = []
        for (day, area_group_id), members in groups.items():
            zone_name = members[0].client.zone_name if members[0].client else UNASSIGNED_ZONE
            for start in range(0, len(members), self._max_orders):
                chunk = members[start : start + self._max_orders]
                value = sum((o.total_amount for o in chunk), Decimal("0"))
                cost = sum((c.drop_cost for _, c in sequence_orders(chunk, calculator)), Decimal("0"))
                suggestions.append(
                    BatchSuggestion(
                        planned_date=day,
                        area_group_id=area_group_id,
                        zone_name=zone_name,
                        vehicle_type=self.vehicle_for(value),
                        order_ids=tuple(o.order_id for o in chunk),
                        total_value=value,
                        total_rate=cost,
                    )
                )
        return suggestions

    def _resequence(self, orders: Sequence[DeliveryOrder]) -> Decimal:
        """Re-price a batch's orders as one multi-drop run; returns the run cost."""
        total = Decimal("0")
        for order, charge in sequence_orders(orders, self._rates.calculator()):
            self._orders.apply_charge(
                order.order_id,
                base_rate=charge.base_rate,
                additional_rate_type=charge.additional_rate_type,
                additional_rate=charge.additional_rate,
                total_rate=charge.total_rate,
            )
            total += charge.drop_cost
        return total

    def _release(self, order: DeliveryOrder) -> None:
        self._orders.assign_batch(order.order_id, batch_id=None, status=OrderStatus.PENDING)
        self._orders.apply_charge(
            order.order_id,
            base_rate=Decimal("0"),
            additional_rate_type=AdditionalRateType.NONE,
            additional_rate=Decimal("0"),
            total_rate=Decimal("0"),
        )

    def allocate(
        self,
        *,
        order_ids: Sequence[int],
        planned_date: date,
        vehicle_type: VehicleType,
        vehicle_id: Optional[int] = None,
        created_by: Optional[int] = None,
    ) -> DeliveryBatch:
        ids = list(dict.fromkeys(int(i) for i in order_ids))
        if not ids:
            raise ValidationError("Select at least one order")
        orders = sorted(self._orders.list_by_ids(ids), key=lambda o: (o.po_date, o.order_id))
        if len(orders) != len(ids):
            raise ValidationError("One or more selected orders do not exist")
        already = [o.po_number for o in orders if o.batch_id is not None]
        if already:
            raise ValidationError(f"Already allocated to a batch: {', '.join(already)}")

        area_group_id = orders[0].client.area_group_id if orders[0].client else None
        if not area_group_id:
            raise ValidationError("Could not determine area group from orders")

        cost = sum((c.drop_cost for _, c in sequence_orders(orders, self._rates.calculator())), Decimal("0"))
        max_km = max(distance_of(o) for o in orders)
        with self._transaction():
            number = next_batch_number(planned_date, self._batches.latest_number_for(batch_number_prefix(planned_date)))
            batch_id = self._batches.create(
                NewBatch(
                    batch_number=number,
                    planned_date=planned_date,
                    area_group_id=int(area_group_id),
                    vehicle_id=vehicle_id,
                    vehicle_type=vehicle_type,
                    order_count=len(orders),
                    total_items=sum(o.total_items for o in orders),
                    total_value=sum((o.total_amount for o in orders), Decimal("0")),
                    total_rate=cost,
                    total_distance_km=max_km * 2,
                    created_by=created_by,
                )
            )
            self._resequence(orders)
            for o in orders:
                self._orders.assign_batch(o.order_id, batch_id=batch_id, status=OrderStatus.CONFIRMED)

        logger.info("Batch %s created with %s orders (cost=%s)", number, len(orders), cost)
        return self._batch(batch_id)

    def remove_from_batch(self, *, order_id: int) -> Optional[DeliveryBatch]:
        """Returns the updated batch, or None when removing the order emptied (and deleted) it."""
        order = self._orders.get_by_id(int(order_id))
        if not order:
            raise NotFoundError("Delivery order not found")
        if order.batch_id is None:
            raise ValidationError("Order is not assigned to any batch")
        batch = self._batch(order.batch_id)

        with self._transaction():
            self._release(order)
            remaining = list(self._orders.list_by_batch(batch.batch_id))
            if not remaining:
                self._batches.delete(batch.batch_id)
            else:
                total_rate = self._resequence(remaining)
                self._batches.update_totals(
                    batch.batch_id,
                    order_count=len(remaining),
                    total_items=sum(o.total_items for o in remaining),
                    total_value=sum((o.total_amount for o in remaining), Decimal("0")),
                    total_rate=total_rate,
                )

        if not remaining:
            logger.info("Batch %s deleted after its last order was removed", batch.batch_number)
            return None
        logger.info("Order %s removed from batch %s", order.po_number, batch.batch_number)
        return self._batch(batch.batch_id)

    def delete_batch(self, *, batch_id: int) -> None:
        batch = self._batch(batch_id)
        with self._transaction():
            for order in self._orders.list_by_batch(batch.batch_id):
                self._release(order)
            self._batches.delete(batch.batch_id)
        logger.info("Batch %s deleted and orders released", batch.batch_number)

    def start_delivery(self, *, batch_id: int) -> DeliveryBatch:
        batch = self._batch(batch_id)
        if batch.status == BatchStatus.COMPLETED:
            raise ValidationError("Batch is already completed")
        with self._transaction():
            self._batches.set_status(batch.batch_id, BatchStatus.IN_TRANSIT)
            self._orders.set_status(
                [o.order_id for o in self._orders.list_by_batch(batch.batch_id)], OrderStatus.IN_TRANSIT
            )
        logger.info("Batch %s is now in transit", batch.batch_number)
        return self._batch(batch.batch_id)

    def complete_batch(self, *, batch_id: int, delivery_date: date) -> DeliveryBatch:
        batch = self._batch(batch_id)
        with self._transaction():
            self._batches.set_status(batch.batch_id, BatchStatus.COMPLETED, actual_date=delivery_date)
            orders = list(self._orders.list_by_batch(batch.batch_id))
            for order in orders:
                status = delivery_status(actual_date=delivery_date, scheduled_date=order.scheduled_date)
                self._orders.record_delivery(order.order_id, actual_date=delivery_date, status=status)
                self._notifications.notify_delivery_completed(order)
                if status == OrderStatus.DELAYED:
                    self._notifications.notify_delivery_delayed(order)
        logger.info("Batch %s completed with %s orders", batch.batch_number, len(orders))
        return self._batch(batch.batch_id)
