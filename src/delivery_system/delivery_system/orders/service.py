from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from ..common.datetime_utils import parse_optional_date
from ..common.money import round_money
from ..common.transactions import Transaction, no_transaction
from ..common.validators import optional_int, optional_text, require_decimal, require_int, require_max_length, require_non_empty
from ..core.constants import DEFAULT_PAGE_SIZE, PART_NUMBER_MAX_LENGTH, PICKUP_DELIVERY_TYPE
from ..core.enums import OrderSort, OrderStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..masterdata.model import Client
from ..masterdata.repository import MasterDataRepository
from ..notifications.service import NotificationService
from ..rates.service import RateService, parse_rate_type
from .model import (
    DeliveryOrder,
    OrderFilters,
    OrderInput,
    OrderItemInput,
    OrderPage,
    OrderRecord,
    determine_status,
)
from .repository import OrderRepository

logger = logging.getLogger(__name__)

DELIVERY_TYPES = ("Drop Off", PICKUP_DELIVERY_TYPE)


def _required_date(data: dict, name: str):
    value = parse_optional_date(str(data.get(name) or ""), name)
    if not value:
        raise ValidationError(f"{name} is required")
    return value


def parse_order_input(data: dict[str, Any]) -> OrderInput:
    """Validate a create/update payload into an OrderInput."""
    po_number = require_max_length(require_non_empty(data.get("po_number"), "po_number"), "po_number", 50)
    po_date = _required_date(data, "po_date")
    scheduled_date = _required_date(data, "scheduled_date")
    actual_date = parse_optional_date(str(data.get("actual_date") or ""), "actual_date")
    client_id = require_int(data.get("client_id"), "client_id", minimum=1)

    delivery_type = optional_text(data.get("delivery_type"))
    if delivery_type and delivery_type not in DELIVERY_TYPES:
        raise ValidationError(f"delivery_type must be one of: {', '.join(DELIVERY_TYPES)}")

    raw_items = data.get("items") or []
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("At least one item is required")

    items = []
    for index, raw in enumerate(raw_items, start=1):
        if not isinstance(raw, dict):
            raise ValidationError(f"Item {index} is invalid")
        part_field = f"items.{index}.part_number"
        items.append(
            OrderItemInput(
                item_id=optional_int(raw.get("id"), f"items.{index}.id"),
                product_id=optional_int(raw.get("product_id"), f"items.{index}.product_id"),
                part_number=require_max_length(
                    require_non_empty(raw.get("part_number"), part_field), part_field, PART_NUMBER_MAX_LENGTH
                ),
                description=optional_text(raw.get("description")),
                unit_price=require_decimal(raw.get("unit_price"), f"items.{index}.unit_price", minimum=Decimal("0")),
                quantity=require_int(raw.get("quantity"), f"items.{index}.quantity", minimum=1),
            )
        )

    return OrderInput(
        po_number=po_number,
        po_date=po_date,
        scheduled_date=scheduled_date,
        actual_date=actual_date,
        client_id=client_id,
        delivery_type=delivery_type,
        remarks=optional_text(data.get("remarks")),
        additional_rate_type=parse_rate_type(data.get("additional_rate_type")),
        items=tuple(items),
    )


class DeliveryOrderService:
    """Use cases for delivery order intake and listing."""

    def __init__(
        self,
        orders: OrderRepository,
        masterdata: MasterDataRepository,
        rates: RateService,
        notifications: NotificationService,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        transaction: Optional[Transaction] = None,
    ):
        self._orders = orders
        self._masterdata = masterdata
        self._rates = rates
        self._notifications = notifications
        self._page_size = page_size
        self._transaction = transaction or no_transaction

    def _client(self, client_id: int) -> Client:
        client = self._masterdata.get_client(int(client_id))
        if not client:
            raise ValidationError("Selected client does not exist")
        return client

    def _check_products(self, data: OrderInput) -> None:
        for index, item in enumerate(data.items, start=1):
            if item.product_id is not None and not self._masterdata.get_product(item.product_id):
                raise ValidationError(f"items.{index}.product_id does not exist")

    def _record(self, data: OrderInput, *, client: Client, status: OrderStatus, created_by: Optional[int]) -> OrderRecord:
        quote = self._rates.quote(base_rate=client.base_rate, additional_rate_type=data.additional_rate_type)
        return OrderRecord(
            po_number=data.po_number,
            po_date=data.po_date,
            scheduled_date=data.scheduled_date,
            actual_date=data.actual_date,
            client_id=client.client_id,
            province_id=client.province_id,
            status=status,
            delivery_type=data.delivery_type,
            remarks=data.remarks,
            base_rate=quote.base_rate,
            additional_rate_type=quote.additional_rate_type,
            additional_rate=quote.additional_rate,
            total_rate=quote.total_rate,
            created_by=created_by,
        )

    def get(self, order_id: int) -> DeliveryOrder:
        order = self._orders.get_by_id(int(order_id))
        if not order:
            raise NotFoundError("Delivery order not found")
        return order

    def create(self, *, data: OrderInput, created_by: Optional[int] = None, now: Optional[datetime] = None) -> DeliveryOrder:
        client = self._client(data.client_id)
        self._check_products(data)
        status = determine_status(current=OrderStatus.PENDING, actual_date=data.actual_date, scheduled_date=data.scheduled_date)

        with self._transaction():
            order_id = self._orders.create(self._record(data, client=client, status=status, created_by=created_by))
            for item in data.items:
                self._orders.add_item(order_id, item)
            self._orders.recalculate_totals(order_id)

        order = self.get(order_id)
        logger.info("Delivery order %s created (id=%s, client=%s)", order.po_number, order_id, client.code)
        self._notifications.notify_delivery_scheduled(order, now=now)
        return order

    def update(self, *, order_id: int, data: OrderInput) -> DeliveryOrder:
        existing = self.get(order_id)
        client = self._client(data.client_id)
        self._check_products(data)
        status = determine_status(current=existing.status, actual_date=data.actual_date, scheduled_date=data.scheduled_date)
        record = self._record(data, client=client, status=status, created_by=existing.created_by)
        keep_ids = [i.item_id for i in data.items if i.item_id is not None]

        with self._transaction():
            self._orders.update(existing.order_id, record)
            self._orders.delete_items_except(existing.order_id, keep_ids)
            for item in data.items:
                if item.item_id is not None and self._orders.update_item(existing.order_id, item):
                    continue
                self._orders.add_item(existing.order_id, item)
            self._orders.recalculate_totals(existing.order_id)

        logger.info("Delivery order %s updated (status=%s)", data.po_number, status.value)
        return self.get(existing.order_id)

    def delete(self, *, order_id: int) -> None:
        order = self.get(order_id)
        self._orders.delete(order.order_id)
        logger.info("Delivery order %s deleted", order.po_number)

    def list(self, *, filters: OrderFilters, page: int = 1) -> OrderPage:
        page = max(1, int(page))
        orders = self._orders.search(filters, limit=self._page_size, offset=(page - 1) * self._page_size)
        return OrderPage(orders=list(orders), total=self._orders.count(filters), page=page, per_page=self._page_size)

    def summary(self, *, filters: OrderFilters) -> dict:
        """Totals for the list header; search, status and delivery type are not applied."""
        counts = self._orders.summarize(filters)
        completed = counts.on_time_count + counts.delayed_count
        on_time_pct = round_money(Decimal(counts.on_time_count) * 100 / completed, 1) if completed else 0.0
        return {
            "total_orders": counts.total_orders,
            "total_value": round_money(counts.total_value),
            "total_items": counts.total_items,
            "pending_count": counts.pending_count,
            "confirmed_count": counts.confirmed_count,
            "in_transit_count": counts.in_transit_count,
            "on_time_count": counts.on_time_count,
            "delayed_count": counts.delayed_count,
            "on_time_percentage": on_time_pct,
        }

    def client_products(self, *, client_id: int) -> list[dict]:
        self._client(client_id)
        return [
            {
                "id": p.product_id,
                "part_number": p.part_number,
                "description": p.description,
                "unit_price": float(p.unit_price),
                "category": p.category,
            }
            for p in self._masterdata.list_client_products(int(client_id))
        ]


def parse_filters(args: dict[str, Any]) -> OrderFilters:
    """Build list filters from query-string values."""
    status = optional_text(args.get("status"))
    if status == "all":
        status = None
    sort = optional_text(args.get("sort")) or OrderSort.FIFO.value
    delivery_type = optional_text(args.get("delivery_type"))
    try:
        return OrderFilters(
            search=optional_text(args.get("search")),
            province_id=optional_int(args.get("province_id"), "province_id"),
            client_id=optional_int(args.get("client_id"), "client_id"),
            status=OrderStatus(status) if status else None,
            delivery_type=None if delivery_type == "all" else delivery_type,
            date_from=parse_optional_date(args.get("date_from"), "date_from"),
            date_to=parse_optional_date(args.get("date_to"), "date_to"),
            sort=OrderSort(sort),
        )
    except ValueError as e:
        raise ValidationError(f"Invalid filter: {e}")
