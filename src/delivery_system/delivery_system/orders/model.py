from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..common.datetime_utils import days_between, iso
from ..common.money import optional_float
from ..core.constants import PICKUP_DELIVERY_TYPE
from ..core.enums import AdditionalRateType, OrderSort, OrderStatus
from ..masterdata.model import Client
from ..rates.model import drop_cost


def determine_status(*, current: OrderStatus, actual_date: Optional[date], scheduled_date: date) -> OrderStatus:
    """Cancelled stays cancelled; undelivered is pending; else on time vs delayed."""
    if current == OrderStatus.CANCELLED:
        return OrderStatus.CANCELLED
    if not actual_date:
        return OrderStatus.PENDING
    return delivery_status(actual_date=actual_date, scheduled_date=scheduled_date)


def delivery_status(*, actual_date: date, scheduled_date: date) -> OrderStatus:
    return OrderStatus.ON_TIME if actual_date <= scheduled_date else OrderStatus.DELAYED


@dataclass(frozen=True)
class DeliveryOrderItem:
    item_id: int
    order_id: int
    part_number: str
    unit_price: Decimal
    quantity: int
    total_price: Decimal
    product_id: Optional[int] = None
    description: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.item_id,
            "product_id": self.product_id,
            "part_number": self.part_number,
            "description": self.description,
            "unit_price": float(self.unit_price),
            "quantity": self.quantity,
            "total_price": float(self.total_price),
        }


@dataclass(frozen=True)
class DeliveryOrder:
    """Domain entity: a client's PO tracked through delivery."""

    order_id: int
    po_number: str
    po_date: date
    scheduled_date: date
    client_id: int
    province_id: int
    status: OrderStatus = OrderStatus.PENDING
    actual_date: Optional[date] = None
    batch_id: Optional[int] = None
    delivery_type: Optional[str] = None
    base_rate: Decimal = Decimal("0")
    additional_rate_type: AdditionalRateType = AdditionalRateType.NONE
    additional_rate: Decimal = Decimal("0")
    total_rate: Decimal = Decimal("0")
    total_items: int = 0
    total_quantity: int = 0
    total_amount: Decimal = Decimal("0")
    remarks: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    client: Optional[Client] = None
    items: tuple[DeliveryOrderItem, ...] = field(default_factory=tuple)

    @property
    def drop_cost(self) -> Decimal:
        return drop_cost(
            additional_rate_type=self.additional_rate_type,
            additional_rate=self.additional_rate,
            total_rate=self.total_rate,
        )

    @property
    def days_variance(self) -> Optional[int]:
        if not self.actual_date:
            return None
        return days_between(self.scheduled_date, self.actual_date)

    @property
    def is_pickup(self) -> bool:
        return self.delivery_type == PICKUP_DELIVERY_TYPE

    @property
    def client_code(self) -> Optional[str]:
        return self.client.code if self.client else None

    @property
    def area_id(self) -> Optional[int]:
        return self.client.area_id if self.client else None

    @property
    def zone_base_rate(self) -> Decimal:
        return self.client.base_rate if self.client else Decimal("0")

    @property
    def distance_km(self) -> Optional[Decimal]:
        return self.client.distance_km if self.client else None

    def is_overdue(self, today: date) -> bool:
        return self.scheduled_date < today

    def determine_status(self) -> OrderStatus:
        return determine_status(current=self.status, actual_date=self.actual_date, scheduled_date=self.scheduled_date)

    def to_dict(self, *, with_items: bool = True) -> dict:
        out = {
            "id": self.order_id,
            "po_number": self.po_number,
            "po_date": iso(self.po_date),
            "scheduled_date": iso(self.scheduled_date),
            "actual_date": iso(self.actual_date),
            "client_id": self.client_id,
            "client_code": self.client_code,
            "province_id": self.province_id,
            "province_name": self.client.province_label if self.client else None,
            "batch_id": self.batch_id,
            "status": self.status.value,
            "delivery_type": self.delivery_type,
            "base_rate": float(self.base_rate),
            "additional_rate_type": self.additional_rate_type.value,
            "additional_rate": float(self.additional_rate),
            "total_rate": float(self.total_rate),
            "drop_cost": float(self.drop_cost),
            "total_items": self.total_items,
            "total_quantity": self.total_quantity,
            "total_amount": float(self.total_amount),
            "distance_km": optional_float(self.distance_km),
            "days_variance": self.days_variance,
            "remarks": self.remarks,
        }
        if with_items:
            out["items"] = [i.to_dict() for i in self.items]
        return out


@dataclass(frozen=True)
class OrderItemInput:
    part_number: str
    unit_price: Decimal
    quantity: int
    product_id: Optional[int] = None
    description: Optional[str] = None
    item_id: Optional[int] = None

    @property
    def total_price(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class OrderInput:
    """Validated create/update payload."""

    po_number: str
    po_date: date
    scheduled_date: date
    client_id: int
    items: tuple[OrderItemInput, ...]
    actual_date: Optional[date] = None
    delivery_type: Optional[str] = None
    remarks: Optional[str] = None
    additional_rate_type: AdditionalRateType = AdditionalRateType.NONE


@dataclass(frozen=True)
class OrderRecord:
    """Header values written by create/update."""

    po_number: str
    po_date: date
    scheduled_date: date
    actual_date: Optional[date]
    client_id: int
    province_id: int
    status: OrderStatus
    delivery_type: Optional[str]
    remarks: Optional[str]
    base_rate: Decimal
    additional_rate_type: AdditionalRateType
    additional_rate: Decimal
    total_rate: Decimal
    created_by: Optional[int] = None


@dataclass(frozen=True)
class OrderFilters:
    search: Optional[str] = None
    province_id: Optional[int] = None
    client_id: Optional[int] = None
    status: Optional[OrderStatus] = None
    delivery_type: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    sort: OrderSort = OrderSort.FIFO


@dataclass(frozen=True)
class OrderSummaryCounts:
    total_orders: int = 0
    total_value: Decimal = Decimal("0")
    total_items: int = 0
    pending_count: int = 0
    confirmed_count: int = 0
    in_transit_count: int = 0
    on_time_count: int = 0
    delayed_count: int = 0


@dataclass(frozen=True)
class OrderPage:
    orders: list[DeliveryOrder]
    total: int
    page: int
    per_page: int

    @property
    def last_page(self) -> int:
        return max(1, -(-self.total // self.per_page))
