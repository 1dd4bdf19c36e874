from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Protocol, Sequence

from ..core.enums import AdditionalRateType, OrderStatus
from .model import DeliveryOrder, OrderFilters, OrderItemInput, OrderRecord, OrderSummaryCounts


class OrderRepository(Protocol):
    """Repository interface for delivery orders and their line items.

    Orders are always returned with their client (and rate zone) loaded.
    """

    def get_by_id(self, order_id: int) -> Optional[DeliveryOrder]:
        raise NotImplementedError

    def list_by_ids(self, order_ids: Sequence[int]) -> Sequence[DeliveryOrder]:
        raise NotImplementedError

    def search(self, filters: OrderFilters, *, limit: int, offset: int) -> Sequence[DeliveryOrder]:
        raise NotImplementedError

    def count(self, filters: OrderFilters) -> int:
        raise NotImplementedError

    def summarize(self, filters: OrderFilters) -> OrderSummaryCounts:
        """Totals over province/client/date filters only (search, status and sort ignored)."""
        raise NotImplementedError

    def create(self, record: OrderRecord) -> int:
        raise NotImplementedError

    def update(self, order_id: int, record: OrderRecord) -> bool:
        raise NotImplementedError

    def delete(self, order_id: int) -> bool:
        raise NotImplementedError

    def add_item(self, order_id: int, item: OrderItemInput) -> int:
        raise NotImplementedError

    def update_item(self, order_id: int, item: OrderItemInput) -> bool:
        raise NotImplementedError

    def delete_items_except(self, order_id: int, keep_item_ids: Iterable[int]) -> int:
        raise NotImplementedError

    def recalculate_totals(self, order_id: int) -> None:
        raise NotImplementedError

    def apply_charge(
        self,
        order_id: int,
        *,
        base_rate: Decimal,
        additional_rate_type: AdditionalRateType,
        additional_rate: Decimal,
        total_rate: Decimal,
    ) -> None:
        raise NotImplementedError

    def assign_batch(self, order_id: int, *, batch_id: Optional[int], status: OrderStatus) -> None:
        raise NotImplementedError

    def set_status(self, order_ids: Sequence[int], status: OrderStatus) -> None:
        raise NotImplementedError

    def record_delivery(self, order_id: int, *, actual_date: date, status: OrderStatus) -> None:
        raise NotImplementedError

    def set_scheduled_date(self, order_id: int, scheduled_date: date) -> None:
        raise NotImplementedError

    def list_pending(
        self,
        *,
        scheduled_from: Optional[date] = None,
        scheduled_to: Optional[date] = None,
        exclude_pickup: bool = False,
        unbatched_only: bool = False,
    ) -> Sequence[DeliveryOrder]:
        """Pending orders in an inclusive scheduled-date window, oldest PO first."""
        raise NotImplementedError

    def list_by_batch(self, batch_id: int) -> Sequence[DeliveryOrder]:
        raise NotImplementedError

    def list_completed(self, *, start: date, end: date, province_id: Optional[int] = None) -> Sequence[DeliveryOrder]:
        """On-time/delayed orders with actual_date in [start, end], filtered by client province."""
        raise NotImplementedError

    def count_open(self, *, province_id: Optional[int] = None) -> int:
        raise NotImplementedError
