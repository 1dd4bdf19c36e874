from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..core.enums import BatchStatus
from .model import DeliveryBatch, NewBatch


class BatchRepository(Protocol):
    def get(self, batch_id: int) -> Optional[DeliveryBatch]:
        raise NotImplementedError

    def latest_number_for(self, prefix: str) -> Optional[str]:
        raise NotImplementedError

    def create(self, batch: NewBatch) -> int:
        raise NotImplementedError

    def update_totals(
        self,
        batch_id: int,
        *,
        order_count: int,
        total_items: int,
        total_value: Decimal,
        total_rate: Decimal,
    ) -> None:
        raise NotImplementedError

    def set_status(self, batch_id: int, status: BatchStatus, *, actual_date: Optional[date] = None) -> None:
        raise NotImplementedError

    def delete(self, batch_id: int) -> bool:
        raise NotImplementedError

    def list_for_date(self, planned_date: date, *, include_completed: bool = False) -> Sequence[DeliveryBatch]:
        raise NotImplementedError
