from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..common.datetime_utils import iso
from ..common.money import round_money
from ..core.enums import BatchStatus, VehicleType

STATUS_COLORS = {
    BatchStatus.PLANNED: "blue",
    BatchStatus.IN_TRANSIT: "yellow",
    BatchStatus.COMPLETED: "green",
    BatchStatus.CANCELLED: "red",
}


@dataclass(frozen=True)
class DeliveryBatch:
    """A truck/van run grouping confirmed orders for one planned date."""

    batch_id: int
    batch_number: str
    planned_date: date
    vehicle_type: VehicleType
    status: BatchStatus = BatchStatus.PLANNED
    area_group_id: Optional[int] = None
    area_group_name: Optional[str] = None
    area_group_code: Optional[str] = None
    vehicle_id: Optional[int] = None
    vehicle_name: Optional[str] = None
    order_count: int = 0
    total_items: int = 0
    total_value: Decimal = Decimal("0")
    total_rate: Decimal = Decimal("0")
    total_distance_km: Decimal = Decimal("0")
    actual_date: Optional[date] = None
    created_by: Optional[int] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def status_color(self) -> str:
        return STATUS_COLORS.get(self.status, "gray")

    def to_dict(self) -> dict:
        return {
            "id": self.batch_id,
            "batch_number": self.batch_number,
            "planned_date": iso(self.planned_date),
            "actual_date": iso(self.actual_date),
            "area_group_id": self.area_group_id,
            "area_group_name": self.area_group_name or "Unknown",
            "area_group_code": self.area_group_code or "-",
            "vehicle_id": self.vehicle_id,
            "vehicle_name": self.vehicle_name,
            "vehicle_type": self.vehicle_type.value,
            "vehicle_type_label": self.vehicle_type.label,
            "order_count": self.order_count,
            "total_items": self.total_items,
            "total_value": round_money(self.total_value),
            "total_rate": round_money(self.total_rate),
            "total_distance_km": round_money(self.total_distance_km),
            "status": self.status.value,
            "status_color": self.status_color,
        }


@dataclass(frozen=True)
class NewBatch:
    batch_number: str
    planned_date: date
    area_group_id: int
    vehicle_type: VehicleType
    order_count: int
    total_items: int
    total_value: Decimal
    total_rate: Decimal
    total_distance_km: Decimal
    vehicle_id: Optional[int] = None
    created_by: Optional[int] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class BatchSuggestion:
    """Proposed batch: same scheduled date and rate zone, capped order count."""

    planned_date: date
    area_group_id: Optional[int]
    zone_name: str
    vehicle_type: VehicleType
    order_ids: tuple[int, ...] = field(default_factory=tuple)
    total_value: Decimal = Decimal("0")
    total_rate: Decimal = Decimal("0")

    def to_dict(self) -> dict:
        return {
            "planned_date": iso(self.planned_date),
            "area_group_id": self.area_group_id,
            "zone_name": self.zone_name,
            "order_ids": list(self.order_ids),
            "order_count": len(self.order_ids),
            "total_value": round_money(self.total_value),
            "estimated_cost": round_money(self.total_rate),
            "vehicle_type": self.vehicle_type.value,
            "vehicle_type_label": self.vehicle_type.label,
        }
