from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from decimal import Decimal
from typing import Optional

from ..core.constants import UNASSIGNED_ZONE, UNKNOWN_PROVINCE
from ..core.enums import VehicleType


@dataclass(frozen=True)
class Province:
    province_id: int
    name: str
    code: str
    is_active: bool = True


@dataclass(frozen=True)
class AreaGroup:
    """Rate zone: every area in the group shares one base rate."""

    area_group_id: int
    name: str
    code: str
    base_rate: Decimal
    description: Optional[str] = None
    is_active: bool = True


@dataclass(frozen=True)
class Area:
    area_id: int
    province_id: int
    area_group_id: Optional[int]
    name: str
    code: str
    is_active: bool = True


@dataclass(frozen=True)
class Client:
    """Client joined with its province, area and area group.

    The joined columns are what planning and rating need, so repositories
    always load them together.
    """

    client_id: int
    code: str
    province_id: int
    province_name: Optional[str] = None
    area_id: Optional[int] = None
    area_name: Optional[str] = None
    area_group_id: Optional[int] = None
    area_group_name: Optional[str] = None
    area_group_code: Optional[str] = None
    base_rate: Decimal = Decimal("0")
    distance_km: Optional[Decimal] = None
    cutoff_time: Optional[time] = None
    name: Optional[str] = None
    contact_person: Optional[str] = None
    contact_number: Optional[str] = None
    email: Optional[str] = None
    is_active: bool = True

    @property
    def zone_name(self) -> str:
        return self.area_group_name or UNASSIGNED_ZONE

    @property
    def zone_code(self) -> str:
        return self.area_group_code or "-"

    @property
    def province_label(self) -> str:
        return self.province_name or UNKNOWN_PROVINCE


@dataclass(frozen=True)
class Product:
    product_id: int
    part_number: str
    description: Optional[str]
    unit_price: Decimal
    category: Optional[str] = None
    is_active: bool = True


@dataclass(frozen=True)
class Vehicle:
    vehicle_id: int
    code: str
    name: str
    vehicle_type: VehicleType
    plate_number: Optional[str]
    max_value: Decimal
    is_active: bool = True


@dataclass(frozen=True)
class RateSetting:
    """Configured surcharge; global when province_id is None."""

    rate_setting_id: int
    name: str
    rate_type: str
    rate: Decimal
    province_id: Optional[int] = None
    is_active: bool = True
