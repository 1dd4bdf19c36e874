"""Page permissions for staff accounts.

Admins implicitly hold every permission; staff hold an explicit list.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..core.enums import Role
from ..core.exceptions import ValidationError

AVAILABLE_PERMISSIONS: dict[str, str] = {
    "dashboard": "Dashboard",
    "delivery-orders": "Delivery Monitoring",
    "route-planner": "Route Planner",
    "allocation-planner": "Allocation Planner",
    "sales-tracking": "Sales Tracking",
    "master-data.provinces": "Master Data - Provinces",
    "master-data.area-groups": "Master Data - Area Groups",
    "master-data.areas": "Master Data - Areas",
    "master-data.clients": "Master Data - Clients",
    "master-data.products": "Master Data - Products",
    "system.users": "System - Users",
}

# Path prefix -> permission, checked in order.
ROUTE_PERMISSIONS: tuple[tuple[str, str], ...] = (
    ("dashboard", "dashboard"),
    ("delivery-orders", "delivery-orders"),
    ("route-planner", "route-planner"),
    ("allocation-planner", "allocation-planner"),
    ("sales-tracking", "sales-tracking"),
    ("master-data/provinces", "master-data.provinces"),
    ("master-data/area-groups", "master-data.area-groups"),
    ("master-data/areas", "master-data.areas"),
    ("master-data/clients", "master-data.clients"),
    ("master-data/products", "master-data.products"),
    ("system/users", "system.users"),
)


def clean_permissions(values: Optional[Iterable[str]]) -> list[str]:
    """Validate a submitted permission list, keeping the submitted order without duplicates."""
    out: list[str] = []
    for value in values or ():
        key = str(value).strip()
        if key not in AVAILABLE_PERMISSIONS:
            raise ValidationError(f"Unknown permission: {key}")
        if key not in out:
            out.append(key)
    return out


def has_permission(role: Role, permissions: Optional[Sequence[str]], permission: str) -> bool:
    if role == Role.ADMIN:
        return True
    return permission in (permissions or ())


def can_access_route(role: Role, permissions: Optional[Sequence[str]], path: str) -> bool:
    if role == Role.ADMIN:
        return True
    path = path.lstrip("/")
    for prefix, permission in ROUTE_PERMISSIONS:
        if path.startswith(prefix):
            return has_permission(role, permissions, permission)
    # notifications, settings and the like are open to every account
    return True
