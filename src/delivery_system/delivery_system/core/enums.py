from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role used for permission checks."""

    ADMIN = "admin"
    STAFF = "staff"


class OrderStatus(str, Enum):
    """Delivery order lifecycle as stored in the database."""

    PENDING = "pending"
    ON_TIME = "on_time"
    DELAYED = "delayed"
    CANCELLED = "cancelled"
    CONFIRMED = "confirmed"
    IN_TRANSIT = "in_transit"


COMPLETED_ORDER_STATUSES = (OrderStatus.ON_TIME, OrderStatus.DELAYED)
OPEN_ORDER_STATUSES = (OrderStatus.PENDING, OrderStatus.CONFIRMED)


class AdditionalRateType(str, Enum):
    """Surcharge kind applied on top of (or instead of) the area-group base rate."""

    NONE = "none"
    DROP_SAME_ZONE = "drop_same_zone"
    DROP_OTHER_ZONE = "drop_other_zone"
    ADVANCE_DELIVERY = "advance_delivery"
    SAME_CLIENT = "same_client"


DROP_RATE_TYPES = (AdditionalRateType.DROP_SAME_ZONE, AdditionalRateType.DROP_OTHER_ZONE)


class BatchStatus(str, Enum):
    PLANNED = "planned"
    IN_TRANSIT = "in_transit"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class VehicleType(str, Enum):
    L300 = "l300"
    TRUCK = "truck"

    @property
    def label(self) -> str:
        return "L300 Van" if self is VehicleType.L300 else "Truck"


class MilestoneStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    SKIPPED = "skipped"


class ReportPeriod(str, Enum):
    """Grouping used by the sales tracking report."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class OrderSort(str, Enum):
    FIFO = "fifo"
    SCHEDULED_ASC = "scheduled_asc"
    SCHEDULED_DESC = "scheduled_desc"
    URGENT = "urgent"
    NEWEST = "newest"


class NotificationType(str, Enum):
    DELIVERY_SCHEDULED = "delivery_scheduled"
    DELIVERY_COMPLETED = "delivery_completed"
    DELIVERY_DELAYED = "delivery_delayed"
    KPI_ALERT = "kpi_alert"
    REPORT_READY = "report_ready"
    UPCOMING_DELIVERY = "upcoming_delivery"
    OVERDUE_DELIVERY = "overdue_delivery"
    DUE_TODAY = "due_today"
    DUE_TOMORROW = "due_tomorrow"
