"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

DEFAULT_PAGE_SIZE = 20
DEFAULT_RECENT_NOTIFICATIONS = 5
DEFAULT_UPCOMING_DAYS = 7
REMINDER_DAYS = (0, 1, 3)

# KPI: delivery rate must stay at or below 2% of actual sales (target = rate / 2%).
KPI_THRESHOLD_PERCENT = Decimal("2")

# Vehicle sizing: L300 vans carry loads up to this value, trucks above it.
L300_MAX_VALUE = Decimal("150000")
DEFAULT_MAX_ORDERS_PER_BATCH = 10

# Default surcharge table (per drop), overridable by global rate settings.
DEFAULT_SURCHARGES = {
    "drop_same_zone": Decimal("250"),
    "drop_other_zone": Decimal("500"),
    "advance_delivery": Decimal("300"),
    "same_client": Decimal("250"),
}

PICKUP_DELIVERY_TYPE = "Pickup"
BATCH_NUMBER_PREFIX = "BTH"
UNKNOWN_PROVINCE = "Unknown"
UNASSIGNED_ZONE = "Unassigned"

MIN_PASSWORD_LENGTH = 8
PART_NUMBER_MAX_LENGTH = 100
