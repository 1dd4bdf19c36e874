"""Settings shared by every environment; env modules override what differs."""

import os
from decimal import Decimal


def env_flag(name: str, default: str = "0") -> bool:
    return bool(int(os.getenv(name, default)))


def env_decimal(name: str, default: str) -> Decimal:
    return Decimal(os.getenv(name, default))


SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "delivery_db"),
}

DEBUG = env_flag("DEBUG", "0")
LOG_LEVEL = os.getenv("LOG_LEVEL") or None

AUTO_INIT_DB = env_flag("AUTO_INIT_DB", "0")
AUTO_SEED_DB = env_flag("AUTO_SEED_DB", "0")

# Per-drop surcharges; active global rate_settings rows take precedence.
SURCHARGES = {
    "drop_same_zone": env_decimal("RATE_DROP_SAME_ZONE", "250"),
    "drop_other_zone": env_decimal("RATE_DROP_OTHER_ZONE", "500"),
    "advance_delivery": env_decimal("RATE_ADVANCE_DELIVERY", "300"),
    "same_client": env_decimal("RATE_SAME_CLIENT", "250"),
}

KPI_THRESHOLD_PERCENT = env_decimal("KPI_THRESHOLD_PERCENT", "2")
L300_MAX_VALUE = env_decimal("L300_MAX_VALUE", "150000")
MAX_ORDERS_PER_BATCH = int(os.getenv("MAX_ORDERS_PER_BATCH", "10"))
