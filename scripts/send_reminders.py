"""Create in-app reminders for upcoming and urgent deliveries.

Run once a day (cron); notifications are deduplicated per order, type and day.
"""

from __future__ import annotations

import logging

import _paths  # noqa: F401

from config import load_settings

from delivery_system.container import build_container
from delivery_system.core.logging_config import setup_logging

logger = logging.getLogger("scripts.send_reminders")


def main() -> None:
    settings = load_settings()
    setup_logging(level=getattr(settings, "LOG_LEVEL", None) or "INFO")
    container = build_container(db_config=dict(settings.DB_CONFIG))

    service = container.notification_service
    upcoming = service.send_upcoming_reminders()
    urgent = service.check_urgent_orders()
    logger.info("Reminders created: upcoming=%s urgent=%s", upcoming, urgent)


if __name__ == "__main__":
    main()
