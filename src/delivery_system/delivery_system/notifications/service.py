from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional

from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_PAGE_SIZE, DEFAULT_RECENT_NOTIFICATIONS, REMINDER_DAYS
from ..core.exceptions import AuthorizationError, NotFoundError
from ..orders.model import DeliveryOrder
from ..orders.repository import OrderRepository
from .factory import NotificationFactory
from .model import NewNotification, Notification
from .repository import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(
        self,
        notifications: NotificationRepository,
        orders: OrderRepository,
        *,
        factory: Optional[NotificationFactory] = None,
        reminder_days: tuple[int, ...] = REMINDER_DAYS,
    ):
        self._notifications = notifications
        self._orders = orders
        self._factory = factory or NotificationFactory()
        self._reminder_days = tuple(reminder_days)

    @property
    def factory(self) -> NotificationFactory:
        return self._factory

    # ---- emitting ----------------------------------------------------------

    def notify(self, notification: NewNotification, *, now: Optional[datetime] = None) -> int:
        now = now or now_local()
        notification_id = self._notifications.add(notification, created_at=now)
        logger.info(
            "Notification %s created (type=%s, user=%s)",
            notification_id,
            notification.notification_type.value,
            notification.user_id if notification.user_id is not None else "all",
        )
        return notification_id

    def notify_delivery_scheduled(self, order: DeliveryOrder, *, now: Optional[datetime] = None) -> int:
        return self.notify(self._factory.delivery_scheduled(order), now=now)

    def notify_delivery_completed(self, order: DeliveryOrder, *, now: Optional[datetime] = None) -> int:
        return self.notify(self._factory.delivery_completed(order), now=now)

    def notify_delivery_delayed(self, order: DeliveryOrder, *, now: Optional[datetime] = None) -> int:
        return self.notify(self._factory.delivery_delayed(order), now=now)

    def notify_kpi_alert(self, province: str, percentage: Decimal, *, now: Optional[datetime] = None) -> int:
        return self.notify(self._factory.kpi_alert(province, percentage), now=now)

    # ---- reading -----------------------------------------------------------

    def list_for_user(self, *, user_id: Optional[int], page: int = 1, per_page: int = DEFAULT_PAGE_SIZE) -> dict:
        page = max(1, int(page))
        items = self._notifications.list_for_user(user_id, limit=per_page, offset=(page - 1) * per_page)
        total = self._notifications.count_for_user(user_id)
        return {
            "notifications": [n.to_dict() for n in items],
            "unread_count": self._notifications.count_unread(user_id),
            "total": total,
            "page": page,
            "per_page": per_page,
            "last_page": max(1, -(-total // per_page)),
        }

    def recent(
        self,
        *,
        user_id: Optional[int],
        limit: int = DEFAULT_RECENT_NOTIFICATIONS,
        now: Optional[datetime] = None,
    ) -> dict:
        """Latest notifications for the header dropdown; refreshes urgent-order alerts first."""
        now = now or now_local()
        self.check_urgent_orders(now=now)
        items = self._notifications.list_for_user(user_id, limit=limit)
        return {
            "notifications": [n.to_dict() for n in items],
            "unread_count": self._notifications.count_unread(user_id),
        }

    def unread_count(self, *, user_id: Optional[int]) -> int:
        return self._notifications.count_unread(user_id)

    # ---- state changes -----------------------------------------------------

    def _owned(self, *, user_id: Optional[int], notification_id: int) -> Notification:
        n = self._notifications.get(int(notification_id))
        if not n:
            raise NotFoundError("Notification not found")
        if not n.visible_to(user_id):
            raise AuthorizationError("You cannot access this notification")
        return n

    def mark_read(self, *, user_id: Optional[int], notification_id: int, now: Optional[datetime] = None) -> None:
        n = self._owned(user_id=user_id, notification_id=notification_id)
        if not n.is_read:
            self._notifications.mark_read(n.notification_id, read_at=now or now_local())

    def mark_all_read(self, *, user_id: Optional[int], now: Optional[datetime] = None) -> int:
        return self._notifications.mark_all_read(user_id, read_at=now or now_local())

    def delete(self, *, user_id: Optional[int], notification_id: int) -> None:
        n = self._owned(user_id=user_id, notification_id=notification_id)
        self._notifications.delete(n.notification_id)

    def delete_read(self, *, user_id: Optional[int]) -> int:
        return self._notifications.delete_read(user_id)

    # ---- scheduled checks --------------------------------------------------

    def _notify_once(self, notification: NewNotification, *, day: date, now: datetime) -> bool:
        order_id = notification.delivery_order_id
        if order_id is not None and self._notifications.exists_for_order_on(notification.notification_type, order_id, day):
            return False
        self.notify(notification, now=now)
        return True

    def check_urgent_orders(self, *, now: Optional[datetime] = None) -> int:
        """Global alerts for pending orders that are overdue, due today or due tomorrow.

        At most one alert per order, per type, per day.
        """
        now = now or now_local()
        today = now.date()
        created = 0

        for order in self._orders.list_pending(scheduled_to=today - timedelta(days=1)):
            created += self._notify_once(self._factory.overdue_delivery(order), day=today, now=now)
        for order in self._orders.list_pending(scheduled_from=today, scheduled_to=today):
            created += self._notify_once(self._factory.due_today(order), day=today, now=now)
        tomorrow = today + timedelta(days=1)
        for order in self._orders.list_pending(scheduled_from=tomorrow, scheduled_to=tomorrow):
            created += self._notify_once(self._factory.due_tomorrow(order), day=today, now=now)

        if created:
            logger.info("Created %s urgent-order notifications", created)
        return created

    def send_upcoming_reminders(self, *, now: Optional[datetime] = None) -> int:
        """Reminders on the day, one day before and three days before delivery."""
        now = now or now_local()
        today = now.date()
        sent = 0
        for days in self._reminder_days:
            target = today + timedelta(days=days)
            for order in self._orders.list_pending(scheduled_from=target, scheduled_to=target):
                if self._notify_once(self._factory.upcoming_delivery(order, days), day=today, now=now):
                    sent += 1
                    logger.info("Reminder sent for %s (scheduled in %s days)", order.po_number, days)
        logger.info("Sent %s reminder notifications", sent)
        return sent
