from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import NotificationType
from .model import NewNotification, Notification


class NotificationRepository(Protocol):
    """Every "for user" query covers the user's own rows plus global ones."""

    def add(self, notification: NewNotification, *, created_at: datetime) -> int:
        raise NotImplementedError

    def get(self, notification_id: int) -> Optional[Notification]:
        raise NotImplementedError

    def list_for_user(self, user_id: Optional[int], *, limit: int, offset: int = 0) -> Sequence[Notification]:
        raise NotImplementedError

    def count_for_user(self, user_id: Optional[int]) -> int:
        raise NotImplementedError

    def count_unread(self, user_id: Optional[int]) -> int:
        raise NotImplementedError

    def mark_read(self, notification_id: int, *, read_at: datetime) -> bool:
        raise NotImplementedError

    def mark_all_read(self, user_id: Optional[int], *, read_at: datetime) -> int:
        raise NotImplementedError

    def delete(self, notification_id: int) -> bool:
        raise NotImplementedError

    def delete_read(self, user_id: Optional[int]) -> int:
        raise NotImplementedError

    def exists_for_order_on(self, notification_type: NotificationType, order_id: int, day: date) -> bool:
        raise NotImplementedError
