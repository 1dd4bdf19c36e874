from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from ..core.enums import NotificationType


@dataclass(frozen=True)
class NewNotification:
    """Notification about to be stored. user_id None means every user sees it."""

    notification_type: NotificationType
    title: str
    message: str
    icon: str
    icon_color: str
    link: Optional[str] = None
    user_id: Optional[int] = None
    delivery_order_id: Optional[int] = None
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Notification:
    notification_id: int
    notification_type: NotificationType
    title: str
    message: str
    created_at: datetime
    icon: Optional[str] = None
    icon_color: Optional[str] = None
    link: Optional[str] = None
    user_id: Optional[int] = None
    delivery_order_id: Optional[int] = None
    data: dict[str, Any] = field(default_factory=dict)
    read_at: Optional[datetime] = None

    @property
    def is_read(self) -> bool:
        return self.read_at is not None

    @property
    def is_global(self) -> bool:
        return self.user_id is None

    def visible_to(self, user_id: Optional[int]) -> bool:
        return self.is_global or self.user_id == user_id

    def to_dict(self) -> dict:
        return {
            "id": self.notification_id,
            "type": self.notification_type.value,
            "title": self.title,
            "message": self.message,
            "icon": self.icon,
            "icon_color": self.icon_color,
            "link": self.link,
            "data": self.data,
            "read_at": self.read_at.isoformat(sep=" ") if self.read_at else None,
            "created_at": self.created_at.isoformat(sep=" "),
            "is_read": self.is_read,
        }
