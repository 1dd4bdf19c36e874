from __future__ import annotations

import json
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from ..core.enums import NotificationType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, load_json
from .model import NewNotification, Notification
from .repository import NotificationRepository

_COLUMNS = "id, user_id, type, title, message, icon, icon_color, link, data, delivery_order_id, read_at, created_at"
_VISIBLE = "(user_id=%s OR user_id IS NULL)"


def _from_row(r: dict) -> Notification:
    return Notification(
        notification_id=int(r["id"]),
        user_id=r.get("user_id"),
        notification_type=NotificationType(r["type"]),
        title=r["title"],
        message=r["message"],
        icon=r.get("icon"),
        icon_color=r.get("icon_color"),
        link=r.get("link"),
        data=load_json(r.get("data")) or {},
        delivery_order_id=r.get("delivery_order_id"),
        read_at=r.get("read_at"),
        created_at=r["created_at"],
    )


class MySQLNotificationRepository(NotificationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def add(self, notification: NewNotification, *, created_at: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO notifications(user_id, type, title, message, icon, icon_color, link, data, delivery_order_id, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    notification.user_id,
                    notification.notification_type.value,
                    notification.title,
                    notification.message,
                    notification.icon,
                    notification.icon_color,
                    notification.link,
                    json.dumps(notification.data),
                    notification.delivery_order_id,
                    created_at,
                ),
            )
            return int(cur.lastrowid)

    def get(self, notification_id: int) -> Optional[Notification]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM notifications WHERE id=%s", (notification_id,))
            r = fetchone(cur)
            return _from_row(r) if r else None

    def list_for_user(self, user_id: Optional[int], *, limit: int, offset: int = 0) -> Sequence[Notification]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM notifications
                WHERE {_VISIBLE}
                ORDER BY created_at DESC, id DESC
                LIMIT %s OFFSET %s
                """,
                (user_id, int(limit), int(offset)),
            )
            return [_from_row(r) for r in fetchall(cur)]

    def _count(self, sql: str, params: tuple) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def count_for_user(self, user_id: Optional[int]) -> int:
        return self._count(f"SELECT COUNT(*) AS n FROM notifications WHERE {_VISIBLE}", (user_id,))

    def count_unread(self, user_id: Optional[int]) -> int:
        return self._count(f"SELECT COUNT(*) AS n FROM notifications WHERE {_VISIBLE} AND read_at IS NULL", (user_id,))

    def mark_read(self, notification_id: int, *, read_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE notifications SET read_at=COALESCE(read_at, %s) WHERE id=%s",
                (read_at, notification_id),
            )
            return cur.rowcount > 0

    def mark_all_read(self, user_id: Optional[int], *, read_at: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE notifications SET read_at=%s WHERE {_VISIBLE} AND read_at IS NULL",
                (read_at, user_id),
            )
            return cur.rowcount

    def delete(self, notification_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM notifications WHERE id=%s", (notification_id,))
            return cur.rowcount > 0

    def delete_read(self, user_id: Optional[int]) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"DELETE FROM notifications WHERE {_VISIBLE} AND read_at IS NOT NULL", (user_id,))
            return cur.rowcount

    def exists_for_order_on(self, notification_type: NotificationType, order_id: int, day: date) -> bool:
        start = datetime.combine(day, datetime.min.time())
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT 1 FROM notifications
                WHERE type=%s AND delivery_order_id=%s AND created_at >= %s AND created_at < %s
                LIMIT 1
                """,
                (notification_type.value, order_id, start, start + timedelta(days=1)),
            )
            return fetchone(cur) is not None
