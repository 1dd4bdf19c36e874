from datetime import date, datetime, timedelta

import pytest

from delivery_system.core.enums import NotificationType
from delivery_system.core.exceptions import AuthorizationError, NotFoundError
from delivery_system.notifications.model import NewNotification

NOW = datetime(2026, 3, 10, 9, 0)


def _note(title, *, user_id=None):
    return NewNotification(
        notification_type=NotificationType.REPORT_READY,
        title=title,
        message=title,
        icon="FileText",
        icon_color="green",
        user_id=user_id,
    )


@pytest.fixture
def service(container):
    return container.notification_service


def test_users_see_their_own_and_global_notifications(service):
    service.notify(_note("global"), now=NOW)
    service.notify(_note("for 7", user_id=7), now=NOW + timedelta(minutes=1))
    service.notify(_note("for 8", user_id=8), now=NOW + timedelta(minutes=2))

    page = service.list_for_user(user_id=7)

    assert [n["title"] for n in page["notifications"]] == ["for 7", "global"]
    assert page["unread_count"] == 2
    assert page["total"] == 2
    assert service.unread_count(user_id=8) == 2


def test_mark_read_and_mark_all_read(service):
    first = service.notify(_note("one", user_id=7), now=NOW)
    service.notify(_note("two", user_id=7), now=NOW)
    service.notify(_note("three"), now=NOW)

    service.mark_read(user_id=7, notification_id=first, now=NOW)
    assert service.unread_count(user_id=7) == 2

    assert service.mark_all_read(user_id=7, now=NOW) == 2
    assert service.unread_count(user_id=7) == 0


def test_cannot_touch_another_users_notification(service):
    theirs = service.notify(_note("private", user_id=8), now=NOW)

    with pytest.raises(AuthorizationError):
        service.mark_read(user_id=7, notification_id=theirs)
    with pytest.raises(AuthorizationError):
        service.delete(user_id=7, notification_id=theirs)
    with pytest.raises(NotFoundError):
        service.mark_read(user_id=7, notification_id=404)


def test_delete_and_delete_read(service, notifications_repo):
    keep = service.notify(_note("unread", user_id=7), now=NOW)
    read = service.notify(_note("read", user_id=7), now=NOW)
    gone = service.notify(_note("gone", user_id=7), now=NOW)
    service.mark_read(user_id=7, notification_id=read, now=NOW)

    service.delete(user_id=7, notification_id=gone)
    assert service.delete_read(user_id=7) == 1

    assert list(notifications_repo.rows) == [keep]


def test_check_urgent_orders_once_per_day(service, orders, notifications_repo):
    orders.put(po_number="LATE", scheduled_date=date(2026, 3, 9))
    orders.put(po_number="TODAY", scheduled_date=date(2026, 3, 10))
    orders.put(po_number="TOMORROW", scheduled_date=date(2026, 3, 11))
    orders.put(po_number="LATER", scheduled_date=date(2026, 3, 15))

    assert service.check_urgent_orders(now=NOW) == 3
    assert service.check_urgent_orders(now=NOW + timedelta(hours=3)) == 0
    assert [n.title for n in notifications_repo.of_type(NotificationType.OVERDUE_DELIVERY)] == ["Overdue Delivery Alert"]

    # next day: two overdue, one due today
    assert service.check_urgent_orders(now=NOW + timedelta(days=1)) == 3
    assert len(notifications_repo.of_type(NotificationType.OVERDUE_DELIVERY)) == 3


def test_upcoming_reminders(service, orders, notifications_repo):
    orders.put(po_number="D0", scheduled_date=date(2026, 3, 10))
    orders.put(po_number="D1", scheduled_date=date(2026, 3, 11))
    orders.put(po_number="D2", scheduled_date=date(2026, 3, 12))
    orders.put(po_number="D3", scheduled_date=date(2026, 3, 13))

    assert service.send_upcoming_reminders(now=NOW) == 3
    assert service.send_upcoming_reminders(now=NOW) == 0

    reminders = notifications_repo.of_type(NotificationType.UPCOMING_DELIVERY)
    assert sorted(n.data["days_until"] for n in reminders) == [0, 1, 3]


def test_recent_refreshes_urgent_alerts_first(service, orders):
    orders.put(po_number="LATE", scheduled_date=date(2026, 3, 9))
    for n in range(6):
        service.notify(_note(f"n{n}"), now=NOW - timedelta(hours=1))

    recent = service.recent(user_id=1, now=NOW)

    assert len(recent["notifications"]) == 5
    assert recent["notifications"][0]["type"] == "overdue_delivery"
    assert recent["unread_count"] == 7
