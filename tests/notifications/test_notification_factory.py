from datetime import date
from decimal import Decimal

import pytest

from delivery_system.core.enums import NotificationType
from delivery_system.notifications.factory import NotificationFactory
from delivery_system.orders.model import DeliveryOrder


@pytest.fixture
def order(masterdata):
    return DeliveryOrder(
        order_id=12,
        po_number="PO-12",
        po_date=date(2026, 3, 1),
        scheduled_date=date(2026, 3, 14),
        client_id=1,
        province_id=1,
        client=masterdata.get_client(1),
    )


def test_delivery_scheduled(order):
    n = NotificationFactory().delivery_scheduled(order)

    assert n.notification_type == NotificationType.DELIVERY_SCHEDULED
    assert n.message == "Delivery PO-12 has been scheduled for Mar 14, 2026"
    assert n.link == "/admin/delivery-orders/12"
    assert n.delivery_order_id == 12
    assert n.data == {"delivery_order_id": 12}
    assert n.user_id is None


def test_delivery_completed_for_a_user(order):
    n = NotificationFactory().delivery_completed(order, user_id=5)

    assert n.title == "Delivery Completed"
    assert n.icon_color == "green"
    assert n.user_id == 5


@pytest.mark.parametrize(
    "days, phrase, color",
    [(0, "today", "red"), (1, "tomorrow", "yellow"), (3, "in 3 days", "blue")],
)
def test_upcoming_delivery_wording(order, days, phrase, color):
    n = NotificationFactory().upcoming_delivery(order, days)

    assert n.message == f"Delivery PO-12 to CL-CALAMBA is scheduled {phrase}"
    assert n.icon_color == color
    assert n.data["days_until"] == days


def test_kpi_alert():
    n = NotificationFactory().kpi_alert("Cavite", Decimal("3.10"))

    assert n.notification_type == NotificationType.KPI_ALERT
    assert n.message == "Cavite KPI is at 3.10% (exceeds 2% limit)"
    assert n.link == "/admin/sales-tracking"
    assert n.delivery_order_id is None


def test_report_ready():
    n = NotificationFactory().report_ready("March sales report", "/reports/march.xlsx", user_id=2)

    assert n.message == "March sales report is now available for download"
    assert n.link == "/reports/march.xlsx"
    assert n.user_id == 2


def test_urgent_order_alerts(order):
    factory = NotificationFactory()

    assert factory.overdue_delivery(order).message == "Delivery PO-12 to CL-CALAMBA is overdue!"
    assert factory.due_today(order).notification_type == NotificationType.DUE_TODAY
    assert factory.due_tomorrow(order).icon_color == "blue"
