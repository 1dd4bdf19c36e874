from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from ..core.constants import KPI_THRESHOLD_PERCENT
from ..core.enums import NotificationType
from ..orders.model import DeliveryOrder
from .model import NewNotification

SALES_TRACKING_LINK = "/admin/sales-tracking"


def order_link(order_id: int) -> str:
    return f"/admin/delivery-orders/{order_id}"


def _day_text(days_until: int) -> str:
    if days_until == 0:
        return "today"
    if days_until == 1:
        return "tomorrow"
    return f"in {days_until} days"


def _reminder_color(days_until: int) -> str:
    if days_until == 0:
        return "red"
    if days_until == 1:
        return "yellow"
    return "blue"


@dataclass
class NotificationFactory:
    """Factory Pattern: build the message, icon and link for each notification type."""

    def delivery_scheduled(self, order: DeliveryOrder, *, user_id: Optional[int] = None) -> NewNotification:
        when = order.scheduled_date.strftime("%b %d, %Y") if order.scheduled_date else "TBD"
        return self._for_order(
            order,
            NotificationType.DELIVERY_SCHEDULED,
            title="New Delivery Scheduled",
            message=f"Delivery {order.po_number} has been scheduled for {when}",
            icon="Truck",
            icon_color="blue",
            user_id=user_id,
        )

    def delivery_completed(self, order: DeliveryOrder, *, user_id: Optional[int] = None) -> NewNotification:
        return self._for_order(
            order,
            NotificationType.DELIVERY_COMPLETED,
            title="Delivery Completed",
            message=f"Delivery {order.po_number} has been completed successfully",
            icon="CheckCircle",
            icon_color="green",
            user_id=user_id,
        )

    def delivery_delayed(self, order: DeliveryOrder, *, user_id: Optional[int] = None) -> NewNotification:
        return self._for_order(
            order,
            NotificationType.DELIVERY_DELAYED,
            title="Delivery Delayed",
            message=f"Delivery {order.po_number} is running behind schedule",
            icon="Clock",
            icon_color="yellow",
            user_id=user_id,
        )

    def kpi_alert(self, province: str, percentage: Decimal, *, user_id: Optional[int] = None) -> NewNotification:
        return NewNotification(
            notification_type=NotificationType.KPI_ALERT,
            title="KPI Threshold Exceeded",
            message=f"{province} KPI is at {percentage:.2f}% (exceeds {KPI_THRESHOLD_PERCENT:g}% limit)",
            icon="AlertTriangle",
            icon_color="red",
            link=SALES_TRACKING_LINK,
            user_id=user_id,
            data={"province": province, "percentage": float(percentage)},
        )

    def report_ready(self, report_name: str, link: str, *, user_id: Optional[int] = None) -> NewNotification:
        return NewNotification(
            notification_type=NotificationType.REPORT_READY,
            title="Report Ready",
            message=f"{report_name} is now available for download",
            icon="FileText",
            icon_color="green",
            link=link,
            user_id=user_id,
            data={"report_name": report_name},
        )

    def upcoming_delivery(self, order: DeliveryOrder, days_until: int, *, user_id: Optional[int] = None) -> NewNotification:
        return self._for_order(
            order,
            NotificationType.UPCOMING_DELIVERY,
            title="Upcoming Delivery Reminder",
            message=f"Delivery {order.po_number} to {order.client_code or '-'} is scheduled {_day_text(days_until)}",
            icon="Clock",
            icon_color=_reminder_color(days_until),
            user_id=user_id,
            extra={"days_until": days_until},
        )

    def overdue_delivery(self, order: DeliveryOrder) -> NewNotification:
        return self._for_order(
            order,
            NotificationType.OVERDUE_DELIVERY,
            title="Overdue Delivery Alert",
            message=f"Delivery {order.po_number} to {order.client_code or '-'} is overdue!",
            icon="AlertTriangle",
            icon_color="red",
        )

    def due_today(self, order: DeliveryOrder) -> NewNotification:
        return self._for_order(
            order,
            NotificationType.DUE_TODAY,
            title="Delivery Due Today",
            message=f"Delivery {order.po_number} to {order.client_code or '-'} is due today!",
            icon="Clock",
            icon_color="yellow",
        )

    def due_tomorrow(self, order: DeliveryOrder) -> NewNotification:
        return self._for_order(
            order,
            NotificationType.DUE_TOMORROW,
            title="Delivery Due Tomorrow",
            message=f"Delivery {order.po_number} to {order.client_code or '-'} is due tomorrow",
            icon="Clock",
            icon_color="blue",
        )

    @staticmethod
    def _for_order(
        order: DeliveryOrder,
        notification_type: NotificationType,
        *,
        title: str,
        message: str,
        icon: str,
        icon_color: str,
        user_id: Optional[int] = None,
        extra: Optional[dict] = None,
    ) -> NewNotification:
        data = {"delivery_order_id": order.order_id}
        data.update(extra or {})
        return NewNotification(
            notification_type=notification_type,
            title=title,
            message=message,
            icon=icon,
            icon_color=icon_color,
            link=order_link(order.order_id),
            user_id=user_id,
            delivery_order_id=order.order_id,
            data=data,
        )
