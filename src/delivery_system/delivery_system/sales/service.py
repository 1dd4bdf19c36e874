from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Sequence

from ..common.datetime_utils import end_of_month, iso, now_local, previous_month, start_of_month
from ..common.money import round_money
from ..core.constants import KPI_THRESHOLD_PERCENT, UNKNOWN_PROVINCE
from ..core.enums import OrderSort, ReportPeriod
from ..core.exceptions import ValidationError
from ..notifications.service import NotificationService
from ..orders.model import DeliveryOrder, OrderFilters
from ..orders.repository import OrderRepository
from .kpi import KpiFigures, compute_kpi, percent_change, period_key, period_label

logger = logging.getLogger(__name__)

RECENT_DELIVERIES = 5


class SalesTrackingService:
    """Use cases: trucking sales vs delivery-rate KPI over completed deliveries."""

    def __init__(
        self,
        orders: OrderRepository,
        notifications: NotificationService,
        *,
        kpi_threshold: Decimal = KPI_THRESHOLD_PERCENT,
    ):
        self._orders = orders
        self._notifications = notifications
        self._threshold = Decimal(kpi_threshold)
        if self._threshold <= 0:
            raise ValueError(f"kpi_threshold must be greater than 0, got {kpi_threshold}")

    def _kpi(self, orders: Sequence[DeliveryOrder]) -> KpiFigures:
        return compute_kpi(
            actual_sales=sum((o.total_amount for o in orders), Decimal("0")),
            rate=sum((o.drop_cost for o in orders), Decimal("0")),
            order_count=len(orders),
            threshold=self._threshold,
        )

    def _province_breakdown(self, orders: Sequence[DeliveryOrder]) -> list[dict]:
        groups: dict[str, list[DeliveryOrder]] = {}
        for o in orders:
            groups.setdefault(o.client.province_label if o.client else UNKNOWN_PROVINCE, []).append(o)
        rows = [(name, self._kpi(members)) for name, members in groups.items()]
        rows.sort(key=lambda r: r[1].actual_sales, reverse=True)
        return [{"province": name, **kpi.to_dict()} for name, kpi in rows]

    def report(
        self,
        *,
        start: date,
        end: date,
        province_id: Optional[int] = None,
        period: ReportPeriod = ReportPeriod.DAILY,
    ) -> dict:
        if end < start:
            raise ValidationError("end_date cannot be before start_date")
        deliveries = list(self._orders.list_completed(start=start, end=end, province_id=province_id))

        grouped: dict[str, list[DeliveryOrder]] = {}
        for o in deliveries:
            grouped.setdefault(period_key(o.actual_date, period), []).append(o)

        sales_data = [
            {"date": key, "formatted_date": period_label(key, period), **self._kpi(grouped[key]).to_dict()}
            for key in sorted(grouped)
        ]
        return {
            "sales_data": sales_data,
            "totals": self._kpi(deliveries).to_dict(),
            "province_breakdown": self._province_breakdown(deliveries),
            "filters": {
                "start_date": iso(start),
                "end_date": iso(end),
                "province_id": province_id,
                "view": period.value,
            },
        }

    def dashboard(self, *, province_id: Optional[int] = None, now: Optional[datetime] = None) -> dict:
        """Current-month KPI cards with change against the previous month."""
        now = now or now_local()
        today = now.date()
        month_start = start_of_month(today)
        prev_start = previous_month(today)

        current = list(self._orders.list_completed(start=month_start, end=end_of_month(today), province_id=province_id))
        previous = list(self._orders.list_completed(start=prev_start, end=end_of_month(prev_start), province_id=province_id))
        completed_today = self._orders.list_completed(start=today, end=today, province_id=province_id)

        kpi = self._kpi(current)
        prev_kpi = self._kpi(previous)

        recent = self._orders.search(
            OrderFilters(province_id=province_id, sort=OrderSort.NEWEST), limit=RECENT_DELIVERIES, offset=0
        )
        return {
            "current_month": today.strftime("%B %Y"),
            "stats": {
                "total_sales": round_money(kpi.actual_sales),
                "truck_rate": round_money(kpi.rate),
                "opportunity": round_money(abs(kpi.opportunity)),
                "opportunity_type": kpi.opportunity_type,
                "kpi_percentage": round_money(kpi.percentage),
                "exceeds_kpi": kpi.exceeds_kpi,
                "completed_deliveries": kpi.order_count,
                "pending_deliveries": self._orders.count_open(province_id=province_id),
                "completed_today": len(completed_today),
            },
            "changes": {
                "sales_change": round_money(percent_change(kpi.actual_sales, prev_kpi.actual_sales)),
                "rate_change": round_money(percent_change(kpi.rate, prev_kpi.rate)),
                "opportunity_change": round_money(
                    percent_change(abs(kpi.opportunity), abs(prev_kpi.opportunity))
                ),
            },
            "province_summary": self._province_breakdown(current),
            "recent_deliveries": [
                {
                    "id": o.order_id,
                    "po_number": o.po_number,
                    "client": o.client_code or "Unknown",
                    "status": o.status.value,
                    "date": iso(o.actual_date or o.scheduled_date) or "-",
                    "amount": round_money(o.total_amount),
                }
                for o in recent
            ],
        }

    def raise_kpi_alerts(
        self, *, start: date, end: date, now: Optional[datetime] = None
    ) -> int:
        """Global kpi_alert for each province whose delivery rate exceeds the threshold."""
        deliveries = list(self._orders.list_completed(start=start, end=end))
        groups: dict[str, list[DeliveryOrder]] = {}
        for o in deliveries:
            groups.setdefault(o.client.province_label if o.client else UNKNOWN_PROVINCE, []).append(o)

        raised = 0
        for province, members in groups.items():
            kpi = self._kpi(members)
            if kpi.exceeds_kpi:
                self._notifications.notify_kpi_alert(province, kpi.percentage.quantize(Decimal("0.01")), now=now)
                raised += 1
        if raised:
            logger.warning("KPI threshold exceeded in %s province(s) for %s..%s", raised, iso(start), iso(end))
        return raised
