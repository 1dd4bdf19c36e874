"""KPI arithmetic for trucking sales.

percentage  = rate / actual sales x 100 (0 without sales)
target      = rate / threshold%  (rate x 50 at the 2% threshold)
opportunity = target - actual; "loss" when >= 0, otherwise "gain"
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from ..common.datetime_utils import format_day, start_of_week
from ..common.money import round_money
from ..core.constants import KPI_THRESHOLD_PERCENT
from ..core.enums import ReportPeriod

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class KpiFigures:
    order_count: int
    actual_sales: Decimal
    rate: Decimal
    target_sales: Decimal
    opportunity: Decimal
    percentage: Decimal
    exceeds_kpi: bool

    @property
    def opportunity_type(self) -> str:
        return "loss" if self.opportunity >= 0 else "gain"

    def to_dict(self) -> dict:
        return {
            "order_count": self.order_count,
            "actual_sales": round_money(self.actual_sales),
            "rate": round_money(self.rate),
            "target_sales": round_money(self.target_sales),
            "opportunity": round_money(self.opportunity),
            "opportunity_type": self.opportunity_type,
            "percentage": round_money(self.percentage),
            "exceeds_kpi": self.exceeds_kpi,
        }


def compute_kpi(
    *,
    actual_sales: Decimal,
    rate: Decimal,
    order_count: int = 0,
    threshold: Decimal = KPI_THRESHOLD_PERCENT,
) -> KpiFigures:
    actual_sales = Decimal(actual_sales)
    rate = Decimal(rate)
    if threshold <= 0:
        raise ValueError("KPI threshold must be positive")
    target = rate * HUNDRED / threshold
    percentage = rate / actual_sales * HUNDRED if actual_sales > 0 else Decimal("0")
    return KpiFigures(
        order_count=order_count,
        actual_sales=actual_sales,
        rate=rate,
        target_sales=target,
        opportunity=target - actual_sales,
        percentage=percentage,
        exceeds_kpi=percentage > threshold,
    )


def period_key(day: date, period: ReportPeriod) -> str:
    if period == ReportPeriod.WEEKLY:
        return start_of_week(day).strftime("%Y-%m-%d")
    if period == ReportPeriod.MONTHLY:
        return day.strftime("%Y-%m")
    return day.strftime("%Y-%m-%d")


def period_label(key: str, period: ReportPeriod) -> str:
    if period == ReportPeriod.MONTHLY:
        return datetime.strptime(key + "-01", "%Y-%m-%d").strftime("%B %Y")
    day = datetime.strptime(key, "%Y-%m-%d").date()
    if period == ReportPeriod.WEEKLY:
        return "Week of " + format_day(day)
    return format_day(day)


def percent_change(current: Decimal, previous: Decimal) -> Decimal:
    """Month-over-month change; 0 when there is nothing to compare against."""
    if previous <= 0:
        return Decimal("0")
    return (current - previous) / previous * HUNDRED
