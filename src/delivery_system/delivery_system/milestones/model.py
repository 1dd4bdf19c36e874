from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..common.datetime_utils import days_between, iso
from ..core.enums import MilestoneStatus


@dataclass(frozen=True)
class MilestoneTemplate:
    template_id: int
    name: str
    code: str
    sequence: int
    standard_duration_days: int
    is_active: bool = True


@dataclass(frozen=True)
class OrderMilestone:
    """One fulfilment stage of a delivery order, joined with its template."""

    milestone_id: int
    order_id: int
    template_id: int
    sequence: int
    planned_duration_days: int
    status: MilestoneStatus = MilestoneStatus.NOT_STARTED
    planned_start_date: Optional[date] = None
    planned_end_date: Optional[date] = None
    actual_start_date: Optional[date] = None
    actual_end_date: Optional[date] = None
    actual_duration_days: Optional[int] = None
    slack_days: int = 0
    is_critical: bool = False
    notes: Optional[str] = None
    name: str = "Unknown"
    code: str = ""
    standard_duration_days: int = 0

    def is_delayed(self, today: date) -> bool:
        if self.status == MilestoneStatus.COMPLETED and self.actual_end_date and self.planned_end_date:
            return self.actual_end_date > self.planned_end_date
        if self.status == MilestoneStatus.IN_PROGRESS and self.planned_end_date:
            return today > self.planned_end_date
        return False

    @property
    def delay_days(self) -> int:
        """Days finished after plan (negative when early); 0 until completed."""
        if self.status == MilestoneStatus.COMPLETED and self.actual_end_date and self.planned_end_date:
            return days_between(self.planned_end_date, self.actual_end_date)
        return 0

    def to_dict(self, *, today: date) -> dict:
        return {
            "id": self.milestone_id,
            "name": self.name,
            "code": self.code,
            "sequence": self.sequence,
            "status": self.status.value,
            "planned_duration_days": self.planned_duration_days,
            "actual_duration_days": self.actual_duration_days,
            "planned_start_date": iso(self.planned_start_date),
            "planned_end_date": iso(self.planned_end_date),
            "actual_start_date": iso(self.actual_start_date),
            "actual_end_date": iso(self.actual_end_date),
            "slack_days": self.slack_days,
            "is_critical": self.is_critical,
            "is_delayed": self.is_delayed(today),
            "delay_days": self.delay_days,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class MilestoneUpdate:
    status: MilestoneStatus
    actual_start_date: Optional[date] = None
    actual_end_date: Optional[date] = None
    notes: Optional[str] = None
    planned_duration_days: Optional[int] = None
