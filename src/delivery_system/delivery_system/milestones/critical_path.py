"""Critical path arithmetic over an order's milestone chain.

The chain is linear: each stage starts when the previous one is planned to
end. A stage's slack is the time it was given beyond its template's standard
duration; stages with no slack form the critical path.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, timedelta
from typing import Optional, Sequence

from ..core.enums import MilestoneStatus
from .model import OrderMilestone


def plan_schedule(milestones: Sequence[OrderMilestone], *, start: date) -> list[OrderMilestone]:
    """Forward pass from start; returns milestones with planned dates, slack and critical flag set."""
    planned: list[OrderMilestone] = []
    cursor = start
    for m in sorted(milestones, key=lambda x: x.sequence):
        end = cursor + timedelta(days=m.planned_duration_days)
        slack = max(0, m.planned_duration_days - m.standard_duration_days)
        planned.append(
            replace(
                m,
                planned_start_date=cursor,
                planned_end_date=end,
                slack_days=slack,
                is_critical=slack == 0,
            )
        )
        cursor = end
    return planned


def projected_end(milestones: Sequence[OrderMilestone]) -> Optional[date]:
    ends = [m.planned_end_date for m in milestones if m.planned_end_date]
    return max(ends) if ends else None


def critical_path_duration(milestones: Sequence[OrderMilestone]) -> int:
    return sum(m.planned_duration_days for m in milestones if m.is_critical)


def critical_path_delay(milestones: Sequence[OrderMilestone]) -> int:
    return sum(max(0, m.delay_days) for m in milestones if m.is_critical)


def is_on_schedule(milestones: Sequence[OrderMilestone], *, today: date) -> bool:
    return not any(m.is_critical and m.is_delayed(today) for m in milestones)


def current_milestone(milestones: Sequence[OrderMilestone]) -> Optional[OrderMilestone]:
    ordered = sorted(milestones, key=lambda x: x.sequence)
    for m in ordered:
        if m.status == MilestoneStatus.IN_PROGRESS:
            return m
    for m in ordered:
        if m.status == MilestoneStatus.NOT_STARTED:
            return m
    return None
