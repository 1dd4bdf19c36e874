from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import MilestoneStatus
from .model import MilestoneTemplate, OrderMilestone


class MilestoneRepository(Protocol):
    def list_active_templates(self) -> Sequence[MilestoneTemplate]:
        raise NotImplementedError

    def list_for_order(self, order_id: int) -> Sequence[OrderMilestone]:
        raise NotImplementedError

    def get(self, milestone_id: int) -> Optional[OrderMilestone]:
        raise NotImplementedError

    def create_for_order(self, order_id: int, templates: Sequence[MilestoneTemplate]) -> None:
        raise NotImplementedError

    def save_plan(self, milestones: Sequence[OrderMilestone]) -> None:
        raise NotImplementedError

    def update_progress(
        self,
        milestone_id: int,
        *,
        status: MilestoneStatus,
        actual_start_date: Optional[date],
        actual_end_date: Optional[date],
        actual_duration_days: Optional[int],
        notes: Optional[str],
    ) -> bool:
        raise NotImplementedError

    def set_planned_duration(self, milestone_id: int, days: int) -> None:
        raise NotImplementedError
