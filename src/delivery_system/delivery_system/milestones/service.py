from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional

from ..common.datetime_utils import days_between, iso, parse_optional_date, today_local
from ..common.transactions import Transaction, no_transaction
from ..common.validators import optional_int, optional_text
from ..core.enums import MilestoneStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..notifications.service import NotificationService
from ..orders.model import DeliveryOrder, determine_status
from ..orders.repository import OrderRepository
from . import critical_path
from .model import MilestoneUpdate, OrderMilestone
from .repository import MilestoneRepository

logger = logging.getLogger(__name__)


def parse_milestone_update(data: dict[str, Any]) -> MilestoneUpdate:
    raw_status = (data.get("status") or "").strip()
    try:
        status = MilestoneStatus(raw_status)
    except ValueError:
        raise ValidationError("status must be one of: " + ", ".join(s.value for s in MilestoneStatus))
    duration = optional_int(data.get("planned_duration_days"), "planned_duration_days")
    if duration is not None and duration < 0:
        raise ValidationError("planned_duration_days must be at least 0")
    return MilestoneUpdate(
        status=status,
        actual_start_date=parse_optional_date(str(data.get("actual_start_date") or ""), "actual_start_date"),
        actual_end_date=parse_optional_date(str(data.get("actual_end_date") or ""), "actual_end_date"),
        notes=optional_text(data.get("notes")),
        planned_duration_days=duration,
    )


class MilestoneService:
    """Use cases: per-order fulfilment stages and their critical path."""

    def __init__(
        self,
        milestones: MilestoneRepository,
        orders: OrderRepository,
        notifications: NotificationService,
        *,
        transaction: Optional[Transaction] = None,
    ):
        self._milestones = milestones
        self._orders = orders
        self._notifications = notifications
        self._transaction = transaction or no_transaction

    def _order(self, order_id: int) -> DeliveryOrder:
        order = self._orders.get_by_id(int(order_id))
        if not order:
            raise NotFoundError("Delivery order not found")
        return order

    def recalculate(self, order: DeliveryOrder) -> list[OrderMilestone]:
        """Re-plan the chain from the PO date and move the order's scheduled date to its end."""
        current = self._milestones.list_for_order(order.order_id)
        if not current:
            return []
        planned = critical_path.plan_schedule(current, start=order.po_date)
        self._milestones.save_plan(planned)
        end = critical_path.projected_end(planned)
        if end and end != order.scheduled_date:
            self._orders.set_scheduled_date(order.order_id, end)
        return planned

    def initialize(self, *, order_id: int) -> list[OrderMilestone]:
        order = self._order(order_id)
        if self._milestones.list_for_order(order.order_id):
            raise ValidationError("Milestones already initialized for this order.")
        templates = self._milestones.list_active_templates()
        if not templates:
            raise ValidationError("No active milestone templates are configured.")
        with self._transaction():
            self._milestones.create_for_order(order.order_id, sorted(templates, key=lambda t: t.sequence))
            planned = self.recalculate(order)
        logger.info("Initialized %s milestones for order %s", len(templates), order.po_number)
        return planned

    def advance(self, *, order_id: int, today: Optional[date] = None) -> Optional[OrderMilestone]:
        """Complete the active stage and start the next one.

        Returns the stage that was started, or None when every stage is done
        and the order has been marked delivered.
        """
        today = today or today_local()
        order = self._order(order_id)
        milestones = list(self._milestones.list_for_order(order.order_id))
        if not milestones:
            raise ValidationError("Milestones have not been initialized for this order.")

        active = next((m for m in milestones if m.status == MilestoneStatus.IN_PROGRESS), None)
        pending = sorted(
            (m for m in milestones if m.status == MilestoneStatus.NOT_STARTED),
            key=lambda m: m.sequence,
        )

        with self._transaction():
            if active:
                duration = days_between(active.actual_start_date, today) if active.actual_start_date else 0
                self._milestones.update_progress(
                    active.milestone_id,
                    status=MilestoneStatus.COMPLETED,
                    actual_start_date=active.actual_start_date,
                    actual_end_date=today,
                    actual_duration_days=duration,
                    notes=active.notes,
                )
                self.recalculate(order)

            if pending:
                nxt = pending[0]
                self._milestones.update_progress(
                    nxt.milestone_id,
                    status=MilestoneStatus.IN_PROGRESS,
                    actual_start_date=today,
                    actual_end_date=None,
                    actual_duration_days=None,
                    notes=nxt.notes,
                )
            else:
                order = self._order(order.order_id)
                status = determine_status(
                    current=order.status, actual_date=today, scheduled_date=order.scheduled_date
                )
                self._orders.record_delivery(order.order_id, actual_date=today, status=status)

        if pending:
            logger.info("Order %s advanced to milestone %s", order.po_number, nxt.code or nxt.name)
            return self._milestones.get(nxt.milestone_id)

        delivered = self._order(order.order_id)
        logger.info("All milestones completed for order %s (status=%s)", order.po_number, status.value)
        self._notifications.notify_delivery_completed(delivered)
        return None

    def update(self, *, order_id: int, milestone_id: int, data: MilestoneUpdate) -> OrderMilestone:
        order = self._order(order_id)
        milestone = self._milestones.get(int(milestone_id))
        if not milestone or milestone.order_id != order.order_id:
            raise NotFoundError("Milestone not found")

        start = data.actual_start_date
        end = data.actual_end_date
        if start and end and end < start:
            raise ValidationError("actual_end_date cannot be before actual_start_date")

        duration = milestone.actual_duration_days
        if data.status == MilestoneStatus.COMPLETED and start and end:
            duration = days_between(start, end)

        with self._transaction():
            if (
                data.planned_duration_days is not None
                and data.planned_duration_days != milestone.planned_duration_days
            ):
                self._milestones.set_planned_duration(milestone.milestone_id, data.planned_duration_days)

            self._milestones.update_progress(
                milestone.milestone_id,
                status=data.status,
                actual_start_date=start,
                actual_end_date=end,
                actual_duration_days=duration,
                notes=data.notes,
            )
            self.recalculate(order)
        return self._milestones.get(milestone.milestone_id)

    def analysis(self, *, order_id: int, today: Optional[date] = None) -> dict:
        today = today or today_local()
        order = self._order(order_id)
        milestones = list(self._milestones.list_for_order(order.order_id))
        current = critical_path.current_milestone(milestones)
        return {
            "order": order.to_dict(),
            "milestones": [m.to_dict(today=today) for m in milestones],
            "critical_path_duration": critical_path.critical_path_duration(milestones),
            "critical_path_delay": critical_path.critical_path_delay(milestones),
            "is_on_schedule": critical_path.is_on_schedule(milestones, today=today),
            "current_milestone": (
                {
                    "id": current.milestone_id,
                    "name": current.name,
                    "status": current.status.value,
                    "is_critical": current.is_critical,
                    "planned_end_date": iso(current.planned_end_date),
                }
                if current
                else None
            ),
        }
