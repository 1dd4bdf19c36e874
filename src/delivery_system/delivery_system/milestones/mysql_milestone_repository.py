from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import MilestoneStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_date
from .model import MilestoneTemplate, OrderMilestone
from .repository import MilestoneRepository

_SELECT = """
    SELECT m.id, m.delivery_order_id, m.milestone_template_id, m.sequence,
           m.planned_duration_days, m.actual_duration_days,
           m.planned_start_date, m.planned_end_date, m.actual_start_date, m.actual_end_date,
           m.status, m.slack_days, m.is_critical, m.notes,
           t.name AS template_name, t.code AS template_code, t.standard_duration_days
    FROM delivery_order_milestones m
    LEFT JOIN delivery_milestone_templates t ON t.id = m.milestone_template_id
"""


def _from_row(r: dict) -> OrderMilestone:
    return OrderMilestone(
        milestone_id=int(r["id"]),
        order_id=int(r["delivery_order_id"]),
        template_id=int(r["milestone_template_id"]),
        sequence=int(r["sequence"]),
        planned_duration_days=int(r["planned_duration_days"]),
        actual_duration_days=r.get("actual_duration_days"),
        planned_start_date=to_date(r.get("planned_start_date")),
        planned_end_date=to_date(r.get("planned_end_date")),
        actual_start_date=to_date(r.get("actual_start_date")),
        actual_end_date=to_date(r.get("actual_end_date")),
        status=MilestoneStatus(r["status"]),
        slack_days=int(r.get("slack_days") or 0),
        is_critical=bool(r.get("is_critical")),
        notes=r.get("notes"),
        name=r.get("template_name") or "Unknown",
        code=r.get("template_code") or "",
        standard_duration_days=int(r.get("standard_duration_days") or 0),
    )


class MySQLMilestoneRepository(MilestoneRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_active_templates(self) -> Sequence[MilestoneTemplate]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT id, name, code, sequence, standard_duration_days, is_active
                FROM delivery_milestone_templates
                WHERE is_active=1
                ORDER BY sequence
                """
            )
            return [
                MilestoneTemplate(
                    template_id=int(r["id"]),
                    name=r["name"],
                    code=r["code"],
                    sequence=int(r["sequence"]),
                    standard_duration_days=int(r["standard_duration_days"]),
                    is_active=bool(r["is_active"]),
                )
                for r in fetchall(cur)
            ]

    def list_for_order(self, order_id: int) -> Sequence[OrderMilestone]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE m.delivery_order_id=%s ORDER BY m.sequence", (order_id,))
            return [_from_row(r) for r in fetchall(cur)]

    def get(self, milestone_id: int) -> Optional[OrderMilestone]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE m.id=%s", (milestone_id,))
            r = fetchone(cur)
            return _from_row(r) if r else None

    def create_for_order(self, order_id: int, templates: Sequence[MilestoneTemplate]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                """
                INSERT INTO delivery_order_milestones(
                    delivery_order_id, milestone_template_id, sequence, planned_duration_days, status, is_critical
                )
                VALUES(%s,%s,%s,%s,%s,1)
                """,
                [
                    (order_id, t.template_id, t.sequence, t.standard_duration_days, MilestoneStatus.NOT_STARTED.value)
                    for t in templates
                ],
            )

    def save_plan(self, milestones: Sequence[OrderMilestone]) -> None:
        if not milestones:
            return
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                """
                UPDATE delivery_order_milestones
                SET planned_start_date=%s, planned_end_date=%s, slack_days=%s, is_critical=%s
                WHERE id=%s
                """,
                [
                    (m.planned_start_date, m.planned_end_date, m.slack_days, 1 if m.is_critical else 0, m.milestone_id)
                    for m in milestones
                ],
            )

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE delivery_order_milestones
                SET status=%s, actual_start_date=%s, actual_end_date=%s, actual_duration_days=%s, notes=%s
                WHERE id=%s
                """,
                (status.value, actual_start_date, actual_end_date, actual_duration_days, notes, milestone_id),
            )
            return cur.rowcount > 0

    def set_planned_duration(self, milestone_id: int, days: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE delivery_order_milestones SET planned_duration_days=%s WHERE id=%s",
                (days, milestone_id),
            )
