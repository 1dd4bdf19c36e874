from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from ..common.money import to_decimal
from ..core.enums import BatchStatus, VehicleType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_date
from .model import DeliveryBatch, NewBatch
from .repository import BatchRepository

_SELECT = """
    SELECT b.id, b.batch_number, b.planned_date, b.actual_date, b.area_group_id, b.vehicle_id, b.vehicle_type,
           b.order_count, b.total_items, b.total_value, b.total_rate, b.total_distance_km,
           b.status, b.created_by, b.notes, b.created_at,
           ag.name AS area_group_name, ag.code AS area_group_code, v.name AS vehicle_name
    FROM delivery_batches b
    LEFT JOIN area_groups ag ON ag.id = b.area_group_id
    LEFT JOIN vehicles v ON v.id = b.vehicle_id
"""


def _from_row(r: dict) -> DeliveryBatch:
    return DeliveryBatch(
        batch_id=int(r["id"]),
        batch_number=r["batch_number"],
        planned_date=to_date(r["planned_date"]),
        actual_date=to_date(r.get("actual_date")),
        area_group_id=r.get("area_group_id"),
        area_group_name=r.get("area_group_name"),
        area_group_code=r.get("area_group_code"),
        vehicle_id=r.get("vehicle_id"),
        vehicle_name=r.get("vehicle_name"),
        vehicle_type=VehicleType(r["vehicle_type"]),
        order_count=int(r.get("order_count") or 0),
        total_items=int(r.get("total_items") or 0),
        total_value=to_decimal(r.get("total_value")),
        total_rate=to_decimal(r.get("total_rate")),
        total_distance_km=to_decimal(r.get("total_distance_km")),
        status=BatchStatus(r["status"]),
        created_by=r.get("created_by"),
        notes=r.get("notes"),
        created_at=r.get("created_at"),
    )


class MySQLBatchRepository(BatchRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, batch_id: int) -> Optional[DeliveryBatch]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE b.id=%s", (batch_id,))
            r = fetchone(cur)
            return _from_row(r) if r else None

    def latest_number_for(self, prefix: str) -> Optional[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT batch_number FROM delivery_batches WHERE batch_number LIKE %s ORDER BY batch_number DESC LIMIT 1",
                (f"{prefix}%",),
            )
            r = fetchone(cur)
            return r["batch_number"] if r else None

    def create(self, batch: NewBatch) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO delivery_batches(
                    batch_number, planned_date, area_group_id, vehicle_id, vehicle_type,
                    order_count, total_items, total_value, total_rate, total_distance_km,
                    status, created_by, notes
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    batch.batch_number,
                    batch.planned_date,
                    batch.area_group_id,
                    batch.vehicle_id,
                    batch.vehicle_type.value,
                    batch.order_count,
                    batch.total_items,
                    batch.total_value,
                    batch.total_rate,
                    batch.total_distance_km,
                    BatchStatus.PLANNED.value,
                    batch.created_by,
                    batch.notes,
                ),
            )
            return int(cur.lastrowid)

    def update_totals(
        self,
        batch_id: int,
        *,
        order_count: int,
        total_items: int,
        total_value: Decimal,
        total_rate: Decimal,
    ) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE delivery_batches SET order_count=%s, total_items=%s, total_value=%s, total_rate=%s WHERE id=%s",
                (order_count, total_items, total_value, total_rate, batch_id),
            )

    def set_status(self, batch_id: int, status: BatchStatus, *, actual_date: Optional[date] = None) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            if actual_date:
                cur.execute(
                    "UPDATE delivery_batches SET status=%s, actual_date=%s WHERE id=%s",
                    (status.value, actual_date, batch_id),
                )
            else:
                cur.execute("UPDATE delivery_batches SET status=%s WHERE id=%s", (status.value, batch_id))

    def delete(self, batch_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM delivery_batches WHERE id=%s", (batch_id,))
            return cur.rowcount > 0

    def list_for_date(self, planned_date: date, *, include_completed: bool = False) -> Sequence[DeliveryBatch]:
        sql = _SELECT + " WHERE b.planned_date=%s"
        params: list = [planned_date]
        if not include_completed:
            sql += " AND b.status <> %s"
            params.append(BatchStatus.COMPLETED.value)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY b.created_at DESC, b.id DESC", tuple(params))
            return [_from_row(r) for r in fetchall(cur)]
