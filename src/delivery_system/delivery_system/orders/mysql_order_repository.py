from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from ..common.money import to_decimal
from ..core.constants import PICKUP_DELIVERY_TYPE
from ..core.enums import COMPLETED_ORDER_STATUSES, OPEN_ORDER_STATUSES, AdditionalRateType, OrderSort, OrderStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, placeholders, to_date
from ..masterdata.mysql_masterdata_repository import CLIENT_COLUMNS, CLIENT_JOINS, client_from_row
from .model import DeliveryOrder, DeliveryOrderItem, OrderFilters, OrderItemInput, OrderRecord, OrderSummaryCounts
from .repository import OrderRepository

_ORDER_SELECT = f"""
    SELECT o.id, o.po_number, o.po_date, o.scheduled_date, o.actual_date,
           o.client_id, o.province_id, o.batch_id, o.status, o.delivery_type,
           o.base_rate, o.additional_rate_type, o.additional_rate, o.total_rate,
           o.total_items, o.total_quantity, o.total_amount, o.remarks, o.created_by, o.created_at,
           {CLIENT_COLUMNS}
    FROM delivery_orders o
    JOIN clients c ON c.id = o.client_id
    {CLIENT_JOINS}
"""

_SORTS = {
    OrderSort.FIFO: "o.po_date ASC, o.created_at ASC",
    OrderSort.SCHEDULED_ASC: "o.scheduled_date ASC, o.po_number ASC",
    OrderSort.SCHEDULED_DESC: "o.scheduled_date DESC, o.po_number DESC",
    OrderSort.URGENT: "o.scheduled_date ASC, o.po_date ASC",
    OrderSort.NEWEST: "o.po_date DESC, o.created_at DESC",
}

_NOT_PICKUP = "(o.delivery_type IS NULL OR o.delivery_type <> %s)"


def _order_from_row(r: dict, items: Sequence[DeliveryOrderItem] = ()) -> DeliveryOrder:
    return DeliveryOrder(
        order_id=int(r["id"]),
        po_number=r["po_number"],
        po_date=to_date(r["po_date"]),
        scheduled_date=to_date(r["scheduled_date"]),
        actual_date=to_date(r.get("actual_date")),
        client_id=int(r["client_id"]),
        province_id=int(r["province_id"]),
        batch_id=r.get("batch_id"),
        status=OrderStatus(r["status"]),
        delivery_type=r.get("delivery_type"),
        base_rate=to_decimal(r.get("base_rate")),
        additional_rate_type=AdditionalRateType(r.get("additional_rate_type") or "none"),
        additional_rate=to_decimal(r.get("additional_rate")),
        total_rate=to_decimal(r.get("total_rate")),
        total_items=int(r.get("total_items") or 0),
        total_quantity=int(r.get("total_quantity") or 0),
        total_amount=to_decimal(r.get("total_amount")),
        remarks=r.get("remarks"),
        created_by=r.get("created_by"),
        created_at=r.get("created_at"),
        client=client_from_row(r),
        items=tuple(items),
    )


def _item_from_row(r: dict) -> DeliveryOrderItem:
    return DeliveryOrderItem(
        item_id=int(r["id"]),
        order_id=int(r["delivery_order_id"]),
        product_id=r.get("product_id"),
        part_number=r["part_number"],
        description=r.get("description"),
        unit_price=to_decimal(r["unit_price"]),
        quantity=int(r["quantity"]),
        total_price=to_decimal(r["total_price"]),
    )


class MySQLOrderRepository(OrderRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # ---- reads -------------------------------------------------------------

    @staticmethod
    def _items_for(cur, order_ids: Sequence[int]) -> dict[int, list[DeliveryOrderItem]]:
        out: dict[int, list[DeliveryOrderItem]] = {int(i): [] for i in order_ids}
        if not order_ids:
            return out
        cur.execute(
            f"""
            SELECT id, delivery_order_id, product_id, part_number, description, unit_price, quantity, total_price
            FROM delivery_order_items
            WHERE delivery_order_id IN ({placeholders(order_ids)})
            ORDER BY id
            """,
            tuple(order_ids),
        )
        for r in fetchall(cur):
            item = _item_from_row(r)
            out.setdefault(item.order_id, []).append(item)
        return out

    def _select(self, where: str = "", params: tuple = (), order_by: str = "o.po_date ASC, o.id ASC", tail: str = ""):
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_ORDER_SELECT} {where} ORDER BY {order_by} {tail}", params)
            rows = fetchall(cur)
            items = self._items_for(cur, [int(r["id"]) for r in rows])
            return [_order_from_row(r, items.get(int(r["id"]), ())) for r in rows]

    def get_by_id(self, order_id: int) -> Optional[DeliveryOrder]:
        rows = self._select("WHERE o.id=%s", (order_id,))
        return rows[0] if rows else None

    def list_by_ids(self, order_ids: Sequence[int]) -> Sequence[DeliveryOrder]:
        if not order_ids:
            return []
        return self._select(f"WHERE o.id IN ({placeholders(order_ids)})", tuple(order_ids))

    @staticmethod
    def _where(filters: OrderFilters, *, for_summary: bool = False) -> tuple[str, list]:
        clauses: list[str] = []
        params: list = []
        if filters.province_id:
            clauses.append("o.province_id=%s")
            params.append(filters.province_id)
        if filters.client_id:
            clauses.append("o.client_id=%s")
            params.append(filters.client_id)
        if filters.date_from:
            clauses.append("o.scheduled_date >= %s")
            params.append(filters.date_from)
        if filters.date_to:
            clauses.append("o.scheduled_date <= %s")
            params.append(filters.date_to)
        if not for_summary:
            if filters.search:
                like = f"%{filters.search}%"
                clauses.append(
                    """
                    (o.po_number LIKE %s OR c.code LIKE %s OR EXISTS (
                        SELECT 1 FROM delivery_order_items i
                        WHERE i.delivery_order_id = o.id AND (i.part_number LIKE %s OR i.description LIKE %s)
                    ))
                    """
                )
                params.extend([like, like, like, like])
            if filters.status:
                clauses.append("o.status=%s")
                params.append(filters.status.value)
            if filters.delivery_type:
                clauses.append("o.delivery_type=%s")
                params.append(filters.delivery_type)
            if filters.sort == OrderSort.URGENT:
                clauses.append("o.status=%s")
                params.append(OrderStatus.PENDING.value)
        return ("WHERE " + " AND ".join(clauses)) if clauses else "", params

    def search(self, filters: OrderFilters, *, limit: int, offset: int) -> Sequence[DeliveryOrder]:
        where, params = self._where(filters)
        return self._select(
            where,
            tuple(params) + (int(limit), int(offset)),
            order_by=_SORTS.get(filters.sort, _SORTS[OrderSort.FIFO]) + ", o.id ASC",
            tail="LIMIT %s OFFSET %s",
        )

    def count(self, filters: OrderFilters) -> int:
        where, params = self._where(filters)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM delivery_orders o JOIN clients c ON c.id = o.client_id {where}", tuple(params))
            row = fetchone(cur)
            return int(row["n"]) if row else 0

    def summarize(self, filters: OrderFilters) -> OrderSummaryCounts:
        where, params = self._where(filters, for_summary=True)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT COUNT(*) AS total_orders,
                       COALESCE(SUM(o.total_amount), 0) AS total_value,
                       COALESCE(SUM(o.total_items), 0) AS total_items,
                       COALESCE(SUM(o.status='pending'), 0) AS pending_count,
                       COALESCE(SUM(o.status='confirmed'), 0) AS confirmed_count,
                       COALESCE(SUM(o.status='in_transit'), 0) AS in_transit_count,
                       COALESCE(SUM(o.status='on_time'), 0) AS on_time_count,
                       COALESCE(SUM(o.status='delayed'), 0) AS delayed_count
                FROM delivery_orders o
                {where}
                """,
                tuple(params),
            )
            r = fetchone(cur) or {}
            return OrderSummaryCounts(
                total_orders=int(r.get("total_orders") or 0),
                total_value=to_decimal(r.get("total_value")),
                total_items=int(r.get("total_items") or 0),
                pending_count=int(r.get("pending_count") or 0),
                confirmed_count=int(r.get("confirmed_count") or 0),
                in_transit_count=int(r.get("in_transit_count") or 0),
                on_time_count=int(r.get("on_time_count") or 0),
                delayed_count=int(r.get("delayed_count") or 0),
            )

    def list_pending(
        self,
        *,
        scheduled_from: Optional[date] = None,
        scheduled_to: Optional[date] = None,
        exclude_pickup: bool = False,
        unbatched_only: bool = False,
    ) -> Sequence[DeliveryOrder]:
        clauses = ["o.status=%s"]
        params: list = [OrderStatus.PENDING.value]
        if scheduled_from:
            clauses.append("o.scheduled_date >= %s")
            params.append(scheduled_from)
        if scheduled_to:
            clauses.append("o.scheduled_date <= %s")
            params.append(scheduled_to)
        if exclude_pickup:
            clauses.append(_NOT_PICKUP)
            params.append(PICKUP_DELIVERY_TYPE)
        if unbatched_only:
            clauses.append("o.batch_id IS NULL")
        return self._select(
            "WHERE " + " AND ".join(clauses),
            tuple(params),
            order_by="o.po_date ASC, o.scheduled_date ASC, o.id ASC",
        )

    def list_by_batch(self, batch_id: int) -> Sequence[DeliveryOrder]:
        return self._select("WHERE o.batch_id=%s", (batch_id,), order_by="o.po_date ASC, o.id ASC")

    def list_completed(self, *, start: date, end: date, province_id: Optional[int] = None) -> Sequence[DeliveryOrder]:
        statuses = [s.value for s in COMPLETED_ORDER_STATUSES]
        where = (
            f"WHERE o.status IN ({placeholders(statuses)}) AND o.actual_date IS NOT NULL "
            "AND o.actual_date BETWEEN %s AND %s"
        )
        params: list = [*statuses, start, end]
        if province_id:
            where += " AND c.province_id=%s"
            params.append(province_id)
        return self._select(where, tuple(params), order_by="o.actual_date ASC, o.id ASC")

    def count_open(self, *, province_id: Optional[int] = None) -> int:
        statuses = [s.value for s in OPEN_ORDER_STATUSES]
        sql = f"SELECT COUNT(*) AS n FROM delivery_orders o JOIN clients c ON c.id = o.client_id WHERE o.status IN ({placeholders(statuses)})"
        params: list = list(statuses)
        if province_id:
            sql += " AND c.province_id=%s"
            params.append(province_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            row = fetchone(cur)
            return int(row["n"]) if row else 0

    # ---- writes ------------------------------------------------------------

    def create(self, record: OrderRecord) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO delivery_orders(
                    po_number, po_date, scheduled_date, actual_date, client_id, province_id, status,
                    delivery_type, remarks, base_rate, additional_rate_type, additional_rate, total_rate, created_by
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    record.po_number,
                    record.po_date,
                    record.scheduled_date,
                    record.actual_date,
                    record.client_id,
                    record.province_id,
                    record.status.value,
                    record.delivery_type,
                    record.remarks,
                    record.base_rate,
                    record.additional_rate_type.value,
                    record.additional_rate,
                    record.total_rate,
                    record.created_by,
                ),
            )
            return int(cur.lastrowid)

    def update(self, order_id: int, record: OrderRecord) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE delivery_orders
                SET po_number=%s, po_date=%s, scheduled_date=%s, actual_date=%s, client_id=%s, province_id=%s,
                    status=%s, delivery_type=%s, remarks=%s,
                    base_rate=%s, additional_rate_type=%s, additional_rate=%s, total_rate=%s
                WHERE id=%s
                """,
                (
                    record.po_number,
                    record.po_date,
                    record.scheduled_date,
                    record.actual_date,
                    record.client_id,
                    record.province_id,
                    record.status.value,
                    record.delivery_type,
                    record.remarks,
                    record.base_rate,
                    record.additional_rate_type.value,
                    record.additional_rate,
                    record.total_rate,
                    order_id,
                ),
            )
            return cur.rowcount > 0

    def delete(self, order_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM delivery_orders WHERE id=%s", (order_id,))
            return cur.rowcount > 0

    def add_item(self, order_id: int, item: OrderItemInput) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO delivery_order_items(delivery_order_id, product_id, part_number, description, unit_price, quantity, total_price)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (order_id, item.product_id, item.part_number, item.description, item.unit_price, item.quantity, item.total_price),
            )
            return int(cur.lastrowid)

    def update_item(self, order_id: int, item: OrderItemInput) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE delivery_order_items
                SET product_id=%s, part_number=%s, description=%s, unit_price=%s, quantity=%s, total_price=%s
                WHERE id=%s AND delivery_order_id=%s
                """,
                (item.product_id, item.part_number, item.description, item.unit_price, item.quantity, item.total_price, item.item_id, order_id),
            )
            return cur.rowcount > 0

    def delete_items_except(self, order_id: int, keep_item_ids: Iterable[int]) -> int:
        keep = [int(i) for i in keep_item_ids]
        with db_cursor(self._conn_factory) as (_, cur):
            if keep:
                cur.execute(
                    f"DELETE FROM delivery_order_items WHERE delivery_order_id=%s AND id NOT IN ({placeholders(keep)})",
                    (order_id, *keep),
                )
            else:
                cur.execute("DELETE FROM delivery_order_items WHERE delivery_order_id=%s", (order_id,))
            return cur.rowcount

    def recalculate_totals(self, order_id: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE delivery_orders o
                SET o.total_items = (SELECT COUNT(*) FROM delivery_order_items i WHERE i.delivery_order_id = o.id),
                    o.total_quantity = (SELECT COALESCE(SUM(i.quantity), 0) FROM delivery_order_items i WHERE i.delivery_order_id = o.id),
                    o.total_amount = (SELECT COALESCE(SUM(i.total_price), 0) FROM delivery_order_items i WHERE i.delivery_order_id = o.id)
                WHERE o.id=%s
                """,
                (order_id,),
            )

    def apply_charge(
        self,
        order_id: int,
        *,
        base_rate: Decimal,
        additional_rate_type: AdditionalRateType,
        additional_rate: Decimal,
        total_rate: Decimal,
    ) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE delivery_orders SET base_rate=%s, additional_rate_type=%s, additional_rate=%s, total_rate=%s WHERE id=%s",
                (base_rate, additional_rate_type.value, additional_rate, total_rate, order_id),
            )

    def assign_batch(self, order_id: int, *, batch_id: Optional[int], status: OrderStatus) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE delivery_orders SET batch_id=%s, status=%s WHERE id=%s",
                (batch_id, status.value, order_id),
            )

    def set_status(self, order_ids: Sequence[int], status: OrderStatus) -> None:
        if not order_ids:
            return
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE delivery_orders SET status=%s WHERE id IN ({placeholders(order_ids)})",
                (status.value, *order_ids),
            )

    def record_delivery(self, order_id: int, *, actual_date: date, status: OrderStatus) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE delivery_orders SET actual_date=%s, status=%s WHERE id=%s",
                (actual_date, status.value, order_id),
            )

    def set_scheduled_date(self, order_id: int, scheduled_date: date) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE delivery_orders SET scheduled_date=%s WHERE id=%s", (scheduled_date, order_id))
