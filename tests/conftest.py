from __future__ import annotations

import copy
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Iterable, Optional, Sequence

import pytest

from delivery_system.container import Container, wire_services
from delivery_system.core.enums import (
    COMPLETED_ORDER_STATUSES,
    OPEN_ORDER_STATUSES,
    BatchStatus,
    NotificationType,
    OrderSort,
    OrderStatus,
    Role,
    VehicleType,
)
from delivery_system.masterdata.model import Area, AreaGroup, Client, Product, Province, RateSetting, Vehicle
from delivery_system.milestones.model import MilestoneTemplate, OrderMilestone
from delivery_system.notifications.model import NewNotification, Notification
from delivery_system.orders.model import (
    DeliveryOrder,
    DeliveryOrderItem,
    OrderFilters,
    OrderItemInput,
    OrderRecord,
    OrderSummaryCounts,
)
from delivery_system.planning.model import DeliveryBatch, NewBatch
from delivery_system.users.model import User

TODAY = date(2026, 3, 10)
NOW = datetime(2026, 3, 10, 9, 0)


class InMemoryMasterData:
    def __init__(self):
        self.provinces = {
            1: Province(province_id=1, name="Laguna", code="LGN"),
            2: Province(province_id=2, name="Cavite", code="CVT"),
        }
        self.area_groups = {
            1: AreaGroup(area_group_id=1, name="Calamba, FPIP, Canlubang, LISP", code="CAL-FPIP-LISP", base_rate=Decimal("2750")),
            2: AreaGroup(area_group_id=2, name="Cavite - Rosario, Etc", code="CVT-ROSARIO", base_rate=Decimal("4000")),
        }
        self.areas = {
            10: Area(area_id=10, province_id=1, area_group_id=1, name="CALAMBA", code="CALAMBA"),
            11: Area(area_id=11, province_id=1, area_group_id=1, name="LISP 1", code="LISP1"),
            20: Area(area_id=20, province_id=2, area_group_id=2, name="GENERAL TRIAS", code="GEN-TRIAS"),
        }
        self.clients: dict[int, Client] = {}
        self.add_client(1, "CL-CALAMBA", area_id=10, distance_km="42")
        self.add_client(2, "CL-LISP", area_id=11, distance_km="38")
        self.add_client(3, "CL-GENTRIAS", area_id=20, distance_km="35")
        self.add_client(4, "CL-NOAREA", area_id=None, province_id=1, distance_km=None)
        self.products = {
            1: [
                Product(product_id=100, part_number="PN-1001", description="Wire harness", unit_price=Decimal("1250")),
                Product(product_id=101, part_number="PN-1002", description="Bracket", unit_price=Decimal("340")),
            ]
        }
        self.vehicles = [
            Vehicle(vehicle_id=1, code="L300-01", name="L300 Van Unit 1", vehicle_type=VehicleType.L300,
                    plate_number="ABC 1234", max_value=Decimal("150000")),
            Vehicle(vehicle_id=3, code="TRK-01", name="Truck Unit 1", vehicle_type=VehicleType.TRUCK,
                    plate_number="GHI 9012", max_value=Decimal("500000")),
        ]
        self.rate_settings: list[RateSetting] = []

    def add_client(self, client_id: int, code: str, *, area_id: Optional[int], province_id: Optional[int] = None,
                   distance_km: Optional[str] = None) -> Client:
        area = self.areas.get(area_id) if area_id else None
        group = self.area_groups.get(area.area_group_id) if area and area.area_group_id else None
        pid = province_id or (area.province_id if area else 1)
        client = Client(
            client_id=client_id,
            code=code,
            province_id=pid,
            province_name=self.provinces[pid].name,
            area_id=area.area_id if area else None,
            area_name=area.name if area else None,
            area_group_id=group.area_group_id if group else None,
            area_group_name=group.name if group else None,
            area_group_code=group.code if group else None,
            base_rate=group.base_rate if group else Decimal("0"),
            distance_km=Decimal(distance_km) if distance_km is not None else None,
            cutoff_time=time(15, 0),
        )
        self.clients[client_id] = client
        return client

    def list_provinces(self, *, active_only: bool = True):
        return list(self.provinces.values())

    def list_area_groups(self, *, active_only: bool = True):
        return list(self.area_groups.values())

    def get_area_group(self, area_group_id: int):
        return self.area_groups.get(area_group_id)

    def list_areas(self, *, province_id: Optional[int] = None, active_only: bool = True):
        return [a for a in self.areas.values() if province_id is None or a.province_id == province_id]

    def get_client(self, client_id: int):
        return self.clients.get(client_id)

    def list_clients(self, *, active_only: bool = True):
        return list(self.clients.values())

    def list_client_products(self, client_id: int):
        return list(self.products.get(client_id, []))

    def get_product(self, product_id: int):
        return next((p for rows in self.products.values() for p in rows if p.product_id == product_id), None)

    def list_vehicles(self, *, active_only: bool = True):
        return list(self.vehicles)

    def list_rate_settings(self, *, active_only: bool = True):
        return [s for s in self.rate_settings if s.is_active or not active_only]


class InMemoryOrders:
    def __init__(self, masterdata: InMemoryMasterData):
        self._masterdata = masterdata
        self._orders: dict[int, DeliveryOrder] = {}
        self._items: dict[int, list[DeliveryOrderItem]] = {}
        self._next_id = 0
        self._next_item_id = 0

    # ---- test helpers ----

    def put(
        self,
        *,
        po_number: str,
        client_id: int = 1,
        po_date: date = date(2026, 3, 1),
        scheduled_date: date = TODAY,
        total_amount: str = "10000",
        total_items: int = 1,
        **fields,
    ) -> DeliveryOrder:
        self._next_id += 1
        client = self._masterdata.get_client(client_id)
        order = DeliveryOrder(
            order_id=self._next_id,
            po_number=po_number,
            po_date=po_date,
            scheduled_date=scheduled_date,
            client_id=client_id,
            province_id=client.province_id,
            total_amount=Decimal(total_amount),
            total_items=total_items,
            total_quantity=total_items,
            created_at=datetime(2026, 3, 1, 8, 0) + timedelta(minutes=self._next_id),
            **fields,
        )
        self._orders[order.order_id] = order
        return self._hydrate(order)

    def _hydrate(self, order: DeliveryOrder) -> DeliveryOrder:
        return replace(
            order,
            client=self._masterdata.get_client(order.client_id),
            items=tuple(self._items.get(order.order_id, [])),
        )

    def _all(self) -> list[DeliveryOrder]:
        return [self._hydrate(o) for o in self._orders.values()]

    def _change(self, order_id: int, **fields) -> None:
        if order_id in self._orders:
            self._orders[order_id] = replace(self._orders[order_id], **fields)

    # ---- reads ----

    def get_by_id(self, order_id: int):
        order = self._orders.get(order_id)
        return self._hydrate(order) if order else None

    def list_by_ids(self, order_ids: Sequence[int]):
        return [self._hydrate(self._orders[i]) for i in order_ids if i in self._orders]

    def _matches(self, o: DeliveryOrder, f: OrderFilters, *, for_summary: bool = False) -> bool:
        if not for_summary:
            if f.search:
                needle = f.search.lower()
                haystack = [o.po_number, o.client_code or ""] + [i.part_number for i in o.items] + [
                    i.description or "" for i in o.items
                ]
                if not any(needle in h.lower() for h in haystack):
                    return False
            if f.status and o.status != f.status:
                return False
            if f.delivery_type and o.delivery_type != f.delivery_type:
                return False
            if f.sort == OrderSort.URGENT and o.status != OrderStatus.PENDING:
                return False
        if f.province_id and o.province_id != f.province_id:
            return False
        if f.client_id and o.client_id != f.client_id:
            return False
        if f.date_from and o.scheduled_date < f.date_from:
            return False
        if f.date_to and o.scheduled_date > f.date_to:
            return False
        return True

    def search(self, filters: OrderFilters, *, limit: int, offset: int):
        rows = [o for o in self._all() if self._matches(o, filters)]
        if filters.sort == OrderSort.NEWEST:
            rows.sort(key=lambda o: (o.po_date, o.created_at, o.order_id), reverse=True)
        elif filters.sort == OrderSort.SCHEDULED_DESC:
            rows.sort(key=lambda o: (o.scheduled_date, o.po_number), reverse=True)
        elif filters.sort in (OrderSort.SCHEDULED_ASC,):
            rows.sort(key=lambda o: (o.scheduled_date, o.po_number))
        elif filters.sort == OrderSort.URGENT:
            rows.sort(key=lambda o: (o.scheduled_date, o.po_date))
        else:
            rows.sort(key=lambda o: (o.po_date, o.created_at, o.order_id))
        return rows[offset : offset + limit]

    def count(self, filters: OrderFilters) -> int:
        return sum(1 for o in self._all() if self._matches(o, filters))

    def summarize(self, filters: OrderFilters) -> OrderSummaryCounts:
        rows = [o for o in self._all() if self._matches(o, filters, for_summary=True)]

        def n(status):
            return sum(1 for o in rows if o.status == status)

        return OrderSummaryCounts(
            total_orders=len(rows),
            total_value=sum((o.total_amount for o in rows), Decimal("0")),
            total_items=sum(o.total_items for o in rows),
            pending_count=n(OrderStatus.PENDING),
            confirmed_count=n(OrderStatus.CONFIRMED),
            in_transit_count=n(OrderStatus.IN_TRANSIT),
            on_time_count=n(OrderStatus.ON_TIME),
            delayed_count=n(OrderStatus.DELAYED),
        )

    def list_pending(self, *, scheduled_from=None, scheduled_to=None, exclude_pickup=False, unbatched_only=False):
        rows = [
            o
            for o in self._all()
            if o.status == OrderStatus.PENDING
            and (scheduled_from is None or o.scheduled_date >= scheduled_from)
            and (scheduled_to is None or o.scheduled_date <= scheduled_to)
            and not (exclude_pickup and o.is_pickup)
            and not (unbatched_only and o.batch_id is not None)
        ]
        return sorted(rows, key=lambda o: (o.po_date, o.scheduled_date, o.order_id))

    def list_by_batch(self, batch_id: int):
        rows = [o for o in self._all() if o.batch_id == batch_id]
        return sorted(rows, key=lambda o: (o.po_date, o.order_id))

    def list_completed(self, *, start: date, end: date, province_id: Optional[int] = None):
        rows = [
            o
            for o in self._all()
            if o.status in COMPLETED_ORDER_STATUSES
            and o.actual_date is not None
            and start <= o.actual_date <= end
            and (not province_id or o.client.province_id == province_id)
        ]
        return sorted(rows, key=lambda o: (o.actual_date, o.order_id))

    def count_open(self, *, province_id: Optional[int] = None) -> int:
        return sum(
            1
            for o in self._all()
            if o.status in OPEN_ORDER_STATUSES and (not province_id or o.client.province_id == province_id)
        )

    # ---- writes ----

    def create(self, record: OrderRecord) -> int:
        self._next_id += 1
        self._orders[self._next_id] = DeliveryOrder(
            order_id=self._next_id,
            po_number=record.po_number,
            po_date=record.po_date,
            scheduled_date=record.scheduled_date,
            actual_date=record.actual_date,
            client_id=record.client_id,
            province_id=record.province_id,
            status=record.status,
            delivery_type=record.delivery_type,
            remarks=record.remarks,
            base_rate=record.base_rate,
            additional_rate_type=record.additional_rate_type,
            additional_rate=record.additional_rate,
            total_rate=record.total_rate,
            created_by=record.created_by,
            created_at=NOW,
        )
        return self._next_id

    def update(self, order_id: int, record: OrderRecord) -> bool:
        if order_id not in self._orders:
            return False
        self._change(
            order_id,
            po_number=record.po_number,
            po_date=record.po_date,
            scheduled_date=record.scheduled_date,
            actual_date=record.actual_date,
            client_id=record.client_id,
            province_id=record.province_id,
            status=record.status,
            delivery_type=record.delivery_type,
            remarks=record.remarks,
            base_rate=record.base_rate,
            additional_rate_type=record.additional_rate_type,
            additional_rate=record.additional_rate,
            total_rate=record.total_rate,
        )
        return True

    def delete(self, order_id: int) -> bool:
        self._items.pop(order_id, None)
        return self._orders.pop(order_id, None) is not None

    def add_item(self, order_id: int, item: OrderItemInput) -> int:
        self._next_item_id += 1
        self._items.setdefault(order_id, []).append(
            DeliveryOrderItem(
                item_id=self._next_item_id,
                order_id=order_id,
                product_id=item.product_id,
                part_number=item.part_number,
                description=item.description,
                unit_price=item.unit_price,
                quantity=item.quantity,
                total_price=item.total_price,
            )
        )
        return self._next_item_id

    def update_item(self, order_id: int, item: OrderItemInput) -> bool:
        items = self._items.get(order_id, [])
        for index, existing in enumerate(items):
            if existing.item_id == item.item_id:
                items[index] = replace(
                    existing,
                    product_id=item.product_id,
                    part_number=item.part_number,
                    description=item.description,
                    unit_price=item.unit_price,
                    quantity=item.quantity,
                    total_price=item.total_price,
                )
                return True
        return False

    def delete_items_except(self, order_id: int, keep_item_ids: Iterable[int]) -> int:
        keep = set(keep_item_ids)
        before = self._items.get(order_id, [])
        after = [i for i in before if i.item_id in keep]
        self._items[order_id] = after
        return len(before) - len(after)

    def recalculate_totals(self, order_id: int) -> None:
        items = self._items.get(order_id, [])
        self._change(
            order_id,
            total_items=len(items),
            total_quantity=sum(i.quantity for i in items),
            total_amount=sum((i.total_price for i in items), Decimal("0")),
        )

    def apply_charge(self, order_id: int, *, base_rate, additional_rate_type, additional_rate, total_rate) -> None:
        self._change(
            order_id,
            base_rate=base_rate,
            additional_rate_type=additional_rate_type,
            additional_rate=additional_rate,
            total_rate=total_rate,
        )

    def assign_batch(self, order_id: int, *, batch_id: Optional[int], status: OrderStatus) -> None:
        self._change(order_id, batch_id=batch_id, status=status)

    def set_status(self, order_ids: Sequence[int], status: OrderStatus) -> None:
        for order_id in order_ids:
            self._change(order_id, status=status)

    def record_delivery(self, order_id: int, *, actual_date: date, status: OrderStatus) -> None:
        self._change(order_id, actual_date=actual_date, status=status)

    def set_scheduled_date(self, order_id: int, scheduled_date: date) -> None:
        self._change(order_id, scheduled_date=scheduled_date)


class InMemoryMilestones:
    def __init__(self, templates: Optional[list[MilestoneTemplate]] = None):
        self.templates = templates if templates is not None else [
            MilestoneTemplate(template_id=1, name="PO Received", code="po_received", sequence=1, standard_duration_days=1),
            MilestoneTemplate(template_id=2, name="Order Processing", code="order_processing", sequence=2, standard_duration_days=2),
            MilestoneTemplate(template_id=3, name="In Transit", code="in_transit", sequence=3, standard_duration_days=3),
        ]
        self._rows: dict[int, OrderMilestone] = {}
        self._next_id = 0

    def list_active_templates(self):
        return [t for t in self.templates if t.is_active]

    def list_for_order(self, order_id: int):
        return sorted((m for m in self._rows.values() if m.order_id == order_id), key=lambda m: m.sequence)

    def get(self, milestone_id: int):
        return self._rows.get(milestone_id)

    def create_for_order(self, order_id: int, templates):
        for t in templates:
            self._next_id += 1
            self._rows[self._next_id] = OrderMilestone(
                milestone_id=self._next_id,
                order_id=order_id,
                template_id=t.template_id,
                sequence=t.sequence,
                planned_duration_days=t.standard_duration_days,
                name=t.name,
                code=t.code,
                standard_duration_days=t.standard_duration_days,
            )

    def save_plan(self, milestones):
        for m in milestones:
            self._rows[m.milestone_id] = replace(
                self._rows[m.milestone_id],
                planned_start_date=m.planned_start_date,
                planned_end_date=m.planned_end_date,
                slack_days=m.slack_days,
                is_critical=m.is_critical,
            )

    def update_progress(self, milestone_id: int, *, status, actual_start_date, actual_end_date, actual_duration_days, notes):
        if milestone_id not in self._rows:
            return False
        self._rows[milestone_id] = replace(
            self._rows[milestone_id],
            status=status,
            actual_start_date=actual_start_date,
            actual_end_date=actual_end_date,
            actual_duration_days=actual_duration_days,
            notes=notes,
        )
        return True

    def set_planned_duration(self, milestone_id: int, days: int) -> None:
        self._rows[milestone_id] = replace(self._rows[milestone_id], planned_duration_days=days)


class InMemoryBatches:
    def __init__(self, masterdata: InMemoryMasterData):
        self._masterdata = masterdata
        self._rows: dict[int, DeliveryBatch] = {}
        self._next_id = 0

    def get(self, batch_id: int):
        return self._rows.get(batch_id)

    def latest_number_for(self, prefix: str):
        numbers = sorted(b.batch_number for b in self._rows.values() if b.batch_number.startswith(prefix))
        return numbers[-1] if numbers else None

    def create(self, batch: NewBatch) -> int:
        self._next_id += 1
        group = self._masterdata.get_area_group(batch.area_group_id)
        self._rows[self._next_id] = DeliveryBatch(
            batch_id=self._next_id,
            batch_number=batch.batch_number,
            planned_date=batch.planned_date,
            vehicle_type=batch.vehicle_type,
            area_group_id=batch.area_group_id,
            area_group_name=group.name if group else None,
            area_group_code=group.code if group else None,
            vehicle_id=batch.vehicle_id,
            order_count=batch.order_count,
            total_items=batch.total_items,
            total_value=batch.total_value,
            total_rate=batch.total_rate,
            total_distance_km=batch.total_distance_km,
            created_by=batch.created_by,
        )
        return self._next_id

    def update_totals(self, batch_id: int, *, order_count, total_items, total_value, total_rate) -> None:
        self._rows[batch_id] = replace(
            self._rows[batch_id],
            order_count=order_count,
            total_items=total_items,
            total_value=total_value,
            total_rate=total_rate,
        )

    def set_status(self, batch_id: int, status: BatchStatus, *, actual_date=None) -> None:
        self._rows[batch_id] = replace(
            self._rows[batch_id], status=status, actual_date=actual_date or self._rows[batch_id].actual_date
        )

    def delete(self, batch_id: int) -> bool:
        return self._rows.pop(batch_id, None) is not None

    def list_for_date(self, planned_date: date, *, include_completed: bool = False):
        return [
            b
            for b in self._rows.values()
            if b.planned_date == planned_date and (include_completed or b.status != BatchStatus.COMPLETED)
        ]


class InMemoryNotifications:
    def __init__(self):
        self.rows: dict[int, Notification] = {}
        self._next_id = 0

    def add(self, notification: NewNotification, *, created_at: datetime) -> int:
        self._next_id += 1
        self.rows[self._next_id] = Notification(
            notification_id=self._next_id,
            notification_type=notification.notification_type,
            title=notification.title,
            message=notification.message,
            created_at=created_at,
            icon=notification.icon,
            icon_color=notification.icon_color,
            link=notification.link,
            user_id=notification.user_id,
            delivery_order_id=notification.delivery_order_id,
            data=dict(notification.data),
        )
        return self._next_id

    def of_type(self, notification_type: NotificationType) -> list[Notification]:
        return [n for n in self.rows.values() if n.notification_type == notification_type]

    def _visible(self, user_id):
        rows = [n for n in self.rows.values() if n.visible_to(user_id)]
        return sorted(rows, key=lambda n: (n.created_at, n.notification_id), reverse=True)

    def get(self, notification_id: int):
        return self.rows.get(notification_id)

    def list_for_user(self, user_id, *, limit: int, offset: int = 0):
        return self._visible(user_id)[offset : offset + limit]

    def count_for_user(self, user_id) -> int:
        return len(self._visible(user_id))

    def count_unread(self, user_id) -> int:
        return sum(1 for n in self._visible(user_id) if not n.is_read)

    def mark_read(self, notification_id: int, *, read_at: datetime) -> bool:
        self.rows[notification_id] = replace(self.rows[notification_id], read_at=read_at)
        return True

    def mark_all_read(self, user_id, *, read_at: datetime) -> int:
        unread = [n for n in self._visible(user_id) if not n.is_read]
        for n in unread:
            self.rows[n.notification_id] = replace(n, read_at=read_at)
        return len(unread)

    def delete(self, notification_id: int) -> bool:
        return self.rows.pop(notification_id, None) is not None

    def delete_read(self, user_id) -> int:
        read = [n for n in self._visible(user_id) if n.is_read]
        for n in read:
            del self.rows[n.notification_id]
        return len(read)

    def exists_for_order_on(self, notification_type, order_id: int, day: date) -> bool:
        return any(
            n.notification_type == notification_type and n.delivery_order_id == order_id and n.created_at.date() == day
            for n in self.rows.values()
        )


class InMemoryUsers:
    def __init__(self):
        self.rows: dict[int, User] = {}
        self._next_id = 0

    def get_by_id(self, user_id: int):
        return self.rows.get(user_id)

    def get_by_email(self, email: str):
        return next((u for u in self.rows.values() if u.email == email), None)

    def _filter(self, search, role):
        rows = list(self.rows.values())
        if search:
            rows = [u for u in rows if search.lower() in u.name.lower() or search.lower() in u.email.lower()]
        if role:
            rows = [u for u in rows if u.role == role]
        return sorted(rows, key=lambda u: (u.name, u.user_id))

    def search(self, *, search, role, limit: int, offset: int):
        return self._filter(search, role)[offset : offset + limit]

    def count(self, *, search, role) -> int:
        return len(self._filter(search, role))

    def create(self, *, name, email, password_hash, role: Role, permissions) -> int:
        self._next_id += 1
        self.rows[self._next_id] = User(
            user_id=self._next_id,
            name=name,
            email=email,
            password_hash=password_hash,
            role=role,
            permissions=tuple(permissions) if permissions is not None else None,
        )
        return self._next_id

    def update(self, user_id: int, *, name, email, role, permissions, password_hash=None) -> bool:
        user = self.rows[user_id]
        self.rows[user_id] = replace(
            user,
            name=name,
            email=email,
            role=role,
            permissions=tuple(permissions) if permissions is not None else None,
            password_hash=password_hash or user.password_hash,
        )
        return True

    def delete_by_id(self, user_id: int) -> bool:
        return self.rows.pop(user_id, None) is not None


class InMemoryTransaction:
    """Snapshots the repositories on entry and puts them back if the block raises."""

    def __init__(self, *repos, shared=()):
        self._repos = repos
        self._shared = shared
        self._depth = 0
        self.commits = 0
        self.rollbacks = 0

    @contextmanager
    def __call__(self):
        if self._depth:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        memo = {id(s): s for s in self._shared}
        snapshots = [copy.deepcopy(vars(r), memo) for r in self._repos]
        self._depth = 1
        try:
            yield
        except Exception:
            for repo, snapshot in zip(self._repos, snapshots):
                vars(repo).clear()
                vars(repo).update(snapshot)
            self.rollbacks += 1
            raise
        else:
            self.commits += 1
        finally:
            self._depth = 0


@pytest.fixture
def masterdata() -> InMemoryMasterData:
    return InMemoryMasterData()


@pytest.fixture
def orders(masterdata) -> InMemoryOrders:
    return InMemoryOrders(masterdata)


@pytest.fixture
def notifications_repo() -> InMemoryNotifications:
    return InMemoryNotifications()


@pytest.fixture
def milestones_repo() -> InMemoryMilestones:
    return InMemoryMilestones()


@pytest.fixture
def batches(masterdata) -> InMemoryBatches:
    return InMemoryBatches(masterdata)


@pytest.fixture
def users_repo() -> InMemoryUsers:
    return InMemoryUsers()


@pytest.fixture
def transaction(masterdata, orders, notifications_repo, milestones_repo, batches) -> InMemoryTransaction:
    return InMemoryTransaction(orders, batches, milestones_repo, notifications_repo, shared=(masterdata,))


@pytest.fixture
def container(masterdata, orders, notifications_repo, milestones_repo, batches, users_repo, transaction) -> Container:
    return wire_services(
        transaction=transaction,
        masterdata_repo=masterdata,
        orders_repo=orders,
        milestones_repo=milestones_repo,
        batches_repo=batches,
        notifications_repo=notifications_repo,
        users_repo=users_repo,
        max_orders_per_batch=2,
    )
