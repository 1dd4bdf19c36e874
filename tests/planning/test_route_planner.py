from datetime import date
from decimal import Decimal

import pytest

from delivery_system.core.enums import AdditionalRateType, OrderStatus
from delivery_system.core.exceptions import NotFoundError, ValidationError
from delivery_system.planning.route_planner import sequence_by_distance

TODAY = date(2026, 3, 10)


def test_sequence_by_distance_runs_outward_from_warehouse(orders):
    far = orders.put(po_number="FAR", client_id=1)
    mid = orders.put(po_number="MID", client_id=2)
    near = orders.put(po_number="NEAR", client_id=3)
    unknown = orders.put(po_number="NOKM", client_id=4)

    route = sequence_by_distance(orders.list_by_ids([far.order_id, mid.order_id, near.order_id, unknown.order_id]), today=TODAY)

    assert [o.po_number for o in route] == ["NOKM", "NEAR", "MID", "FAR"]


def test_overdue_orders_jump_the_queue(orders):
    mid = orders.put(po_number="MID", client_id=2)
    late = orders.put(po_number="LATE", client_id=1, scheduled_date=date(2026, 3, 9))
    near = orders.put(po_number="NEAR", client_id=3)

    route = sequence_by_distance(orders.list_by_ids([mid.order_id, late.order_id, near.order_id]), today=TODAY)

    assert [o.po_number for o in route] == ["LATE", "MID", "NEAR"]


@pytest.fixture
def run(orders):
    return {
        "a": orders.put(po_number="PO-A", client_id=1, po_date=date(2026, 3, 1), total_amount="50000"),
        "b": orders.put(po_number="PO-B", client_id=2, po_date=date(2026, 3, 2), total_amount="30000"),
        "c": orders.put(po_number="PO-C", client_id=3, po_date=date(2026, 3, 3), scheduled_date=date(2026, 3, 9)),
        "pickup": orders.put(po_number="PO-P", client_id=1, delivery_type="Pickup"),
        "later": orders.put(po_number="PO-L", client_id=1, scheduled_date=date(2026, 3, 12)),
    }


def test_plan_sequences_and_costs_the_day(container, run):
    plan = container.route_planner.plan(plan_date=TODAY, today=TODAY)

    zone = plan["zones"][0]
    assert [s["po_number"] for s in zone["orders"]] == ["PO-C", "PO-B", "PO-A"]
    assert [s["route_sequence"] for s in zone["orders"]] == [1, 2, 3]
    assert [s["drop_cost"] for s in zone["orders"]] == [4000.0, 500.0, 500.0]
    assert [s["leg_distance_km"] for s in zone["orders"]] == [35.0, 3.0, 4.0]
    assert zone["orders"][0]["is_overdue"] is True
    assert zone["orders"][0]["days_until_due"] == -1
    assert zone["total_route_km"] == 84.0
    assert zone["max_distance"] == 42.0

    summary = plan["summary"]
    assert summary["total_pending"] == 3
    assert summary["total_zones"] == 2
    assert summary["total_estimated_cost"] == 5000.0
    assert summary["overdue_orders"] == 1
    assert summary["due_today"] == 2
    assert summary["oldest_po"] == "2026-03-01"


def test_plan_lists_upcoming_days(container, run):
    upcoming = container.route_planner.plan(plan_date=TODAY, today=TODAY)["upcoming_orders"]

    assert len(upcoming) == 1
    day = upcoming[0]
    assert day["date"] == "2026-03-12"
    assert day["days_from_now"] == 2
    assert day["order_count"] == 1
    assert day["total_rate"] == 2750.0
    assert day["zones"] == {"Calamba, FPIP, Canlubang, LISP": 1}


def test_plan_for_empty_day(container):
    plan = container.route_planner.plan(plan_date=TODAY, today=TODAY)

    assert plan["zones"] == []
    assert plan["summary"]["total_pending"] == 0
    assert plan["summary"]["oldest_po"] is None


def test_calculate_route_groups_by_zone(container, orders, run):
    second_a = orders.put(po_number="PO-A2", client_id=1, po_date=date(2026, 3, 4))

    result = container.route_planner.calculate_route(
        order_ids=[run["c"].order_id, second_a.order_id, run["a"].order_id]
    )

    assert [r["po_number"] for r in result["route"]] == ["PO-A", "PO-A2", "PO-C"]
    assert [r["drop_cost"] for r in result["route"]] == [2750.0, 250.0, 500.0]
    assert [r["cumulative_cost"] for r in result["route"]] == [2750.0, 3000.0, 3500.0]
    assert result["total_cost"] == 3500.0
    assert result["zones_covered"] == 2


def test_confirm_delivery_charges_full_base_rate(container, run):
    order = container.route_planner.confirm_delivery(order_id=run["a"].order_id, delivery_date=TODAY)

    assert order.status == OrderStatus.ON_TIME
    assert order.actual_date == TODAY
    assert order.additional_rate_type == AdditionalRateType.NONE
    assert order.total_rate == Decimal("2750")


def test_confirm_delivery_with_overrides_and_late_date(container, run):
    order = container.route_planner.confirm_delivery(
        order_id=run["c"].order_id,
        delivery_date=TODAY,
        base_rate=Decimal("3800"),
        drop_cost=Decimal("1000"),
    )

    assert order.status == OrderStatus.DELAYED
    assert order.base_rate == Decimal("3800")
    assert order.total_rate == Decimal("1000")


def test_confirm_unknown_order(container):
    with pytest.raises(NotFoundError):
        container.route_planner.confirm_delivery(order_id=404, delivery_date=TODAY)


def test_confirm_bulk_sequences_drops(container, orders, run):
    second_a = orders.put(po_number="PO-A2", client_id=1)

    count = container.route_planner.confirm_bulk(
        entries=[(run["a"].order_id, None), (second_a.order_id, None), (run["b"].order_id, Decimal("3000"))],
        delivery_date=TODAY,
    )

    assert count == 3
    a, a2, b = orders.list_by_ids([run["a"].order_id, second_a.order_id, run["b"].order_id])
    assert (a.additional_rate_type, a.drop_cost) == (AdditionalRateType.NONE, Decimal("2750"))
    assert (a2.additional_rate_type, a2.drop_cost) == (AdditionalRateType.DROP_SAME_ZONE, Decimal("250"))
    assert (b.additional_rate_type, b.drop_cost) == (AdditionalRateType.DROP_OTHER_ZONE, Decimal("500"))
    assert b.base_rate == Decimal("3000")
    assert {o.status for o in (a, a2, b)} == {OrderStatus.ON_TIME}


def test_confirm_bulk_requires_orders(container):
    with pytest.raises(ValidationError):
        container.route_planner.confirm_bulk(entries=[], delivery_date=TODAY)


def test_confirm_bulk_rejects_unknown_orders_without_confirming_any(container, orders, run):
    with pytest.raises(ValidationError, match="404"):
        container.route_planner.confirm_bulk(entries=[(run["a"].order_id, None), (404, None)], delivery_date=TODAY)

    untouched = orders.get_by_id(run["a"].order_id)
    assert untouched.status == OrderStatus.PENDING
    assert untouched.actual_date is None
