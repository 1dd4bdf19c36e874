from datetime import date

import pytest

from delivery_system.core.enums import OrderSort, OrderStatus
from delivery_system.core.exceptions import ValidationError
from delivery_system.orders.model import determine_status
from delivery_system.orders.service import parse_filters, parse_order_input


def _payload(**overrides):
    data = {
        "po_number": "PO-1",
        "po_date": "2026-03-01",
        "scheduled_date": "2026-03-05",
        "client_id": "2",
        "items": [{"part_number": "PN-1", "unit_price": "10.50", "quantity": "2"}],
    }
    data.update(overrides)
    return data


def test_parse_order_input_coerces_values():
    data = parse_order_input(_payload(remarks="  fragile  "))

    assert data.client_id == 2
    assert data.po_date == date(2026, 3, 1)
    assert data.actual_date is None
    assert data.remarks == "fragile"
    assert data.items[0].quantity == 2
    assert str(data.items[0].total_price) == "21.00"


@pytest.mark.parametrize(
    "overrides",
    [
        {"po_number": ""},
        {"po_date": ""},
        {"scheduled_date": "03/05/2026"},
        {"client_id": None},
        {"items": []},
        {"items": [{"part_number": "PN-1", "unit_price": "10", "quantity": 0}]},
        {"items": [{"part_number": "PN-1", "unit_price": "-1", "quantity": 1}]},
        {"items": [{"part_number": "", "unit_price": "1", "quantity": 1}]},
        {"items": [{"part_number": "P" * 101, "unit_price": "1", "quantity": 1}]},
        {"items": ["PN-1"]},
        {"delivery_type": "Courier"},
        {"additional_rate_type": "express"},
    ],
)
def test_parse_order_input_rejects_invalid_payloads(overrides):
    with pytest.raises(ValidationError):
        parse_order_input(_payload(**overrides))


def test_parse_filters_defaults():
    f = parse_filters({})

    assert f.sort == OrderSort.FIFO
    assert f.status is None
    assert f.province_id is None


def test_parse_filters_all_means_no_filter():
    f = parse_filters({"status": "all", "delivery_type": "all", "province_id": "all", "sort": "urgent"})

    assert f.status is None
    assert f.delivery_type is None
    assert f.province_id is None
    assert f.sort == OrderSort.URGENT


def test_parse_filters_values():
    f = parse_filters({"status": "delayed", "date_from": "2026-03-01", "date_to": "2026-03-31", "client_id": "3"})

    assert f.status == OrderStatus.DELAYED
    assert f.date_from == date(2026, 3, 1)
    assert f.date_to == date(2026, 3, 31)
    assert f.client_id == 3


@pytest.mark.parametrize("args", [{"sort": "oldest"}, {"status": "lost"}, {"date_from": "yesterday"}])
def test_parse_filters_rejects_unknown_values(args):
    with pytest.raises(ValidationError):
        parse_filters(args)


def test_determine_status():
    scheduled = date(2026, 3, 10)

    assert determine_status(current=OrderStatus.PENDING, actual_date=None, scheduled_date=scheduled) == OrderStatus.PENDING
    assert determine_status(current=OrderStatus.PENDING, actual_date=scheduled, scheduled_date=scheduled) == OrderStatus.ON_TIME
    assert (
        determine_status(current=OrderStatus.CONFIRMED, actual_date=date(2026, 3, 11), scheduled_date=scheduled)
        == OrderStatus.DELAYED
    )
    assert (
        determine_status(current=OrderStatus.CANCELLED, actual_date=date(2026, 3, 9), scheduled_date=scheduled)
        == OrderStatus.CANCELLED
    )


def test_parse_order_input_accepts_part_number_at_length_limit():
    data = parse_order_input(_payload(items=[{"part_number": "P" * 100, "unit_price": "1", "quantity": 1}]))

    assert len(data.items[0].part_number) == 100
