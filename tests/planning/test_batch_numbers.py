from datetime import date
from decimal import Decimal

from delivery_system.core.enums import VehicleType
from delivery_system.planning.batch_numbers import batch_number_prefix, determine_vehicle_type, next_batch_number


def test_first_batch_of_the_day():
    assert batch_number_prefix(date(2026, 3, 10)) == "BTH-260310-"
    assert next_batch_number(date(2026, 3, 10), None) == "BTH-260310-001"


def test_next_number_follows_latest():
    assert next_batch_number(date(2026, 3, 10), "BTH-260310-007") == "BTH-260310-008"


def test_latest_from_another_day_restarts_sequence():
    assert next_batch_number(date(2026, 3, 10), "BTH-260309-012") == "BTH-260310-001"


def test_vehicle_threshold():
    assert determine_vehicle_type(Decimal("150000")) == VehicleType.L300
    assert determine_vehicle_type(Decimal("150000.01")) == VehicleType.TRUCK
    assert determine_vehicle_type(Decimal("90000"), l300_max_value=Decimal("80000")) == VehicleType.TRUCK
