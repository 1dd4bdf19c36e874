from decimal import Decimal

from delivery_system.core.enums import AdditionalRateType
from delivery_system.rates.calculator.standard_calculator import StandardRateCalculator
from delivery_system.rates.model import DropStop, drop_cost


def test_quote_adds_surcharge_to_base_rate():
    calc = StandardRateCalculator()

    q = calc.quote(base_rate=Decimal("2750"), additional_rate_type=AdditionalRateType.DROP_SAME_ZONE)

    assert q.base_rate == Decimal("2750")
    assert q.additional_rate == Decimal("250")
    assert q.total_rate == Decimal("3000")


def test_default_surcharge_table():
    calc = StandardRateCalculator()

    assert calc.surcharge(AdditionalRateType.NONE) == Decimal("0")
    assert calc.surcharge(AdditionalRateType.DROP_SAME_ZONE) == Decimal("250")
    assert calc.surcharge(AdditionalRateType.DROP_OTHER_ZONE) == Decimal("500")
    assert calc.surcharge(AdditionalRateType.ADVANCE_DELIVERY) == Decimal("300")
    assert calc.surcharge(AdditionalRateType.SAME_CLIENT) == Decimal("250")


def test_no_surcharge_keeps_base_rate():
    q = StandardRateCalculator().quote(base_rate=Decimal("4000"), additional_rate_type=AdditionalRateType.NONE)

    assert q.additional_rate == Decimal("0")
    assert q.total_rate == Decimal("4000")


def test_overrides_replace_only_given_types():
    calc = StandardRateCalculator({"drop_other_zone": Decimal("600")})

    assert calc.surcharge(AdditionalRateType.DROP_OTHER_ZONE) == Decimal("600")
    assert calc.surcharge(AdditionalRateType.DROP_SAME_ZONE) == Decimal("250")


def test_sequence_drops_first_stop_pays_base_then_surcharges():
    stops = [
        DropStop(area_id=10, base_rate=Decimal("2750")),
        DropStop(area_id=10, base_rate=Decimal("2750")),
        DropStop(area_id=11, base_rate=Decimal("2750")),
        DropStop(area_id=None, base_rate=Decimal("4000")),
        DropStop(area_id=None, base_rate=Decimal("4000")),
    ]

    charges = StandardRateCalculator().sequence_drops(stops)

    assert [c.sequence for c in charges] == [1, 2, 3, 4, 5]
    assert [c.additional_rate_type for c in charges] == [
        AdditionalRateType.NONE,
        AdditionalRateType.DROP_SAME_ZONE,
        AdditionalRateType.DROP_OTHER_ZONE,
        AdditionalRateType.DROP_OTHER_ZONE,
        # two stops without an area are never the same zone
        AdditionalRateType.DROP_OTHER_ZONE,
    ]
    assert [c.drop_cost for c in charges] == [
        Decimal("2750"),
        Decimal("250"),
        Decimal("500"),
        Decimal("500"),
        Decimal("500"),
    ]
    assert charges[1].base_rate == Decimal("2750")


def test_sequence_drops_empty_run():
    assert StandardRateCalculator().sequence_drops([]) == []


def test_drop_cost_uses_additional_rate_for_drops_only():
    assert drop_cost(
        additional_rate_type=AdditionalRateType.DROP_SAME_ZONE,
        additional_rate=Decimal("250"),
        total_rate=Decimal("250"),
    ) == Decimal("250")
    assert drop_cost(
        additional_rate_type=AdditionalRateType.ADVANCE_DELIVERY,
        additional_rate=Decimal("300"),
        total_rate=Decimal("3050"),
    ) == Decimal("3050")
    assert drop_cost(
        additional_rate_type=AdditionalRateType.NONE,
        additional_rate=Decimal("0"),
        total_rate=Decimal("2750"),
    ) == Decimal("2750")
