from decimal import Decimal

import pytest

from delivery_system.core.constants import DEFAULT_SURCHARGES
from delivery_system.core.enums import AdditionalRateType
from delivery_system.core.exceptions import NotFoundError, ValidationError
from delivery_system.masterdata.model import RateSetting
from delivery_system.rates.service import RateService, parse_rate_type


def test_global_rate_settings_override_defaults(masterdata):
    masterdata.rate_settings = [
        RateSetting(rate_setting_id=1, name="Same zone", rate_type="drop_same_zone", rate=Decimal("300")),
        RateSetting(rate_setting_id=2, name="Laguna only", rate_type="drop_other_zone", rate=Decimal("900"), province_id=1),
        RateSetting(rate_setting_id=3, name="Old", rate_type="advance_delivery", rate=Decimal("999"), is_active=False),
        RateSetting(rate_setting_id=4, name="Base", rate_type="base", rate=Decimal("1")),
    ]
    service = RateService(masterdata, default_surcharges=DEFAULT_SURCHARGES)

    table = service.surcharge_table()

    assert table["drop_same_zone"] == Decimal("300")
    assert table["drop_other_zone"] == Decimal("500")
    assert table["advance_delivery"] == Decimal("300")
    assert "base" not in table


def test_quote_for_client_uses_area_group_base_rate(masterdata):
    service = RateService(masterdata, default_surcharges=DEFAULT_SURCHARGES)

    q = service.quote_for_client(client_id=1, additional_rate_type=AdditionalRateType.DROP_SAME_ZONE)

    assert q.base_rate == Decimal("2750")
    assert q.total_rate == Decimal("3000")


def test_client_without_area_has_zero_base_rate(masterdata):
    service = RateService(masterdata, default_surcharges=DEFAULT_SURCHARGES)

    q = service.quote_for_client(client_id=4, additional_rate_type=AdditionalRateType.NONE)

    assert q.base_rate == Decimal("0")
    assert q.total_rate == Decimal("0")


def test_quote_for_unknown_client(masterdata):
    service = RateService(masterdata)

    with pytest.raises(NotFoundError):
        service.quote_for_client(client_id=99, additional_rate_type=AdditionalRateType.NONE)


def test_parse_rate_type():
    assert parse_rate_type(None) == AdditionalRateType.NONE
    assert parse_rate_type("  ") == AdditionalRateType.NONE
    assert parse_rate_type("same_client") == AdditionalRateType.SAME_CLIENT
    with pytest.raises(ValidationError):
        parse_rate_type("express")
