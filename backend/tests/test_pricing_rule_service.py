"""
Pricing rules: which rule covers a stay and what it takes off
"""
import asyncio
from datetime import date
from decimal import Decimal

import pytest

from hotelops.schemas.pricing_rule import PricingRule, PricingRuleCreate
from hotelops.services.pricing_rule_service import (
    PricingRuleService, applicable_rules, apply_pricing_rule, rule_applies,
)

JUL_1 = date(2024, 7, 1)
JUL_4 = date(2024, 7, 4)


def _rule(**overrides):
    data = {
        "id": "rule-1",
        "name": "Summer",
        "rule_type": "seasonal",
        "discount_type": "percentage",
        "discount_value": 10,
        "start_date": "2024-06-01",
        "end_date": "2024-08-31",
    }
    data.update(overrides)
    return PricingRule(**data)


class TestRuleApplies:

    def test_open_rule_covers_every_room_type(self):
        assert rule_applies(_rule(), "rt-any", JUL_1, JUL_4)

    def test_room_type_must_match(self):
        assert not rule_applies(_rule(room_type_id="rt-suite"), "rt-deluxe", JUL_1, JUL_4)

    def test_inactive_rule_never_applies(self):
        assert not rule_applies(_rule(is_active=False), None, JUL_1, JUL_4)

    @pytest.mark.parametrize("check_in,check_out", [
        (date(2024, 5, 31), JUL_4),
        (date(2024, 8, 30), date(2024, 9, 2)),
    ])
    def test_stay_must_fit_the_window(self, check_in, check_out):
        assert not rule_applies(_rule(), None, check_in, check_out)

    def test_minimum_nights(self):
        rule = _rule(min_nights=4)
        assert not rule_applies(rule, None, JUL_1, JUL_4)
        assert rule_applies(rule, None, JUL_1, date(2024, 7, 5))


class TestApply:

    def test_highest_priority_rule_wins(self):
        rules = [_rule(id="low", priority=1), _rule(id="high", priority=5, discount_value=20)]

        best = applicable_rules(rules, None, JUL_1, JUL_4)[0]
        price = apply_pricing_rule(Decimal("200"), best)

        assert price.applied_rule.id == "high"
        assert price.discount == Decimal("40")
        assert price.final_price == Decimal("160")

    def test_fixed_discount_never_goes_below_zero(self):
        price = apply_pricing_rule(Decimal("30"), _rule(discount_type="fixed", discount_value=50))
        assert price.discount == Decimal("50")
        assert price.final_price == Decimal("0")

    def test_no_rule_keeps_the_base_price(self):
        price = apply_pricing_rule(Decimal("120"), None)
        assert price.final_price == Decimal("120")
        assert price.applied_rule is None


class TestService:

    def test_rules_are_cached_until_changed(self, gateway, cache, admin):
        service = PricingRuleService(gateway, cache)
        gateway.seed("pricing_rules", _rule().model_dump())

        asyncio.run(service.list_rules())
        asyncio.run(service.list_rules())
        assert len(gateway.calls_to("select")) == 1

        created = asyncio.run(service.create_rule(PricingRuleCreate(
            name="Weekend", rule_type="day_of_week", discount_type="fixed", discount_value=Decimal("15"),
            priority=3,
        ), admin))
        assert created.created_by == admin.id

        assert [r.name for r in asyncio.run(service.list_rules())] == ["Weekend", "Summer"]

    def test_price_with_rules(self, gateway, cache):
        service = PricingRuleService(gateway, cache)
        gateway.seed("pricing_rules", _rule(room_type_id="rt-deluxe").model_dump())

        price = asyncio.run(service.price_with_rules(Decimal("150"), "rt-deluxe", JUL_1, JUL_4))
        assert price.final_price == Decimal("135")

        price = asyncio.run(service.price_with_rules(Decimal("150"), "rt-suite", JUL_1, JUL_4))
        assert price.final_price == Decimal("150")

    def test_toggle(self, gateway, cache):
        service = PricingRuleService(gateway, cache)
        gateway.seed("pricing_rules", _rule().model_dump())

        rule = asyncio.run(service.set_active("rule-1", False))

        assert rule.is_active is False
