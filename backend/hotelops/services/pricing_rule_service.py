"""
Pricing Rule Service
Seasonal, promotional and last-minute discount rules per room type.

Rules are ranked by priority (then newest first). Only the highest ranked
rule that applies to a stay is used; discounts never take a price below zero.
"""
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional, Union
import logging

from hotelops.schemas.pricing_rule import (
    DiscountType, PricingRule, PricingRuleCreate, PricingRuleUpdate, RuleAdjustedPrice,
)
from hotelops.schemas.profile import Profile
from hotelops.services.cache import QueryCache
from hotelops.services.gateway import SupabaseGateway, eq, parse_row, parse_rows
from hotelops.services.pricing import count_nights, round_money

logger = logging.getLogger(__name__)

RULE_WITH_ROOM_TYPE = "*,room_type:room_types!room_type_id(id,name)"

RULES_TTL = 300.0


def rule_applies(rule: PricingRule, room_type_id: Optional[str], check_in: date, check_out: date) -> bool:
    """
    Whether ``rule`` covers a stay.

    The rule must be active and either open to every room type or set for
    this one. The stay must fall inside the rule's date window, and be at
    least ``min_nights`` long when the rule sets one.
    """
    if not rule.is_active:
        return False
    if rule.room_type_id is not None and rule.room_type_id != room_type_id:
        return False
    if rule.start_date and check_in < rule.start_date:
        return False
    if rule.end_date and check_out > rule.end_date:
        return False
    if rule.min_nights and count_nights(check_in, check_out) < rule.min_nights:
        return False
    return True


def _rank(rule: PricingRule):
    created = rule.created_at.timestamp() if rule.created_at else 0.0
    return (-rule.priority, -created)


def applicable_rules(
    rules: List[PricingRule], room_type_id: Optional[str], check_in: date, check_out: date,
) -> List[PricingRule]:
    """Rules covering the stay, highest priority first."""
    return sorted(
        (rule for rule in rules if rule_applies(rule, room_type_id, check_in, check_out)),
        key=_rank,
    )


def apply_pricing_rule(base_price: Union[Decimal, int, str], rule: Optional[PricingRule]) -> RuleAdjustedPrice:
    base = Decimal(str(base_price))
    if rule is None:
        return RuleAdjustedPrice(base_price=base, final_price=base)

    if rule.discount_type == DiscountType.PERCENTAGE:
        discount = round_money(base * rule.discount_value / Decimal("100"))
    else:
        discount = rule.discount_value
    return RuleAdjustedPrice(
        base_price=base,
        discount=discount,
        final_price=max(Decimal("0"), base - discount),
        applied_rule=rule,
    )


class PricingRuleService:

    def __init__(self, gateway: SupabaseGateway, cache: QueryCache):
        self.gateway = gateway
        self.cache = cache

    async def list_rules(self) -> List[PricingRule]:
        async def load():
            data = await self.gateway.select("pricing_rules", columns=RULE_WITH_ROOM_TYPE)
            return sorted(parse_rows(PricingRule, data), key=_rank)

        return await self.cache.get_or_load(("pricing-rules",), load, ttl=RULES_TTL)

    async def create_rule(self, data: PricingRuleCreate, actor: Profile) -> PricingRule:
        values = data.model_dump()
        values["created_by"] = actor.id
        row = await self.gateway.insert("pricing_rules", values)
        self.cache.invalidate_for("pricing_rule.create")
        rule = parse_row(PricingRule, row)
        logger.info("Pricing rule %s (%s) created by %s", rule.id, rule.name, actor.id)
        return rule

    async def update_rule(self, rule_id: str, data: PricingRuleUpdate) -> PricingRule:
        values = data.model_dump(exclude_unset=True)
        values["updated_at"] = datetime.now(timezone.utc)
        row = await self.gateway.update("pricing_rules", values, filters=[eq("id", rule_id)], single=True)
        self.cache.invalidate_for("pricing_rule.update")
        return parse_row(PricingRule, row)

    async def set_active(self, rule_id: str, is_active: bool) -> PricingRule:
        return await self.update_rule(rule_id, PricingRuleUpdate(is_active=is_active))

    async def delete_rule(self, rule_id: str) -> None:
        await self.gateway.delete("pricing_rules", filters=[eq("id", rule_id)])
        self.cache.invalidate_for("pricing_rule.delete")

    async def price_with_rules(
        self, base_price: Decimal, room_type_id: Optional[str], check_in: date, check_out: date,
    ) -> RuleAdjustedPrice:
        """Price after the highest priority rule covering the stay, if any."""
        rules = applicable_rules(await self.list_rules(), room_type_id, check_in, check_out)
        return apply_pricing_rule(base_price, rules[0] if rules else None)
