"""
Pricing API Endpoints
"""
from datetime import date
from decimal import Decimal
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status

from hotelops.dependencies import get_pricing_rule_service, get_room_service, require_permission
from hotelops.schemas.pricing import PriceBreakdown
from hotelops.schemas.pricing_rule import (
    PricingRule,
    PricingRuleCreate,
    PricingRuleStatus,
    PricingRuleUpdate,
    RuleAdjustedPrice,
)
from hotelops.schemas.profile import Profile
from hotelops.services.pricing import calculate_reservation_total
from hotelops.services.pricing_rule_service import PricingRuleService
from hotelops.services.room_service import RoomService

router = APIRouter()


@router.get("/quote", response_model=PriceBreakdown)
async def get_quote(
    check_in_date: Optional[date] = Query(None),
    check_out_date: Optional[date] = Query(None),
    base_price: Optional[Decimal] = Query(None, ge=0),
    room_id: Optional[str] = Query(None, description="Price from this room's type when base_price is absent"),
    actor: Profile = Depends(require_permission("reservations.view")),
    rooms: RoomService = Depends(get_room_service),
):
    """
    Quote a stay: nights, subtotal, tax and total

    All zeros when a date or the nightly price is missing. The quote does not
    check availability.
    """
    if base_price is None and room_id:
        room = await rooms.get_room(room_id)
        base_price = room.room_types.base_price if room.room_types else None
    return calculate_reservation_total(check_in_date, check_out_date, base_price)


# ============== Pricing rules ==============

@router.get("/rules", response_model=List[PricingRule])
async def list_pricing_rules(
    actor: Profile = Depends(require_permission("billing.view", "system.settings")),
    service: PricingRuleService = Depends(get_pricing_rule_service),
):
    """Pricing rules, highest priority first"""
    return await service.list_rules()


@router.post("/rules", response_model=PricingRule, status_code=status.HTTP_201_CREATED)
async def create_pricing_rule(
    rule: PricingRuleCreate,
    actor: Profile = Depends(require_permission("system.settings")),
    service: PricingRuleService = Depends(get_pricing_rule_service),
):
    return await service.create_rule(rule, actor)


@router.patch("/rules/{rule_id}", response_model=PricingRule)
async def update_pricing_rule(
    rule_id: str,
    data: PricingRuleUpdate,
    actor: Profile = Depends(require_permission("system.settings")),
    service: PricingRuleService = Depends(get_pricing_rule_service),
):
    return await service.update_rule(rule_id, data)


@router.put("/rules/{rule_id}/status", response_model=PricingRule)
async def set_pricing_rule_status(
    rule_id: str,
    data: PricingRuleStatus,
    actor: Profile = Depends(require_permission("system.settings")),
    service: PricingRuleService = Depends(get_pricing_rule_service),
):
    return await service.set_active(rule_id, data.is_active)


@router.delete("/rules/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_pricing_rule(
    rule_id: str,
    actor: Profile = Depends(require_permission("system.settings")),
    service: PricingRuleService = Depends(get_pricing_rule_service),
):
    await service.delete_rule(rule_id)


@router.get("/rules/apply", response_model=RuleAdjustedPrice)
async def apply_pricing_rules(
    base_price: Decimal = Query(..., ge=0),
    check_in_date: date = Query(...),
    check_out_date: date = Query(...),
    room_type_id: Optional[str] = Query(None),
    actor: Profile = Depends(require_permission("reservations.view")),
    service: PricingRuleService = Depends(get_pricing_rule_service),
):
    """
    Price after the highest priority active rule covering the stay

    Unchanged when no rule applies.
    """
    return await service.price_with_rules(base_price, room_type_id, check_in_date, check_out_date)
