"""
Pricing Rule Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, Any, List
from datetime import date, datetime
from decimal import Decimal
import enum


class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class PricingRuleRoomType(BaseModel):
    id: str
    name: str


class PricingRule(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    rule_type: str
    room_type_id: Optional[str] = None  # None applies to every room type
    priority: int = 0
    discount_type: DiscountType
    discount_value: Decimal
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    days_of_week: Optional[List[int]] = None
    min_nights: Optional[int] = None
    advance_booking_days: Optional[int] = None
    is_active: bool = True
    conditions: Optional[Any] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    room_type: Optional[PricingRuleRoomType] = None


class PricingRuleCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    rule_type: str = Field(..., min_length=1)
    room_type_id: Optional[str] = None
    priority: int = 0
    discount_type: DiscountType
    discount_value: Decimal = Field(..., ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    days_of_week: Optional[List[int]] = None
    min_nights: Optional[int] = Field(None, ge=1)
    advance_booking_days: Optional[int] = Field(None, ge=0)
    is_active: bool = True
    conditions: Optional[Any] = None


class PricingRuleUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    rule_type: Optional[str] = None
    room_type_id: Optional[str] = None
    priority: Optional[int] = None
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = Field(None, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    days_of_week: Optional[List[int]] = None
    min_nights: Optional[int] = Field(None, ge=1)
    advance_booking_days: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None
    conditions: Optional[Any] = None


class PricingRuleStatus(BaseModel):
    is_active: bool


class RuleAdjustedPrice(BaseModel):
    base_price: Decimal
    discount: Decimal = Decimal("0")
    final_price: Decimal
    applied_rule: Optional[PricingRule] = None
