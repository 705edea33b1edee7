"""
Pricing Schemas
"""
from pydantic import BaseModel
from decimal import Decimal


class PriceBreakdown(BaseModel):
    nights: int = 0
    subtotal: Decimal = Decimal("0")
    tax: Decimal = Decimal("0")
    total: Decimal = Decimal("0")

    @classmethod
    def zero(cls) -> "PriceBreakdown":
        return cls(nights=0, subtotal=Decimal("0"), tax=Decimal("0"), total=Decimal("0"))
