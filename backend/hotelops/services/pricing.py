"""
Reservation Pricing
Quote a stay from its dates and the room type's nightly price.

The quote is display-time only. It neither holds the room nor checks for
overlapping bookings; reservation creation runs the availability check
separately.
"""
import math
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

from hotelops.config import settings
from hotelops.schemas.pricing import PriceBreakdown

DateLike = Union[date, datetime, str]
CENT = Decimal("0.01")


def _to_datetime(value: DateLike) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return datetime.fromisoformat(value)


def round_money(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def count_nights(check_in: DateLike, check_out: DateLike) -> int:
    """Whole nights between two dates, rounded up, regardless of order."""
    delta = _to_datetime(check_out) - _to_datetime(check_in)
    return math.ceil(abs(delta.total_seconds()) / 86400)


def calculate_reservation_total(
    check_in: Optional[DateLike],
    check_out: Optional[DateLike],
    base_price: Optional[Union[Decimal, float, int, str]],
    tax_rate: Optional[Decimal] = None,
) -> PriceBreakdown:
    """
    Price a stay.

    Returns a zero breakdown when either date or the price is missing.
    Tax and total are derived from the unrounded subtotal; each figure is
    rounded half-up to the cent.
    """
    if not check_in or not check_out or not base_price:
        return PriceBreakdown.zero()

    rate = settings.TAX_RATE if tax_rate is None else Decimal(str(tax_rate))
    nights = count_nights(check_in, check_out)

    subtotal = nights * Decimal(str(base_price))
    tax = subtotal * rate
    total = subtotal + tax

    return PriceBreakdown(
        nights=nights,
        subtotal=round_money(subtotal),
        tax=round_money(tax),
        total=round_money(total),
    )
