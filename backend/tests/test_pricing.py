"""
Reservation pricing
"""
from datetime import date, datetime
from decimal import Decimal

import pytest

from hotelops.services.pricing import calculate_reservation_total, count_nights


def test_five_night_stay():
    quote = calculate_reservation_total("2024-01-10", "2024-01-15", 150)
    assert quote.nights == 5
    assert quote.subtotal == Decimal("750.00")
    assert quote.tax == Decimal("120.00")
    assert quote.total == Decimal("870.00")


def test_fractional_price_rounds_to_cents():
    quote = calculate_reservation_total(date(2024, 3, 1), date(2024, 3, 4), Decimal("33.333"))
    assert quote.nights == 3
    assert quote.subtotal == Decimal("100.00")
    assert quote.tax == Decimal("16.00")
    assert quote.total == Decimal("116.00")


@pytest.mark.parametrize("check_in, check_out, price", [
    ("2024-01-10", None, 150),
    (None, "2024-01-15", 150),
    ("2024-01-10", "2024-01-15", None),
    ("2024-01-10", "2024-01-15", 0),
])
def test_missing_input_gives_zero(check_in, check_out, price):
    quote = calculate_reservation_total(check_in, check_out, price)
    assert (quote.nights, quote.subtotal, quote.tax, quote.total) == (0, 0, 0, 0)


def test_custom_tax_rate():
    quote = calculate_reservation_total("2024-01-10", "2024-01-12", 100, tax_rate=Decimal("0.10"))
    assert quote.tax == Decimal("20.00")
    assert quote.total == Decimal("220.00")


def test_nights_ignore_order_and_round_up():
    assert count_nights("2024-01-15", "2024-01-10") == 5
    assert count_nights(datetime(2024, 1, 10, 14), datetime(2024, 1, 11, 16)) == 2
    assert count_nights(date(2024, 1, 10), date(2024, 1, 10)) == 0
