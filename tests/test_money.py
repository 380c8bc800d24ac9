from decimal import Decimal

import pytest

from storeapp.schemas.common import PaymentStatus
from storeapp.utils.money import to_money, money_sum, line_total, price_with_margin, percent, payment_status


def test_to_money_rounds_half_up():
    assert to_money("2.345") == Decimal("2.35")
    assert to_money(1) == Decimal("1.00")
    assert to_money(None) == Decimal("0.00")


def test_money_sum_and_line_total():
    assert money_sum(["0.10", "0.20"]) == Decimal("0.30")
    assert money_sum([]) == Decimal("0.00")
    assert line_total(3, "19.99") == Decimal("59.97")


def test_price_with_margin():
    assert price_with_margin(100, 20) == Decimal("120.00")
    assert price_with_margin("33.33", "12.5") == Decimal("37.50")


def test_percent_of_zero_is_zero():
    assert percent(5, 0) == Decimal("0.00")
    assert percent(1, 3) == Decimal("33.33")


@pytest.mark.parametrize(
    "total, paid, expected",
    [
        (100, 0, PaymentStatus.UNPAID),
        (100, "0.01", PaymentStatus.PARTIAL),
        (100, 100, PaymentStatus.PAID),
        (0, 0, PaymentStatus.PAID),
    ],
)
def test_payment_status(total, paid, expected):
    assert payment_status(total, paid) == expected
