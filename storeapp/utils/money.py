"""
Money arithmetic.
Amounts are Decimal with two places, rounded half-up.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Union

from storeapp.schemas.common import PaymentStatus

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")

Number = Union[Decimal, int, float, str]


def to_money(value: Number) -> Decimal:
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def money_sum(values: Iterable[Number]) -> Decimal:
    return to_money(sum((to_money(v) for v in values), ZERO))


def line_total(quantity: int, unit_price: Number) -> Decimal:
    return to_money(Decimal(quantity) * to_money(unit_price))


def price_with_margin(cost: Number, margin_percent: Number) -> Decimal:
    """Sale price from a cost and a percentage margin on cost."""
    margin = Decimal(str(margin_percent))
    return to_money(to_money(cost) * (Decimal("1") + margin / Decimal("100")))


def percent(part: Number, whole: Number) -> Decimal:
    whole = Decimal(str(whole))
    if whole == 0:
        return ZERO
    return to_money(Decimal(str(part)) / whole * Decimal("100"))


def payment_status(total: Number, paid: Number) -> PaymentStatus:
    """PAID once paid covers total, PARTIAL for anything above zero, else UNPAID."""
    total = to_money(total)
    paid = to_money(paid)
    if paid >= total:
        return PaymentStatus.PAID
    if paid > ZERO:
        return PaymentStatus.PARTIAL
    return PaymentStatus.UNPAID


def positive_money(value: Optional[Number]) -> Optional[Decimal]:
    """Round to two places; anything that rounds to zero or below is rejected."""
    if value is None:
        return None
    amount = to_money(value)
    if amount <= ZERO:
        raise ValueError("Amount must be at least 0.01")
    return amount
