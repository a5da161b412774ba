"""
Money arithmetic for order lines and order totals.

Everything here works on ``Decimal`` and never touches the database, so the
same functions back the ORM mixins, the request schemas and the tests.
Totals are kept to 2 decimal places, unit costs/prices to 4, rounding half up.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, NamedTuple, Optional, Union

from utils.exceptions import ValidationFailed

Number = Union[Decimal, int, float, str, None]

MONEY = Decimal("0.01")
UNIT_COST = Decimal("0.0001")
RATE = Decimal("0.0001")
ZERO = Decimal("0.00")
HUNDRED = Decimal(100)


def to_decimal(value: Number) -> Decimal:
    """Coerce user/database input to Decimal; ``None`` and ``""`` become zero."""
    if value is None or value == "":
        return Decimal(0)
    if isinstance(value, Decimal):
        return value
    # str() first so floats keep their shortest repr instead of binary noise
    return Decimal(str(value))


def quantize_money(value: Number) -> Decimal:
    return to_decimal(value).quantize(MONEY, rounding=ROUND_HALF_UP)


def quantize_unit_cost(value: Number) -> Decimal:
    return to_decimal(value).quantize(UNIT_COST, rounding=ROUND_HALF_UP)


class LineTotals(NamedTuple):
    line_total: Decimal
    discount_amount: Decimal
    final_line_total: Decimal
    quantity_pending: int


class OrderTotals(NamedTuple):
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal


def calculate_line(
    quantity_ordered: int,
    unit_cost: Number,
    discount_percentage: Number = None,
    quantity_progressed: int = 0,
) -> LineTotals:
    """Derive a line's money fields from its base fields.

    ``final_line_total`` is the exact ``quantity * unit_cost * (1 - pct/100)``
    rounded once, and ``discount_amount`` is taken as the difference so the
    three stored amounts always reconcile to the cent.

    ``quantity_progressed`` is whatever counts against the ordered quantity
    (received for purchases, fulfilled for sales).
    """
    quantity = int(quantity_ordered or 0)
    cost = quantize_unit_cost(unit_cost)
    percentage = to_decimal(discount_percentage)

    gross = quantity * cost
    line_total = quantize_money(gross)
    if percentage > 0:
        final_line_total = quantize_money(gross * (1 - percentage / HUNDRED))
        discount_amount = line_total - final_line_total
    else:
        final_line_total = line_total
        discount_amount = ZERO

    return LineTotals(
        line_total=line_total,
        discount_amount=discount_amount,
        final_line_total=final_line_total,
        quantity_pending=max(quantity - int(quantity_progressed or 0), 0),
    )


def calculate_order_totals(
    final_line_totals: Iterable[Number],
    tax_rate: Number = None,
    shipping_cost: Number = None,
    discount_amount: Number = None,
) -> OrderTotals:
    """Aggregate line totals into order totals.

    ``tax_rate`` is the stored fraction (0.22 for 22%).
    """
    subtotal = quantize_money(sum((to_decimal(v) for v in final_line_totals), Decimal(0)))
    tax_amount = quantize_money(subtotal * to_decimal(tax_rate))
    total_amount = subtotal + tax_amount + quantize_money(shipping_cost) - quantize_money(discount_amount)
    return OrderTotals(subtotal=subtotal, tax_amount=tax_amount, total_amount=quantize_money(total_amount))


def normalize_tax_rate(percentage: Number) -> Optional[Decimal]:
    """Turn a percentage from user input ("22") into the stored fraction (0.2200).

    Out-of-range input is rejected rather than clamped.
    """
    if percentage is None or percentage == "":
        return None
    try:
        value = to_decimal(percentage)
    except ArithmeticError:
        raise ValidationFailed({"tax_rate": ["Tax rate must be a number."]})
    if not value.is_finite() or value < 0 or value > HUNDRED:
        raise ValidationFailed({"tax_rate": ["Tax rate must be between 0% and 100%."]})
    return (value / HUNDRED).quantize(RATE, rounding=ROUND_HALF_UP)


def tax_rate_percentage(fraction: Number) -> Optional[Decimal]:
    if fraction is None:
        return None
    return (to_decimal(fraction) * HUNDRED).quantize(MONEY, rounding=ROUND_HALF_UP)


def progress_percentage(done: int, ordered: int) -> float:
    if not ordered:
        return 0.0
    return round(done / ordered * 100, 2)
