"""Decimal arithmetic utilities for paper-trading money.

All cash balances, trade totals and average costs are ``Decimal``. Floats coming
from the market-data provider are converted through ``str()`` so that a quoted
``150.1`` stays ``150.1`` rather than its binary approximation.

Rounding is half away from zero (``ROUND_HALF_UP`` in ``decimal`` terms):
  - cash / totals: 2 places
  - average cost per share: 4 places
"""

import math
from decimal import ROUND_HALF_UP, Decimal

CURRENCY_QUANT = Decimal("0.01")
AVERAGE_COST_QUANT = Decimal("0.0001")

MAX_PRICE = Decimal("1000000")  # sanity ceiling against bad upstream quotes
MAX_SHARES_PER_TRADE = 10_000
STARTING_CASH = Decimal("10000.00")

Number = Decimal | int | float


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_currency(value: Number) -> Decimal:
    """Round to 2 decimal places: 1500.005 -> 1500.01, -0.005 -> -0.01."""
    return to_decimal(value).quantize(CURRENCY_QUANT, rounding=ROUND_HALF_UP)


def round_average_cost(value: Number) -> Decimal:
    """Round to 4 decimal places for per-share average cost."""
    return to_decimal(value).quantize(AVERAGE_COST_QUANT, rounding=ROUND_HALF_UP)


def calculate_total_cost(price: Number, quantity: int) -> Decimal:
    return round_currency(to_decimal(price) * quantity)


def calculate_new_average_cost(
    existing_quantity: int,
    existing_average_cost: Number,
    new_quantity: int,
    new_price: Number,
) -> Decimal:
    """Weighted average cost after adding ``new_quantity`` shares at ``new_price``.

    avg = (eq * ea + nq * np) / (eq + nq), rounded to 4 places.
    """
    total_shares = existing_quantity + new_quantity
    if total_shares <= 0:
        raise ValueError(f"Combined quantity must be positive, got {total_shares}")
    total_cost = (
        existing_quantity * to_decimal(existing_average_cost)
        + new_quantity * to_decimal(new_price)
    )
    return round_average_cost(total_cost / total_shares)


def calculate_realized_gain(
    average_cost: Number, sell_price: Number, quantity: int
) -> Decimal:
    """Proceeds minus cost basis for the sold shares, rounded to cents."""
    proceeds = to_decimal(sell_price) * quantity
    cost_basis = to_decimal(average_cost) * quantity
    return round_currency(proceeds - cost_basis)


def is_valid_price(price: object) -> bool:
    """A price is finite, > 0 and at most MAX_PRICE."""
    if price is None or isinstance(price, bool):
        return False
    if isinstance(price, float):
        if not math.isfinite(price):
            return False
    elif isinstance(price, Decimal):
        if not price.is_finite():
            return False
    elif not isinstance(price, int):
        return False
    return Decimal(0) < to_decimal(price) <= MAX_PRICE  # type: ignore[arg-type]


def is_valid_quantity(quantity: object) -> bool:
    """A quantity is a whole number of shares in [1, MAX_SHARES_PER_TRADE]."""
    if quantity is None or isinstance(quantity, bool) or not isinstance(quantity, int):
        return False
    return 1 <= quantity <= MAX_SHARES_PER_TRADE


def money_to_display(value: Number) -> str:
    """Format money for display: 1500 -> '$1,500.00', -12 -> '-$12.00'."""
    amount = round_currency(value)
    if amount < 0:
        return f"-${-amount:,.2f}"
    return f"${amount:,.2f}"
