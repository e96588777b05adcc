from dataclasses import dataclass
from decimal import Decimal

from src.pt_common.money import Number, to_decimal

MAX_TRADE_VALUE = Decimal("2000")  # per single trade, regardless of account size


@dataclass(frozen=True)
class TradeValueCheck:
    allowed: bool
    max_allowed: Decimal


def check_trade_value(
    total_value: Number, max_value: Decimal = MAX_TRADE_VALUE
) -> TradeValueCheck:
    """Allowed iff total_value <= max_value (inclusive ceiling)."""
    return TradeValueCheck(
        allowed=to_decimal(total_value) <= max_value,
        max_allowed=max_value,
    )
