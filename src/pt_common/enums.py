"""Global enums: must match DB CHECK constraints exactly."""

from enum import Enum


class TradeSide(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class GuardStatus(str, Enum):
    """Lifecycle of an in-memory idempotency entry."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
