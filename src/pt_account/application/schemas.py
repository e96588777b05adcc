"""Pydantic schemas for pt_account API.

Money fields are ``Decimal`` and serialise as strings ("8500.00") so no
precision is lost on the wire.
"""

from decimal import Decimal

from pydantic import BaseModel

from src.pt_account.domain.models import PaperAccount
from src.pt_common.money import money_to_display


class BalanceResponse(BaseModel):
    user_id: str
    account_name: str
    cash: Decimal
    cash_display: str
    starting_balance: Decimal
    starting_balance_display: str

    @classmethod
    def from_account(cls, account: PaperAccount) -> "BalanceResponse":
        return cls(
            user_id=account.user_id,
            account_name=account.account_name,
            cash=account.current_cash,
            cash_display=money_to_display(account.current_cash),
            starting_balance=account.starting_balance,
            starting_balance_display=money_to_display(account.starting_balance),
        )
