"""AccountApplicationService: read-only account queries.

Cash only changes through trade execution (pt_trading), which owns the
write transaction.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.pt_account.application.schemas import BalanceResponse
from src.pt_account.domain.repository import PortfolioRepositoryProtocol
from src.pt_account.infrastructure.persistence import PortfolioRepository
from src.pt_common.errors import AccountNotFoundError


class AccountApplicationService:
    def __init__(self, repo: PortfolioRepositoryProtocol | None = None) -> None:
        self._repo: PortfolioRepositoryProtocol = repo or PortfolioRepository()

    async def get_balance(self, db: AsyncSession, user_id: str) -> BalanceResponse:
        account = await self._repo.get_account(db, user_id)
        if account is None:
            raise AccountNotFoundError(user_id)
        return BalanceResponse.from_account(account)
