"""User domain service: register, login, refresh.

All DB operations use the injected AsyncSession. Transactions are managed
by the caller (router layer) via `async with db.begin()`.
"""

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pt_account.domain.repository import PortfolioRepositoryProtocol
from src.pt_account.infrastructure.persistence import PortfolioRepository
from src.pt_common.errors import (
    AccountDisabledError,
    EmailExistsError,
    InvalidCredentialsError,
    UsernameExistsError,
)
from src.pt_common.money import round_currency
from src.pt_gateway.auth.jwt_handler import (
    create_access_token,
    create_refresh_token,
    decode_token,
)
from src.pt_gateway.auth.password import hash_password, verify_password
from src.pt_gateway.user.db_models import UserModel


class UserService:
    """Stateless service: instantiate once, reuse across requests."""

    def __init__(
        self,
        portfolio_repo: PortfolioRepositoryProtocol | None = None,
        starting_cash: Decimal | None = None,
    ) -> None:
        self._portfolio_repo: PortfolioRepositoryProtocol = (
            portfolio_repo or PortfolioRepository()
        )
        self._starting_cash = round_currency(
            settings.STARTING_CASH if starting_cash is None else starting_cash
        )

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        db: AsyncSession,
    ) -> UserModel:
        """Register a new user and open their paper account with the starting cash.

        Both rows are written in the caller's transaction
        (`async with db.begin()`).
        """
        result = await db.execute(
            select(UserModel).where(UserModel.username == username)
        )
        if result.scalar_one_or_none() is not None:
            raise UsernameExistsError()

        result = await db.execute(
            select(UserModel).where(UserModel.email == email)
        )
        if result.scalar_one_or_none() is not None:
            raise EmailExistsError()

        user = UserModel(
            username=username,
            email=email,
            password_hash=hash_password(password),
            is_active=True,
        )
        db.add(user)
        await db.flush()  # Get user.id without committing
        await db.refresh(user)  # Load server defaults (created_at) inside the session

        await self._portfolio_repo.create_account(db, str(user.id), self._starting_cash)
        return user

    async def login(
        self,
        username: str,
        password: str,
        db: AsyncSession,
    ) -> tuple[UserModel, str, str]:
        """Authenticate and return (user, access_token, refresh_token).

        Unknown user and wrong password raise the same InvalidCredentialsError.
        """
        result = await db.execute(
            select(UserModel).where(UserModel.username == username)
        )
        user = result.scalar_one_or_none()

        if user is None or not verify_password(password, user.password_hash):
            raise InvalidCredentialsError()

        if not user.is_active:
            raise AccountDisabledError()

        return (
            user,
            create_access_token(str(user.id)),
            create_refresh_token(str(user.id)),
        )

    async def refresh(self, refresh_token: str) -> str:
        """Validate a refresh token and issue a new access token (no rotation)."""
        payload = decode_token(refresh_token, expected_type="refresh")
        return create_access_token(str(payload["sub"]))
