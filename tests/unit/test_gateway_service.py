"""Unit tests for user service (mocked DB)."""

import uuid
from decimal import Decimal
from unittest.mock import ANY, AsyncMock, MagicMock, patch

import pytest

from src.pt_common.errors import (
    AccountDisabledError,
    EmailExistsError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    UsernameExistsError,
)
from src.pt_gateway.user.db_models import UserModel
from src.pt_gateway.user.service import UserService


def _make_user(is_active: bool = True) -> UserModel:
    user = UserModel()
    user.id = uuid.uuid4()
    user.username = "alice"
    user.email = "alice@example.com"
    user.password_hash = "$2b$12$fakehash"
    user.is_active = is_active
    return user


@pytest.fixture
def mock_db() -> AsyncMock:
    db = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def portfolio_repo_mock() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def service(portfolio_repo_mock: AsyncMock) -> UserService:
    return UserService(portfolio_repo=portfolio_repo_mock, starting_cash=Decimal("10000"))


class TestRegister:
    async def test_duplicate_username_raises_error(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        mock_result = MagicMock()
        mock_result.scalar_one_or_none.return_value = _make_user()
        mock_db.execute = AsyncMock(return_value=mock_result)

        with pytest.raises(UsernameExistsError):
            await service.register("alice", "new@email.com", "Pass1word", mock_db)

    async def test_duplicate_email_raises_error(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        mock_none = MagicMock()
        mock_none.scalar_one_or_none.return_value = None
        mock_found = MagicMock()
        mock_found.scalar_one_or_none.return_value = _make_user()
        mock_db.execute = AsyncMock(side_effect=[mock_none, mock_found])

        with pytest.raises(EmailExistsError):
            await service.register("newuser", "alice@example.com", "Pass1word", mock_db)

    async def test_success_opens_paper_account(
        self,
        service: UserService,
        mock_db: AsyncMock,
        portfolio_repo_mock: AsyncMock,
    ) -> None:
        mock_none = MagicMock()
        mock_none.scalar_one_or_none.return_value = None
        mock_db.execute = AsyncMock(return_value=mock_none)

        with patch("src.pt_gateway.user.service.hash_password", return_value="hashed"):
            user = await service.register("bob", "bob@example.com", "Pass1word", mock_db)

        assert user.username == "bob"
        assert user.password_hash == "hashed"
        mock_db.add.assert_called_once_with(user)
        mock_db.flush.assert_awaited_once()
        portfolio_repo_mock.create_account.assert_awaited_once_with(
            mock_db, ANY, Decimal("10000.00")
        )
        mock_db.commit.assert_not_awaited()


class TestLogin:
    async def test_wrong_username_raises_credentials_error(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        mock_result = MagicMock()
        mock_result.scalar_one_or_none.return_value = None
        mock_db.execute = AsyncMock(return_value=mock_result)

        with pytest.raises(InvalidCredentialsError):
            await service.login("nobody", "Pass1word", mock_db)

    async def test_wrong_password_raises_credentials_error(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        user = _make_user()
        mock_result = MagicMock()
        mock_result.scalar_one_or_none.return_value = user
        mock_db.execute = AsyncMock(return_value=mock_result)

        with (
            patch("src.pt_gateway.user.service.verify_password", return_value=False),
            pytest.raises(InvalidCredentialsError),
        ):
            await service.login("alice", "WrongPass1", mock_db)

    async def test_disabled_account_raises_error(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        user = _make_user(is_active=False)
        mock_result = MagicMock()
        mock_result.scalar_one_or_none.return_value = user
        mock_db.execute = AsyncMock(return_value=mock_result)

        with (
            patch("src.pt_gateway.user.service.verify_password", return_value=True),
            pytest.raises(AccountDisabledError),
        ):
            await service.login("alice", "Pass1word", mock_db)

    async def test_success_returns_user_and_token_pair(
        self, service: UserService, mock_db: AsyncMock
    ) -> None:
        user = _make_user()
        mock_result = MagicMock()
        mock_result.scalar_one_or_none.return_value = user
        mock_db.execute = AsyncMock(return_value=mock_result)

        with patch("src.pt_gateway.user.service.verify_password", return_value=True):
            returned_user, access, refresh = await service.login("alice", "Pass1word", mock_db)

        assert returned_user is user
        assert len(access) > 20
        assert len(refresh) > 20
        assert access != refresh


class TestRefresh:
    async def test_invalid_refresh_token_raises_error(self, service: UserService) -> None:
        with pytest.raises(InvalidRefreshTokenError):
            await service.refresh("not.a.real.token")

    async def test_access_token_used_as_refresh_raises_error(self, service: UserService) -> None:
        from src.pt_gateway.auth.jwt_handler import create_access_token

        access = create_access_token("user-123")
        with pytest.raises(InvalidRefreshTokenError):
            await service.refresh(access)

    async def test_valid_refresh_issues_access_token(self, service: UserService) -> None:
        from src.pt_gateway.auth.jwt_handler import create_refresh_token, decode_token

        new_access = await service.refresh(create_refresh_token("user-123"))
        assert decode_token(new_access, expected_type="access")["sub"] == "user-123"
