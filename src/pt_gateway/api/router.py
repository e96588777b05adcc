"""Auth API router: register, login, refresh.

Registration opens the paper account in the same transaction as the user row,
so a user never exists without starting cash.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pt_common.database import get_db_session
from src.pt_common.money import round_currency
from src.pt_common.response import ApiResponse, success_response
from src.pt_gateway.user.schemas import (
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    RegisterResponse,
    UserInfo,
)
from src.pt_gateway.user.service import UserService

router = APIRouter(prefix="/auth", tags=["auth"])

DbDep = Annotated[AsyncSession, Depends(get_db_session)]

_service = UserService()
_ACCESS_TTL_SECONDS = settings.JWT_EXPIRE_MINUTES * 60


def _envelope(data: dict, request: Request, message: str) -> ApiResponse:
    resp = success_response(data, request)
    resp.message = message
    return resp


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    summary="Create user and paper account",
)
async def register(request: Request, body: RegisterRequest, db: DbDep) -> ApiResponse:
    async with db.begin():
        user = await _service.register(body.username, body.email, body.password, db)

    data = RegisterResponse(
        user_id=str(user.id),
        username=user.username,
        email=user.email,
        starting_cash=round_currency(settings.STARTING_CASH),
        created_at=user.created_at.isoformat(),
    )
    return _envelope(data.model_dump(mode="json"), request, "User registered successfully")


@router.post("/login", summary="Exchange credentials for a token pair")
async def login(request: Request, body: LoginRequest, db: DbDep) -> ApiResponse:
    user, access_token, refresh_token = await _service.login(body.username, body.password, db)

    data = LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=_ACCESS_TTL_SECONDS,
        user=UserInfo(user_id=str(user.id), username=user.username, email=user.email),
    )
    return _envelope(data.model_dump(), request, "Login successful")


@router.post("/refresh", summary="Issue a new access token")
async def refresh_token(request: Request, body: RefreshRequest) -> ApiResponse:
    data = RefreshResponse(
        access_token=await _service.refresh(body.refresh_token),
        expires_in=_ACCESS_TTL_SECONDS,
    )
    return _envelope(data.model_dump(), request, "Token refreshed")
