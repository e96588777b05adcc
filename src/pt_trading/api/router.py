"""pt_trading REST API: buy, sell, portfolio, history, limits. All require JWT."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pt_common.database import get_db_session
from src.pt_common.response import ApiResponse, success_response
from src.pt_gateway.auth.dependencies import get_current_user
from src.pt_gateway.user.db_models import UserModel
from src.pt_trading.application.schemas import TradeRequest
from src.pt_trading.application.service import (
    TradingApplicationService,
    get_trading_service,
)

router = APIRouter(prefix="/trading", tags=["trading"])

ServiceDep = Annotated[TradingApplicationService, Depends(get_trading_service)]
UserDep = Annotated[UserModel, Depends(get_current_user)]
DbDep = Annotated[AsyncSession, Depends(get_db_session)]


@router.post("/buy")
async def buy(
    body: TradeRequest,
    current_user: UserDep,
    db: DbDep,
    service: ServiceDep,
    request: Request,
) -> ApiResponse:
    result = await service.buy(db, str(current_user.id), body)
    resp = success_response(result.model_dump(mode="json"), request)
    resp.message = result.message
    return resp


@router.post("/sell")
async def sell(
    body: TradeRequest,
    current_user: UserDep,
    db: DbDep,
    service: ServiceDep,
    request: Request,
) -> ApiResponse:
    result = await service.sell(db, str(current_user.id), body)
    resp = success_response(result.model_dump(mode="json"), request)
    resp.message = result.message
    return resp


@router.get("/portfolio")
async def get_portfolio(
    current_user: UserDep,
    db: DbDep,
    service: ServiceDep,
    request: Request,
) -> ApiResponse:
    data = await service.get_portfolio(db, str(current_user.id))
    return success_response(data.model_dump(mode="json"), request)


@router.get("/history")
async def list_history(
    current_user: UserDep,
    db: DbDep,
    service: ServiceDep,
    request: Request,
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    offset: int = Query(0, ge=0, description="Items to skip"),
    symbol: str | None = Query(None, max_length=16, description="Filter by symbol"),
) -> ApiResponse:
    data = await service.list_history(db, str(current_user.id), limit, offset, symbol)
    return success_response(data.model_dump(mode="json"), request)


@router.get("/limits")
async def get_limits(
    current_user: UserDep,
    service: ServiceDep,
    request: Request,
) -> ApiResponse:
    data = service.get_limits(str(current_user.id))
    return success_response(data.model_dump(mode="json"), request)
