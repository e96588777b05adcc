from typing import Annotated

from fastapi import APIRouter, Depends, Path, Request

from src.pt_common.response import ApiResponse, success_response
from src.pt_gateway.auth.dependencies import get_current_user
from src.pt_gateway.user.db_models import UserModel
from src.pt_market.application import service as svc
from src.pt_market.domain.ports import QuoteProviderProtocol

router = APIRouter(prefix="/market", tags=["market"])


@router.get("/quote/{symbol}")
async def get_quote(
    request: Request,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    provider: Annotated[QuoteProviderProtocol, Depends(svc.get_quote_provider)],
    symbol: str = Path(..., min_length=1, max_length=16),
) -> ApiResponse:
    data = await svc.get_quote(symbol, provider)
    return success_response(data.model_dump(mode="json"), request)
