"""pt_account REST API: requires JWT authentication."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pt_account.application.service import AccountApplicationService
from src.pt_common.database import get_db_session
from src.pt_common.response import ApiResponse, success_response
from src.pt_gateway.auth.dependencies import get_current_user
from src.pt_gateway.user.db_models import UserModel

router = APIRouter(prefix="/account", tags=["account"])

_service = AccountApplicationService()


@router.get("/balance")
async def get_balance(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_balance(db, str(current_user.id))
    return success_response(data.model_dump(mode="json"), request)
