"""cs_trading REST API — place trades and read order history."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.cs_common.database import get_db_session
from src.cs_common.response import ApiResponse, success_response
from src.cs_gateway.auth.dependencies import CurrentUser, get_current_user
from src.cs_trading.application.schemas import PlaceTradeRequest
from src.cs_trading.application.service import TradingApplicationService

router = APIRouter(tags=["trading"])

_service = TradingApplicationService()


@router.post("/trades")
async def place_trade(
    body: PlaceTradeRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.place_trade(db, current_user.user_id, body)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/orders")
async def list_orders(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    club_id: int | None = Query(None, description="Only orders for this club"),
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
) -> ApiResponse:
    data = await _service.list_orders(db, current_user.user_id, club_id, cursor, limit)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
