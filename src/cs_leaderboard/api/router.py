"""cs_leaderboard REST API — public account ranking."""

from datetime import datetime
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.cs_common.database import get_db_session
from src.cs_common.response import ApiResponse, success_response
from src.cs_leaderboard.application.service import LeaderboardApplicationService

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])

_service = LeaderboardApplicationService()


@router.get("")
async def get_leaderboard(
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    order_by: Literal["account_value", "return"] = Query(
        "account_value", description="Rank by account value or by return over the period"
    ),
    limit: int = Query(50, ge=1, le=200, description="Entries to return"),
    since: datetime | None = Query(None, description="Period start, defaults to Monday 00:00 UTC"),
) -> ApiResponse:
    data = await _service.get_leaderboard(db, order_by, limit, since)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
