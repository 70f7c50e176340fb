"""Fixtures REST API — public reads, admin-only lifecycle writes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.cs_common.database import get_db_session
from src.cs_common.response import ApiResponse, success_response
from src.cs_gateway.auth.dependencies import CurrentUser, require_admin
from src.cs_settlement.application.schemas import (
    ApplyResultRequest,
    RecordResultRequest,
    ScheduleFixtureRequest,
)
from src.cs_settlement.application.service import FixtureApplicationService

router = APIRouter(prefix="/fixtures", tags=["fixtures"])

_service = FixtureApplicationService()


@router.get("")
async def list_fixtures(
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    club_id: int | None = Query(None, description="Fixtures involving this club"),
    status: str | None = Query(None, description="PENDING or APPLIED"),
) -> ApiResponse:
    data = await _service.list_fixtures(db, club_id, status)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/{fixture_id}")
async def get_fixture(
    fixture_id: int,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_fixture(db, fixture_id)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("")
async def schedule_fixture(
    body: ScheduleFixtureRequest,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.schedule_fixture(
        db, body.home_club_id, body.away_club_id, body.kickoff_at, body.buy_close_at
    )
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/{fixture_id}/result")
async def record_result(
    fixture_id: int,
    body: RecordResultRequest,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.record_fixture_result(
        db, fixture_id, body.home_score, body.away_score, apply=body.apply
    )
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/{fixture_id}/apply")
async def apply_result(
    fixture_id: int,
    body: ApplyResultRequest,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.apply_fixture_result(db, fixture_id, strict=body.strict)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
