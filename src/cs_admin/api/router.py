"""Admin REST API — club listing, wallet credits and invariant checks."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.cs_account.application.schemas import CreditWalletRequest
from src.cs_account.application.service import AccountApplicationService
from src.cs_admin.application.service import AdminService
from src.cs_club.application.schemas import CreateClubRequest
from src.cs_club.application.service import ClubApplicationService
from src.cs_common.database import get_db_session
from src.cs_common.response import ApiResponse, success_response
from src.cs_gateway.auth.dependencies import CurrentUser, require_admin

router = APIRouter(prefix="/admin", tags=["admin"])

_service = AdminService()
_clubs = ClubApplicationService()
_accounts = AccountApplicationService()


@router.post("/clubs")
async def create_club(
    body: CreateClubRequest,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _clubs.create_club(
        db, body.name, body.launch_market_cap_cents, body.total_shares
    )
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/wallets/credit")
async def credit_wallet(
    body: CreditWalletRequest,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _accounts.credit_wallet(
        db, body.user_id, body.amount_cents, body.kind, body.reference
    )
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/wallets/transactions/{transaction_id}/reverse")
async def reverse_credit(
    transaction_id: int,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _accounts.reverse_credit(db, transaction_id)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/invariants")
async def check_invariants(
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _service.check_invariants(db)
    return success_response(result)
