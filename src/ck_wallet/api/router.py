"""ck_wallet REST API: balance and ledger view, JWT required."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.ck_common.database import get_db_session
from src.ck_common.response import ApiResponse, success_response
from src.ck_identity.auth.context import CallerContext
from src.ck_identity.auth.dependencies import get_current_caller
from src.ck_wallet.application.service import WalletApplicationService

router = APIRouter(prefix="/wallet", tags=["wallet"])

_service = WalletApplicationService()


@router.get("/balance")
async def get_balance(
    caller: Annotated[CallerContext, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_balance(db, caller.user_id)
    return success_response(data.model_dump(), getattr(request.state, "request_id", None))


@router.get("/ledger")
async def list_ledger(
    caller: Annotated[CallerContext, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    entry_type: str | None = Query(None, description="Filter by WalletEntryType"),
) -> ApiResponse:
    data = await _service.list_ledger(db, caller.user_id, cursor, limit, entry_type)
    return success_response(data.model_dump(), getattr(request.state, "request_id", None))
