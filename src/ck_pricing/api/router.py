"""ck_pricing REST API: cart quote and delivery bracket table."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.ck_common.database import get_db_session
from src.ck_common.response import ApiResponse, success_response
from src.ck_identity.auth.context import CallerContext
from src.ck_identity.auth.dependencies import get_current_caller
from src.ck_pricing.application.service import PricingApplicationService

router = APIRouter(tags=["pricing"])

_service = PricingApplicationService()


@router.get("/checkout/quote")
async def get_quote(
    caller: Annotated[CallerContext, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.quote(db, caller)
    return success_response(data.model_dump(), getattr(request.state, "request_id", None))


@router.get("/delivery-charges")
async def list_delivery_charges(
    _caller: Annotated[CallerContext, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    rules = await _service.list_delivery_rules(db)
    return success_response(
        [r.model_dump() for r in rules], getattr(request.state, "request_id", None)
    )
