"""ck_order REST API: create order, history and detail."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.ck_common.database import get_db_session
from src.ck_common.enums import PaymentMethod
from src.ck_common.response import ApiResponse, success_response
from src.ck_identity.auth.context import CallerContext
from src.ck_identity.auth.dependencies import get_current_caller
from src.ck_order.application.assembler import OrderAssembler
from src.ck_order.application.schemas import CreateOrderRequest
from src.ck_order.application.service import OrderQueryService

router = APIRouter(prefix="/orders", tags=["orders"])

_assembler = OrderAssembler(currency=settings.CURRENCY)
_queries = OrderQueryService()


@router.post("", status_code=201)
async def create_order(
    body: CreateOrderRequest,
    caller: Annotated[CallerContext, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _assembler.create_order(
        db, caller, body.address_id, PaymentMethod(body.payment_method)
    )
    return success_response(data.model_dump(), getattr(request.state, "request_id", None))


@router.get("")
async def list_orders(
    caller: Annotated[CallerContext, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    status: str | None = Query(None, description="Filter by order status"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    cursor: str | None = Query(None, description="Pagination cursor (order ID)"),
) -> ApiResponse:
    data = await _queries.list_orders(db, caller.user_id, status, limit, cursor)
    return success_response(data.model_dump(), getattr(request.state, "request_id", None))


@router.get("/{order_id}")
async def get_order(
    order_id: str,
    caller: Annotated[CallerContext, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _queries.get_order(db, order_id, caller.user_id)
    return success_response(data.model_dump(), getattr(request.state, "request_id", None))
