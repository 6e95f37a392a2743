"""ck_payment REST API: start attempts, list them, verify gateway callbacks."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.ck_common.database import get_db_session
from src.ck_common.errors import error_for_failure
from src.ck_common.response import ApiResponse, success_response
from src.ck_identity.auth.context import CallerContext
from src.ck_identity.auth.dependencies import get_current_caller
from src.ck_payment.application.orchestrator import get_payment_orchestrator
from src.ck_payment.application.reconciler import get_settlement_reconciler
from src.ck_payment.application.schemas import (
    StartPaymentRequest,
    StartPaymentResponse,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)
from src.ck_payment.application.service import PaymentQueryService

router = APIRouter(tags=["payments"])

_queries = PaymentQueryService()


@router.post("/orders/{order_id}/payments")
async def start_payment(
    order_id: str,
    body: StartPaymentRequest,
    caller: Annotated[CallerContext, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    result = await get_payment_orchestrator().start_payment(
        db, caller, order_id, body.client_attempt_id
    )
    return success_response(
        StartPaymentResponse.from_domain(result).model_dump(),
        getattr(request.state, "request_id", None),
    )


@router.get("/orders/{order_id}/payments")
async def list_payment_attempts(
    order_id: str,
    caller: Annotated[CallerContext, Depends(get_current_caller)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    items = await _queries.list_attempts(db, order_id, caller.user_id)
    return success_response(
        [i.model_dump() for i in items], getattr(request.state, "request_id", None)
    )


@router.post("/payments/verify")
async def verify_payment(
    body: VerifyPaymentRequest,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    """Gateway callback or client relay. The signature authenticates the call, not a JWT."""
    outcome = await get_settlement_reconciler().verify_payment(
        db, body.gateway_order_ref, body.gateway_payment_ref, body.signature
    )
    if outcome.status == "FAILED":
        raise error_for_failure(outcome.reason or "UNKNOWN")
    return success_response(
        VerifyPaymentResponse.from_domain(outcome).model_dump(),
        getattr(request.state, "request_id", None),
    )
