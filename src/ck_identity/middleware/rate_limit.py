"""Fixed-window rate limiting for the payment endpoints.

Rule: POST requests under /api/v1/payments and /api/v1/orders/{id}/payments
are limited to RATE_LIMIT_PAYMENTS_PER_MINUTE per caller. The caller is the
token subject when a valid bearer token is present, otherwise the client IP
(first X-Forwarded-For hop when behind a proxy).

Key pattern: "ratelimit:{caller}:payments", INCR + EXPIRE 60.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from config.settings import settings
from src.ck_common.errors import InvalidCredentialsError, RateLimitError
from src.ck_common.redis_client import incr_fixed_window
from src.ck_common.response import error_response
from src.ck_identity.auth.jwt_handler import decode_access_token

logger = logging.getLogger(__name__)

_WINDOW_SECONDS = 60


def is_payment_request(request: Request) -> bool:
    path = request.url.path
    if request.method != "POST":
        return False
    return path.startswith("/api/v1/payments") or (
        path.startswith("/api/v1/orders/") and path.endswith("/payments")
    )


def caller_key(request: Request) -> str:
    auth = request.headers.get("Authorization", "")
    if auth.lower().startswith("bearer "):
        try:
            return f"user:{decode_access_token(auth[7:].strip())['sub']}"
        except InvalidCredentialsError:
            pass  # fall through to IP; the route itself will answer 401
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return f"ip:{forwarded.split(',')[0].strip()}"
    return f"ip:{request.client.host if request.client else 'unknown'}"


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, limit: int | None = None) -> None:  # type: ignore[no-untyped-def]
        super().__init__(app)
        self._limit = limit if limit is not None else settings.RATE_LIMIT_PAYMENTS_PER_MINUTE

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not is_payment_request(request):
            return await call_next(request)

        key = f"ratelimit:{caller_key(request)}:payments"
        count = await incr_fixed_window(key, _WINDOW_SECONDS)
        if count > self._limit:
            logger.warning("Rate limit hit: %s (%d/%d)", key, count, self._limit)
            err = RateLimitError()
            body = error_response(err.code, err.message, err.reason)
            request_id = getattr(request.state, "request_id", None)
            if request_id:
                body.request_id = request_id
            return JSONResponse(
                status_code=err.http_status,
                content=body.model_dump(),
                headers={"Retry-After": str(_WINDOW_SECONDS)},
            )
        return await call_next(request)
