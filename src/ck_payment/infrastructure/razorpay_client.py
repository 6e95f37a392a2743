"""Razorpay REST client (orders + payments). Amounts are integer paise on the wire."""

import logging
from typing import Any

import httpx

from config.settings import settings
from src.ck_common.errors import GatewayUnavailableError
from src.ck_payment.domain.models import GatewayOrder, GatewayPayment

logger = logging.getLogger(__name__)


class RazorpayClient:
    """Implements PaymentGatewayProtocol.

    Any call that does not yield a usable body raises GatewayUnavailableError;
    the caller decides whether that fails the attempt or merely defers it.
    """

    def __init__(
        self,
        base_url: str | None = None,
        key_id: str | None = None,
        key_secret: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = (base_url or settings.GATEWAY_BASE_URL).rstrip("/")
        self._key_id = key_id if key_id is not None else settings.GATEWAY_KEY_ID
        self._key_secret = key_secret if key_secret is not None else settings.GATEWAY_KEY_SECRET
        self._timeout = timeout if timeout is not None else settings.GATEWAY_TIMEOUT_SECONDS
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            auth=(self._key_id, self._key_secret),
            timeout=self._timeout,
            transport=self._transport,
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            async with self._client() as client:
                resp = await client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("gateway %s %s failed: %s", method, path, exc)
            raise GatewayUnavailableError(f"Payment gateway unreachable: {exc.__class__.__name__}") from exc
        if resp.status_code >= 400:
            logger.warning("gateway %s %s returned HTTP %d", method, path, resp.status_code)
            raise GatewayUnavailableError(f"Payment gateway returned HTTP {resp.status_code}")
        try:
            body = resp.json()
        except ValueError as exc:
            raise _malformed(method, path, exc) from exc
        if not isinstance(body, dict):
            raise _malformed(method, path, TypeError(type(body).__name__))
        return body

    async def create_order(self, amount: int, currency: str, internal_order_id: str) -> GatewayOrder:
        body = await self._request(
            "POST",
            "/orders",
            json={
                "amount": amount,
                "currency": currency,
                "receipt": internal_order_id,
                "notes": {"order_id": internal_order_id},
            },
        )
        try:
            order = GatewayOrder(
                gateway_order_ref=str(body["id"]),
                public_key=self._key_id,
                amount=int(body.get("amount", amount)),
                currency=body.get("currency", currency),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise _malformed("POST", "/orders", exc) from exc
        logger.info(
            "gateway order created: ref=%s order=%s amount=%d",
            order.gateway_order_ref, internal_order_id, amount,
        )
        return order

    async def fetch_payment(self, gateway_payment_ref: str) -> GatewayPayment:
        path = f"/payments/{gateway_payment_ref}"
        body = await self._request("GET", path)
        try:
            return GatewayPayment(
                payment_ref=str(body["id"]),
                order_ref=body.get("order_id") or "",
                amount=int(body["amount"]),
                currency=body.get("currency", ""),
                status=body.get("status", ""),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise _malformed("GET", path, exc) from exc


def _malformed(method: str, path: str, exc: Exception) -> GatewayUnavailableError:
    logger.warning("gateway %s %s sent an unusable body: %r", method, path, exc)
    return GatewayUnavailableError("Payment gateway returned a malformed response")
