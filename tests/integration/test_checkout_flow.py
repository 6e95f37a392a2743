"""End-to-end checkout against PostgreSQL + Redis (wallet and cash-on-delivery paths).

The gateway path needs a live Razorpay sandbox and is covered by unit tests.
"""

import asyncio
from typing import Any

import pytest
from httpx import AsyncClient, Response

from tests.integration.seeding import Shopper, seed_shopper, set_balance

pytestmark = [pytest.mark.integration, pytest.mark.asyncio(loop_scope="session")]


async def _create_order(client: AsyncClient, shopper: Shopper, method: str) -> dict[str, Any]:
    resp = await client.post(
        "/api/v1/orders",
        json={"address_id": shopper.address_id, "payment_method": method},
        headers=shopper.headers,
    )
    assert resp.status_code == 201, resp.text
    data: dict[str, Any] = resp.json()["data"]
    return data


async def _pay(
    client: AsyncClient, shopper: Shopper, order_id: str, client_attempt_id: str
) -> Response:
    return await client.post(
        f"/api/v1/orders/{order_id}/payments",
        json={"client_attempt_id": client_attempt_id},
        headers=shopper.headers,
    )


class TestCashOnDelivery:
    async def test_settles_and_clears_cart(self, client: AsyncClient) -> None:
        shopper = await seed_shopper(balance=0, cart=[(100000, 1)])
        order = await _create_order(client, shopper, "CASH_ON_DELIVERY")

        first = await _pay(client, shopper, order["order_id"], "cod-1")
        again = await _pay(client, shopper, order["order_id"], "cod-1")

        assert first.status_code == 200
        assert first.json()["data"]["order_status"] == "SETTLED"
        assert first.json()["data"]["payment_status"] == "PENDING"
        assert again.json()["data"]["attempt_id"] == first.json()["data"]["attempt_id"]

        quote = (await client.get("/api/v1/checkout/quote", headers=shopper.headers)).json()
        assert quote["data"]["items"] == []

        detail = await client.get(f"/api/v1/orders/{order['order_id']}", headers=shopper.headers)
        assert detail.json()["data"]["grand_total_paise"] == order["grand_total_paise"]


class TestWallet:
    async def test_two_orders_racing_for_one_balance(self, client: AsyncClient) -> None:
        shopper = await seed_shopper(balance=0, cart=[(100000, 1)])
        quote = (await client.get("/api/v1/checkout/quote", headers=shopper.headers)).json()
        total = quote["data"]["grand_total_paise"]
        await set_balance(shopper.user_id, total)

        a = await _create_order(client, shopper, "WALLET")
        b = await _create_order(client, shopper, "WALLET")

        results = await asyncio.gather(
            _pay(client, shopper, a["order_id"], "w-1"),
            _pay(client, shopper, b["order_id"], "w-1"),
        )

        assert sorted(r.status_code for r in results) == [200, 422]
        refused = next(r for r in results if r.status_code == 422)
        assert refused.json()["data"]["reason"] == "INSUFFICIENT_FUNDS"

        balance = (await client.get("/api/v1/wallet/balance", headers=shopper.headers)).json()
        assert balance["data"]["available_balance_paise"] == 0
        ledger = (await client.get("/api/v1/wallet/ledger", headers=shopper.headers)).json()
        assert [tx["amount_paise"] for tx in ledger["data"]["items"]] == [-total]

    async def test_unknown_address_leaves_no_order(self, client: AsyncClient) -> None:
        shopper = await seed_shopper(balance=10**7, cart=[(5000, 2)])
        resp = await client.post(
            "/api/v1/orders",
            json={"address_id": "addr-not-mine", "payment_method": "WALLET"},
            headers=shopper.headers,
        )
        assert resp.status_code == 404
        history = (await client.get("/api/v1/orders", headers=shopper.headers)).json()
        assert history["data"]["items"] == []
