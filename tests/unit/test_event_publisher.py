"""Unit tests for RedisEventPublisher and the settlement event payloads."""

from unittest.mock import AsyncMock, patch

from redis.exceptions import ConnectionError as RedisConnectionError

from src.ck_payment.domain.events import order_settled, payment_failed
from src.ck_payment.infrastructure.event_publisher import RedisEventPublisher

_TARGET = "src.ck_payment.infrastructure.event_publisher.publish_json"


def test_payload_is_plain_json_types() -> None:
    payload = payment_failed("ord_1", "user-1", None, 94000, "TIMEOUT").to_payload()
    assert payload["event_type"] == "PAYMENT_FAILED"
    assert payload["attempt_id"] is None
    assert payload["reason"] == "TIMEOUT"
    assert isinstance(payload["occurred_at"], str)


async def test_publishes_to_configured_channel() -> None:
    with patch(_TARGET, new_callable=AsyncMock, return_value=2) as publish:
        await RedisEventPublisher(channel="checkout.events").publish(
            order_settled("ord_1", "user-1", "pa_1", 94000)
        )
    channel, payload = publish.await_args.args
    assert channel == "checkout.events"
    assert payload["event_type"] == "ORDER_SETTLED"
    assert payload["amount"] == 94000


async def test_redis_outage_is_logged_not_raised() -> None:
    with patch(_TARGET, new_callable=AsyncMock, side_effect=RedisConnectionError("down")):
        with patch("src.ck_payment.infrastructure.event_publisher.logger") as log:
            await RedisEventPublisher(channel="checkout.events").publish(
                order_settled("ord_1", "user-1", "pa_1", 94000)
            )
    log.warning.assert_called_once()
