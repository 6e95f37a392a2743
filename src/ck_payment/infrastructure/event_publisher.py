"""Redis pub/sub publisher for settlement events."""

import logging

from redis.exceptions import RedisError

from config.settings import settings
from src.ck_common.redis_client import publish_json
from src.ck_payment.domain.events import SettlementEvent

logger = logging.getLogger(__name__)


class RedisEventPublisher:
    """Publishes after commit. State is already durable, so a failed publish is logged, not raised."""

    def __init__(self, channel: str | None = None) -> None:
        self._channel = channel or settings.EVENTS_CHANNEL

    async def publish(self, event: SettlementEvent) -> None:
        try:
            receivers = await publish_json(self._channel, event.to_payload())
        except (RedisError, OSError) as exc:
            logger.warning(
                "event publish failed: type=%s order=%s err=%s",
                event.event_type.value, event.order_id, exc,
            )
            return
        logger.debug(
            "event published: type=%s order=%s receivers=%d",
            event.event_type.value, event.order_id, receivers,
        )
