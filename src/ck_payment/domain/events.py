"""Settlement events published after commit. Subscribers re-read state; payloads are hints."""

from dataclasses import asdict, dataclass, field
from typing import Any

from src.ck_common.datetime_utils import utc_now
from src.ck_common.enums import SettlementEventType


@dataclass(frozen=True)
class SettlementEvent:
    event_type: SettlementEventType
    order_id: str
    user_id: str
    attempt_id: str | None
    amount: int
    reason: str | None = None
    occurred_at: str = field(default_factory=lambda: utc_now().isoformat())

    def to_payload(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["event_type"] = self.event_type.value
        return payload


def order_settled(order_id: str, user_id: str, attempt_id: str | None, amount: int) -> SettlementEvent:
    return SettlementEvent(SettlementEventType.ORDER_SETTLED, order_id, user_id, attempt_id, amount)


def payment_failed(
    order_id: str, user_id: str, attempt_id: str | None, amount: int, reason: str
) -> SettlementEvent:
    return SettlementEvent(
        SettlementEventType.PAYMENT_FAILED, order_id, user_id, attempt_id, amount, reason
    )
