"""Order status transitions.

    CREATED ──────────────► AWAITING_GATEWAY ──► VERIFYING ──► SETTLED   (GATEWAY)
       │ └────────────────► DEBITING ──────────────────────► SETTLED    (WALLET)
       └──────────────────────────────────────────────────► SETTLED    (CASH_ON_DELIVERY)

    any non-terminal ──► FAILED
    FAILED ──► AWAITING_GATEWAY | DEBITING | SETTLED    (new attempt)
    VERIFYING ──► AWAITING_GATEWAY                      (gateway unreachable while verifying)

SETTLED is terminal. FAILED is terminal for its attempt only.
The persistence layer applies a transition as a compare-and-swap on status,
which is the cross-process serialization point.
"""

from src.ck_common.enums import OrderStatus

_S = OrderStatus

ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    _S.CREATED: frozenset({_S.AWAITING_GATEWAY, _S.DEBITING, _S.SETTLED, _S.FAILED}),
    _S.AWAITING_GATEWAY: frozenset({_S.VERIFYING, _S.FAILED}),
    _S.VERIFYING: frozenset({_S.SETTLED, _S.FAILED, _S.AWAITING_GATEWAY}),
    _S.DEBITING: frozenset({_S.SETTLED, _S.FAILED}),
    _S.FAILED: frozenset({_S.AWAITING_GATEWAY, _S.DEBITING, _S.SETTLED}),
    _S.SETTLED: frozenset(),
}

# States from which a brand-new payment attempt may start
ATTEMPTABLE: frozenset[OrderStatus] = frozenset({_S.CREATED, _S.FAILED})

# States in which an attempt is in flight
IN_FLIGHT: frozenset[OrderStatus] = frozenset({_S.AWAITING_GATEWAY, _S.VERIFYING, _S.DEBITING})


def can_transition(current: str | OrderStatus, target: str | OrderStatus) -> bool:
    return OrderStatus(target) in ALLOWED_TRANSITIONS[OrderStatus(current)]


def sources_for(target: OrderStatus, among: frozenset[OrderStatus] | None = None) -> list[str]:
    """Every status that may move to ``target``, optionally narrowed to ``among``."""
    return sorted(
        s.value
        for s, targets in ALLOWED_TRANSITIONS.items()
        if target in targets and (among is None or s in among)
    )
