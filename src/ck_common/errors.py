"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Identity
  2xxx: Wallet
  3xxx: Cart / Pricing
  4xxx: Order
  5xxx: Payment / Settlement
  9xxx: System

Every error carries a stable ``reason`` token. The API envelope exposes it as
``data.reason`` so clients can branch without parsing messages.
"""


class AppError(Exception):
    """Base application error."""

    reason: str = "APP_ERROR"

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Identity ---

class InvalidCredentialsError(AppError):
    reason = "INVALID_CREDENTIALS"

    def __init__(self) -> None:
        super().__init__(1001, "Invalid or expired token", 401)


# --- 2xxx: Wallet ---

class InsufficientFundsError(AppError):
    reason = "INSUFFICIENT_FUNDS"

    def __init__(self, required: int, available: int) -> None:
        self.required = required
        self.available = available
        super().__init__(
            2001,
            f"Insufficient wallet balance: required {required} paise, available {available} paise",
            422,
        )


class WalletNotFoundError(AppError):
    reason = "WALLET_NOT_FOUND"

    def __init__(self, user_id: str) -> None:
        super().__init__(2002, f"Wallet not found for user {user_id}", 404)


# --- 3xxx: Cart / Pricing ---

class EmptyCartError(AppError):
    reason = "EMPTY_CART"

    def __init__(self) -> None:
        super().__init__(3001, "Cart is empty", 422)


class AddressNotFoundError(AppError):
    reason = "ADDRESS_NOT_FOUND"

    def __init__(self, address_id: str) -> None:
        super().__init__(3002, f"Address not found: {address_id}", 404)


class ProductUnavailableError(AppError):
    reason = "PRODUCT_UNAVAILABLE"

    def __init__(self, product_ids: tuple[str, ...]) -> None:
        super().__init__(
            3003, f"Products no longer available: {', '.join(product_ids)}", 422
        )
        self.product_ids = product_ids


# --- 4xxx: Order ---

class OrderNotFoundError(AppError):
    reason = "ORDER_NOT_FOUND"

    def __init__(self, order_id: str) -> None:
        super().__init__(4001, f"Order not found: {order_id}", 404)


class OrderForbiddenError(AppError):
    reason = "FORBIDDEN"

    def __init__(self, order_id: str) -> None:
        super().__init__(4002, f"Order {order_id} belongs to another user", 403)


class InvalidTransitionError(AppError):
    reason = "INVALID_TRANSITION"

    def __init__(self, order_id: str, current: str, target: str) -> None:
        super().__init__(
            4003, f"Order {order_id} cannot move from {current} to {target}", 409
        )


# --- 5xxx: Payment / Settlement ---

class PaymentInFlightError(AppError):
    reason = "PAYMENT_IN_FLIGHT"

    def __init__(self, order_id: str) -> None:
        super().__init__(5001, f"A payment attempt is already in flight for order {order_id}", 409)


class SignatureInvalidError(AppError):
    reason = "SIGNATURE_INVALID"

    def __init__(self) -> None:
        super().__init__(5002, "Payment signature verification failed", 422)


class AmountMismatchError(AppError):
    reason = "AMOUNT_MISMATCH"

    def __init__(self, expected: int, reported: int) -> None:
        super().__init__(
            5003,
            f"Gateway reported {reported} paise, order total is {expected} paise",
            422,
        )


class PaymentOrderMismatchError(AppError):
    reason = "PAYMENT_ORDER_MISMATCH"

    def __init__(self, gateway_order_ref: str) -> None:
        super().__init__(
            5004, f"Payment does not belong to gateway order {gateway_order_ref}", 422
        )


class PaymentNotCapturedError(AppError):
    reason = "PAYMENT_NOT_CAPTURED"

    def __init__(self, gateway_status: str) -> None:
        super().__init__(5005, f"Payment not captured (gateway status={gateway_status})", 422)


class AttemptClosedError(AppError):
    reason = "ATTEMPT_CLOSED"

    def __init__(self, attempt_id: str) -> None:
        super().__init__(5006, f"Payment attempt {attempt_id} is no longer awaiting the gateway", 409)


class PaymentAttemptNotFoundError(AppError):
    reason = "PAYMENT_ATTEMPT_NOT_FOUND"

    def __init__(self, gateway_order_ref: str) -> None:
        super().__init__(5007, f"No payment attempt for gateway order {gateway_order_ref}", 404)


class GatewayUnavailableError(AppError):
    reason = "GATEWAY_UNAVAILABLE"

    def __init__(self, detail: str = "Payment gateway unavailable") -> None:
        super().__init__(5008, detail, 503)


# --- 9xxx: System ---

class RateLimitError(AppError):
    reason = "RATE_LIMITED"

    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    reason = "INTERNAL"

    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


# Stored attempt failure reason → (code, http_status)
_FAILURE_CODES: dict[str, tuple[int, int]] = {
    "INSUFFICIENT_FUNDS": (2001, 422),
    "SIGNATURE_INVALID": (5002, 422),
    "AMOUNT_MISMATCH": (5003, 422),
    "PAYMENT_ORDER_MISMATCH": (5004, 422),
    "PAYMENT_NOT_CAPTURED": (5005, 422),
    "ATTEMPT_CLOSED": (5006, 409),
    "GATEWAY_UNAVAILABLE": (5008, 503),
    "TIMEOUT": (5009, 409),
}


def error_for_failure(reason: str, message: str | None = None) -> AppError:
    """Rebuild an AppError for a stored failure reason (attempt.failure_reason).

    A replayed request against a FAILED attempt gets the reason it got the
    first time.
    """
    code, http_status = _FAILURE_CODES.get(reason, (5000, 422))
    err = AppError(code, message or f"Payment failed: {reason}", http_status)
    err.reason = reason
    return err
