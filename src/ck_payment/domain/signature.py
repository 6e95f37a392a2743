"""Gateway callback signature: hex HMAC-SHA256 over ``order_ref|payment_ref``."""

import hashlib
import hmac


def compute_signature(gateway_order_ref: str, gateway_payment_ref: str, secret: str) -> str:
    message = f"{gateway_order_ref}|{gateway_payment_ref}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def verify_signature(
    gateway_order_ref: str, gateway_payment_ref: str, signature: str, secret: str
) -> bool:
    if not signature:
        return False
    expected = compute_signature(gateway_order_ref, gateway_payment_ref, secret)
    # bytes: compare_digest raises TypeError on non-ASCII str
    return hmac.compare_digest(expected.encode(), signature.strip().lower().encode())
