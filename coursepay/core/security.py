"""HMAC-SHA256 signature checks for Razorpay checkout responses and webhooks.

Checkout responses are signed with the API key secret over "{order_id}|{payment_id}";
webhooks are signed with the separate webhook secret over the raw request body.
Both checks fail closed.
"""

import hashlib
import hmac


def compute_signature(message: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def _matches(message: bytes, signature: str, secret: str) -> bool:
    try:
        expected = compute_signature(message, secret)
        return hmac.compare_digest(expected, signature)
    except (TypeError, ValueError, AttributeError):
        return False


def verify_payment_signature(order_id: str, payment_id: str, signature: str, secret: str) -> bool:
    try:
        message = f"{order_id}|{payment_id}".encode("utf-8")
    except UnicodeEncodeError:
        return False
    if not secret:
        return False
    return _matches(message, signature, secret)


def verify_razorpay_webhook(payload: bytes, signature: str | None, secret: str) -> bool:
    if not signature or not secret or not isinstance(payload, (bytes, bytearray)):
        return False
    return _matches(bytes(payload), signature, secret)
