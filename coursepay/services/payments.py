"""Payment confirmation: client checkout verification and Razorpay webhooks.

Both paths verify an HMAC before touching state and end in the same
write-once entitlement grant.
"""

from enum import Enum
from typing import Any

import orjson

from coursepay.core.config import get_settings
from coursepay.core.exceptions import InvalidPayloadError, SignatureMismatchError
from coursepay.core.logging import get_logger
from coursepay.core.security import verify_payment_signature, verify_razorpay_webhook
from coursepay.models.entitlement import EntitlementSource
from coursepay.services.entitlements import grant_entitlement
from coursepay.services.validation import require_identifier, require_string

log = get_logger(__name__)

CAPTURED_EVENT = "payment.captured"


class WebhookResult(str, Enum):
    ACKNOWLEDGED = "acknowledged"
    IGNORED = "ignored"
    MALFORMED = "malformed"


async def verify_checkout(
    order_id: Any,
    payment_id: Any,
    signature: Any,
    uid: Any,
    course_id: Any,
) -> dict:
    """Verify the signature returned by checkout and unlock the course."""
    settings = get_settings()
    order_id = require_string(order_id, "razorpay_order_id")
    payment_id = require_string(payment_id, "razorpay_payment_id")
    signature = require_string(signature, "razorpay_signature")
    uid = require_identifier(uid, "uid")
    course_id = require_identifier(course_id, "courseId")

    if not verify_payment_signature(order_id, payment_id, signature, settings.razorpay_key_secret):
        raise SignatureMismatchError("Payment signature mismatch")

    await grant_entitlement(
        uid,
        course_id,
        payment_id=payment_id,
        order_id=order_id,
        source=EntitlementSource(settings.verify_source),
    )
    return {"success": True}


def _payment_entity(event: dict) -> dict:
    entity = event.get("payload", {}).get("payment", {}).get("entity", {})
    return entity if isinstance(entity, dict) else {}


async def handle_webhook(payload: bytes, signature: str | None) -> WebhookResult:
    """Verify HMAC over the raw body and unlock the course on payment.captured."""
    settings = get_settings()
    if not verify_razorpay_webhook(payload, signature, settings.razorpay_webhook_secret):
        raise SignatureMismatchError("Invalid webhook signature")

    try:
        event = orjson.loads(payload)
    except orjson.JSONDecodeError:
        log.warning("webhook_malformed", reason="body is not JSON")
        return WebhookResult.MALFORMED
    if not isinstance(event, dict):
        log.warning("webhook_malformed", reason="body is not an object")
        return WebhookResult.MALFORMED

    event_type = event.get("event")
    if event_type != CAPTURED_EVENT:
        log.info("webhook_ignored", event_type=event_type)
        return WebhookResult.IGNORED

    try:
        payment = _payment_entity(event)
        notes = payment.get("notes") or {}
        payment_id = require_string(payment.get("id"), "payment.id")
        uid = require_identifier(notes.get("uid"), "notes.uid")
        course_id = require_identifier(notes.get("courseId"), "notes.courseId")
    except (AttributeError, InvalidPayloadError) as exc:
        # payload sections or notes that are not objects
        log.warning("webhook_malformed", event_type=event_type, reason=str(exc))
        return WebhookResult.MALFORMED

    order_id = payment.get("order_id")
    await grant_entitlement(
        uid,
        course_id,
        payment_id=payment_id,
        order_id=order_id if isinstance(order_id, str) and order_id else None,
        source=EntitlementSource.WEBHOOK,
    )
    return WebhookResult.ACKNOWLEDGED
