"""Razorpay orders and payment links for course purchases.

Amounts arrive in major units and are converted to the gateway's minor units.
uid and courseId travel in the gateway-side notes so webhooks can attribute payments.
"""

import secrets
import time
from typing import Any

from coursepay.core.config import get_settings
from coursepay.core.exceptions import OrderCreationFailedError
from coursepay.core.logging import get_logger
from coursepay.services import gateway
from coursepay.services.validation import require_email, require_identifier, to_minor_units

log = get_logger(__name__)

RECEIPT_MAX_LENGTH = 40  # gateway limit for receipt and reference_id


def make_receipt(uid: str, course_id: str) -> str:
    """Unique per call: identifier prefix, millisecond timestamp, random nonce."""
    suffix = f"_{int(time.time() * 1000)}_{secrets.token_hex(2)}"
    prefix = f"{uid}_{course_id}"[: RECEIPT_MAX_LENGTH - len(suffix)]
    return prefix + suffix


def _notes(uid: str, course_id: str) -> dict[str, str]:
    return {"uid": uid, "courseId": course_id}


async def create_order(amount: Any, uid: Any, course_id: Any) -> dict:
    """Create a gateway order for one course; returns the gateway order object."""
    settings = get_settings()
    uid = require_identifier(uid, "uid")
    course_id = require_identifier(course_id, "courseId")
    amount_minor = to_minor_units(amount, settings.minor_units)

    order = await gateway.create_order({
        "amount": amount_minor,
        "currency": settings.currency.upper(),
        "receipt": make_receipt(uid, course_id),
        "notes": _notes(uid, course_id),
        "payment_capture": 1,
    })
    log.info("order_created", order_id=order.get("id"), uid=uid, course_id=course_id, amount=amount_minor)
    if settings.expose_key_id:
        return {**order, "key_id": settings.razorpay_key_id}
    return order


async def create_payment_link(amount: Any, uid: Any, course_id: Any, email: Any) -> dict:
    """Create a hosted payment link emailed to the payer; returns its short URL."""
    settings = get_settings()
    uid = require_identifier(uid, "uid")
    course_id = require_identifier(course_id, "courseId")
    email = require_email(email)
    amount_minor = to_minor_units(amount, settings.minor_units)

    data: dict[str, Any] = {
        "amount": amount_minor,
        "currency": settings.currency.upper(),
        "reference_id": make_receipt(uid, course_id),
        "description": f"Course {course_id}",
        "customer": {"email": email},
        "notify": {"email": True, "sms": False},
        "reminder_enable": True,
        "notes": _notes(uid, course_id),
    }
    if settings.payment_link_callback_url:
        data["callback_url"] = settings.payment_link_callback_url
        data["callback_method"] = "get"

    link = await gateway.create_payment_link(data)
    if not link.get("short_url"):
        raise OrderCreationFailedError(details={"gateway_error": "payment link has no short_url"})
    log.info("payment_link_created", link_id=link.get("id"), uid=uid, course_id=course_id, amount=amount_minor)
    return {"short_url": link.get("short_url")}
