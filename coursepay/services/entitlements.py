"""Write-once course entitlements."""

import time

from coursepay.core.logging import get_logger
from coursepay.models.entitlement import EntitlementRecord, EntitlementSource, WriteResult
from coursepay.storage.base import get_entitlement_store

log = get_logger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


async def grant_entitlement(
    uid: str,
    course_id: str,
    payment_id: str,
    order_id: str | None,
    source: EntitlementSource,
) -> WriteResult:
    """
    Mark (uid, course_id) as paid unless it already is.
    An existing paid record is never overwritten, even by a different payment;
    that case is logged as a conflict for manual follow-up.
    """
    record = EntitlementRecord(
        paid=True,
        payment_id=payment_id,
        order_id=order_id,
        verified_at=now_ms(),
        source=source,
    )
    result = await get_entitlement_store().write_entitlement_if_absent(uid, course_id, record)
    if result.applied:
        log.info(
            "entitlement_granted",
            uid=uid,
            course_id=course_id,
            payment_id=payment_id,
            source=record.source,
        )
    elif result.record.payment_id != payment_id:
        log.warning(
            "entitlement_payment_conflict",
            uid=uid,
            course_id=course_id,
            stored_payment_id=result.record.payment_id,
            incoming_payment_id=payment_id,
            source=record.source,
        )
    else:
        log.info("entitlement_already_present", uid=uid, course_id=course_id, payment_id=payment_id)
    return result
