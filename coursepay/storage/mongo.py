from pymongo.errors import DuplicateKeyError, PyMongoError

from coursepay.core.exceptions import StoreError
from coursepay.core.logging import get_logger
from coursepay.db.init import init_db
from coursepay.models.entitlement import EntitlementRecord, WriteOutcome, WriteResult
from coursepay.models.entitlement_document import EntitlementDocument
from coursepay.storage.base import EntitlementStore

log = get_logger(__name__)


def _to_record(doc: EntitlementDocument) -> EntitlementRecord:
    return EntitlementRecord(
        paid=doc.paid,
        payment_id=doc.payment_id,
        order_id=doc.order_id,
        verified_at=doc.verified_at,
        source=doc.source,
    )


def _collection():
    return EntitlementDocument.get_motor_collection()


class MongoEntitlementStore(EntitlementStore):
    """Entitlements collection with a unique (uid, course_id) index; first upsert wins."""

    async def init(self) -> None:
        await self._bounded(init_db())

    async def _find(self, uid: str, course_id: str) -> EntitlementDocument | None:
        return await self._bounded(
            EntitlementDocument.find_one(
                EntitlementDocument.uid == uid,
                EntitlementDocument.course_id == course_id,
            )
        )

    async def read_entitlement(self, uid: str, course_id: str) -> EntitlementRecord | None:
        try:
            doc = await self._find(uid, course_id)
        except PyMongoError as exc:
            log.error("store_error", op="read", uid=uid, course_id=course_id, reason=str(exc))
            raise StoreError() from exc
        return _to_record(doc) if doc else None

    async def write_entitlement_if_absent(
        self, uid: str, course_id: str, record: EntitlementRecord
    ) -> WriteResult:
        collection = _collection()
        on_insert = {
            "paid": True,
            "payment_id": record.payment_id,
            "order_id": record.order_id,
            "verified_at": record.verified_at,
            "source": record.source,
        }
        try:
            result = await self._bounded(
                collection.update_one(
                    {"uid": uid, "course_id": course_id},
                    {"$setOnInsert": on_insert},
                    upsert=True,
                )
            )
            if result.upserted_id is not None:
                return WriteResult(outcome=WriteOutcome.APPLIED, record=record)
        except DuplicateKeyError:
            # A concurrent writer inserted the key between match and insert
            pass
        except PyMongoError as exc:
            log.error("store_error", op="write", uid=uid, course_id=course_id, reason=str(exc))
            raise StoreError() from exc
        existing = await self.read_entitlement(uid, course_id)
        if existing is None:
            raise StoreError("Entitlement write not visible")
        return WriteResult(outcome=WriteOutcome.ALREADY_PRESENT, record=existing)
