import asyncio

from coursepay.models.entitlement import EntitlementRecord, WriteOutcome, WriteResult
from coursepay.storage.base import EntitlementStore, entitlement_path


class MemoryEntitlementStore(EntitlementStore):
    """Single-process store for local runs and tests."""

    def __init__(self) -> None:
        self._data: dict[str, dict] = {}
        self._lock = asyncio.Lock()

    async def read_entitlement(self, uid: str, course_id: str) -> EntitlementRecord | None:
        value = self._data.get(entitlement_path(uid, course_id))
        return EntitlementRecord.from_store(value) if value and value.get("paid") else None

    async def write_entitlement_if_absent(
        self, uid: str, course_id: str, record: EntitlementRecord
    ) -> WriteResult:
        path = entitlement_path(uid, course_id)
        async with self._lock:
            current = self._data.get(path)
            if current and current.get("paid"):
                return WriteResult(
                    outcome=WriteOutcome.ALREADY_PRESENT,
                    record=EntitlementRecord.from_store(current),
                )
            self._data[path] = record.to_store()
        return WriteResult(outcome=WriteOutcome.APPLIED, record=record)
