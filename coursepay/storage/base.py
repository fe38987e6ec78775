import asyncio
from abc import ABC, abstractmethod
from functools import lru_cache
from typing import Awaitable, TypeVar

from coursepay.core.config import get_settings
from coursepay.core.exceptions import StoreTimeoutError
from coursepay.models.entitlement import EntitlementRecord, WriteResult

T = TypeVar("T")


def entitlement_path(uid: str, course_id: str) -> str:
    return f"users/{uid}/courses/{course_id}"


class EntitlementStore(ABC):
    """Keyed (uid, course_id) store with an atomic write-once guard."""

    async def init(self) -> None:
        """Open connections; called once on startup."""

    @abstractmethod
    async def read_entitlement(self, uid: str, course_id: str) -> EntitlementRecord | None:
        """Return the stored record, or None when the key is absent."""
        ...

    @abstractmethod
    async def write_entitlement_if_absent(
        self, uid: str, course_id: str, record: EntitlementRecord
    ) -> WriteResult:
        """Write record unless the key is already paid; at most one first-write wins."""
        ...

    async def _bounded(self, aw: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(aw, timeout=get_settings().store_timeout_seconds)
        except asyncio.TimeoutError as exc:
            raise StoreTimeoutError() from exc


@lru_cache
def get_entitlement_store() -> EntitlementStore:
    settings = get_settings()
    if settings.datastore_backend == "firebase":
        from coursepay.storage.firebase import FirebaseEntitlementStore
        return FirebaseEntitlementStore()
    if settings.datastore_backend == "mongo":
        from coursepay.storage.mongo import MongoEntitlementStore
        return MongoEntitlementStore()
    from coursepay.storage.memory import MemoryEntitlementStore
    return MemoryEntitlementStore()
