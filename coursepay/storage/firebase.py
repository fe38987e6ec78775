"""Firebase Realtime Database backend.

The write-once guard runs as a Realtime Database transaction on the entitlement's
reference, so concurrent writers across service instances see a single winner.
The Admin SDK is synchronous; calls run in a worker thread.
"""

import asyncio

import firebase_admin
from firebase_admin import credentials, db
from firebase_admin.exceptions import FirebaseError

from coursepay.core.config import ConfigurationError, get_settings
from coursepay.core.exceptions import StoreError
from coursepay.core.logging import get_logger
from coursepay.models.entitlement import EntitlementRecord, WriteOutcome, WriteResult
from coursepay.storage.base import EntitlementStore, entitlement_path

log = get_logger(__name__)

APP_NAME = "coursepay"


class FirebaseEntitlementStore(EntitlementStore):
    def __init__(self) -> None:
        self._app: firebase_admin.App | None = None

    def _get_app(self) -> firebase_admin.App:
        if self._app is not None:
            return self._app
        try:
            self._app = firebase_admin.get_app(APP_NAME)
            return self._app
        except ValueError:
            pass
        settings = get_settings()
        try:
            cred = credentials.Certificate(settings.firebase_credentials())
        except ValueError as exc:
            raise ConfigurationError(f"Invalid Firebase service account: {exc}") from exc
        self._app = firebase_admin.initialize_app(
            cred,
            {"databaseURL": settings.firebase_database_url},
            name=APP_NAME,
        )
        return self._app

    async def init(self) -> None:
        self._get_app()

    def _ref(self, uid: str, course_id: str) -> db.Reference:
        return db.reference(entitlement_path(uid, course_id), app=self._get_app())

    async def read_entitlement(self, uid: str, course_id: str) -> EntitlementRecord | None:
        ref = self._ref(uid, course_id)
        try:
            value = await self._bounded(asyncio.to_thread(ref.get))
        except FirebaseError as exc:
            log.error("store_error", op="read", uid=uid, course_id=course_id, reason=str(exc))
            raise StoreError() from exc
        if not isinstance(value, dict) or not value.get("paid"):
            return None
        return EntitlementRecord.from_store(value)

    async def write_entitlement_if_absent(
        self, uid: str, course_id: str, record: EntitlementRecord
    ) -> WriteResult:
        ref = self._ref(uid, course_id)
        new_value = record.to_store()
        # The SDK may call the update function several times on contention
        outcome = {"applied": False}

        def update(current):
            if isinstance(current, dict) and current.get("paid"):
                outcome["applied"] = False
                return current
            outcome["applied"] = True
            return new_value

        try:
            stored = await self._bounded(asyncio.to_thread(ref.transaction, update))
        except FirebaseError as exc:
            log.error("store_error", op="write", uid=uid, course_id=course_id, reason=str(exc))
            raise StoreError() from exc
        if outcome["applied"]:
            return WriteResult(outcome=WriteOutcome.APPLIED, record=record)
        return WriteResult(
            outcome=WriteOutcome.ALREADY_PRESENT,
            record=EntitlementRecord.from_store(stored),
        )
