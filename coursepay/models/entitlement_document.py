from beanie import Document
from pymongo import ASCENDING, IndexModel


class EntitlementDocument(Document):
    """Mongo copy of an entitlement record; one document per (uid, course_id)."""
    uid: str
    course_id: str
    paid: bool = True
    payment_id: str
    order_id: str | None = None
    verified_at: int  # epoch ms
    source: str

    class Settings:
        name = "entitlements"
        indexes = [
            IndexModel([("uid", ASCENDING), ("course_id", ASCENDING)], unique=True),
        ]
