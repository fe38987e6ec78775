from coursepay.models.entitlement import EntitlementRecord, EntitlementSource, WriteOutcome, WriteResult
from coursepay.models.entitlement_document import EntitlementDocument

__all__ = [
    "EntitlementRecord",
    "EntitlementSource",
    "WriteOutcome",
    "WriteResult",
    "EntitlementDocument",
]
