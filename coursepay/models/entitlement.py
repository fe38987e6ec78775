from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class EntitlementSource(str, Enum):
    CHECKOUT = "checkout"
    WEBHOOK = "webhook"
    STANDARD_CHECKOUT = "standard_checkout"


class EntitlementRecord(BaseModel):
    """Course unlock stored at users/{uid}/courses/{courseId}. Field names match the datastore."""

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    paid: bool = True
    payment_id: str | None = Field(default=None, alias="paymentId")
    order_id: str | None = Field(default=None, alias="orderId")
    verified_at: int = Field(alias="verifiedAt")  # epoch ms
    source: EntitlementSource

    def to_store(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)

    @classmethod
    def from_store(cls, value: dict) -> "EntitlementRecord":
        # Records written by earlier deployments carry "time", no source and possibly no paymentId
        data = dict(value)
        if "verifiedAt" not in data:
            data["verifiedAt"] = data.get("time", 0)
        data.setdefault("source", EntitlementSource.CHECKOUT)
        return cls.model_validate(data)


class WriteOutcome(str, Enum):
    APPLIED = "applied"
    ALREADY_PRESENT = "already_present"


class WriteResult(BaseModel):
    outcome: WriteOutcome
    record: EntitlementRecord

    @property
    def applied(self) -> bool:
        return self.outcome == WriteOutcome.APPLIED
