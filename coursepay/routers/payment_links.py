from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt

from coursepay.services import orders as orders_service

router = APIRouter()


class CreatePaymentLinkRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    amount: StrictInt | StrictFloat
    uid: str
    course_id: str = Field(alias="courseId")
    email: str


@router.post("/create-payment-link")
async def create_payment_link(body: CreatePaymentLinkRequest):
    """Create a hosted payment link emailed to the payer."""
    return await orders_service.create_payment_link(body.amount, body.uid, body.course_id, body.email)
