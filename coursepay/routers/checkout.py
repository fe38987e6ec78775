from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field

from coursepay.services import payments as payments_service

router = APIRouter()


class VerifyPaymentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str
    uid: str
    course_id: str = Field(alias="courseId")


@router.post("/verify-payment")
async def verify_payment(body: VerifyPaymentRequest):
    """Verify the checkout signature and unlock the course (idempotent)."""
    return await payments_service.verify_checkout(
        body.razorpay_order_id,
        body.razorpay_payment_id,
        body.razorpay_signature,
        body.uid,
        body.course_id,
    )
