from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt

from coursepay.services import orders as orders_service

router = APIRouter()


class CreateOrderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    amount: StrictInt | StrictFloat  # major units, e.g. 499 for ₹499
    uid: str
    course_id: str = Field(alias="courseId")


@router.post("/create-order")
async def create_order(body: CreateOrderRequest):
    """Create a Razorpay order; the client opens checkout with its id and key_id."""
    return await orders_service.create_order(body.amount, body.uid, body.course_id)
