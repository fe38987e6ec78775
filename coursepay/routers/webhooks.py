from fastapi import APIRouter, Header, Request

from coursepay.services import payments as payments_service

router = APIRouter()


@router.post("/razorpay-webhook")
async def razorpay_webhook(
    request: Request,
    x_razorpay_signature: str | None = Header(default=None, alias="X-Razorpay-Signature"),
):
    """Razorpay webhook: payment.captured -> unlock course. Reads the unparsed body."""
    body = await request.body()
    await payments_service.handle_webhook(body, x_razorpay_signature)
    return {"ok": True}
