"""Razorpay client access with bounded calls and secret-free error details."""

import asyncio
from functools import lru_cache
from typing import Any, Callable

import razorpay
import requests
from razorpay import errors as razorpay_errors

from coursepay.core.config import get_settings
from coursepay.core.exceptions import GatewayTimeoutError, OrderCreationFailedError
from coursepay.core.logging import get_logger

log = get_logger(__name__)

GATEWAY_ERRORS = (
    razorpay_errors.BadRequestError,
    razorpay_errors.GatewayError,
    razorpay_errors.ServerError,
    requests.RequestException,
)


@lru_cache
def get_razorpay_client() -> razorpay.Client:
    settings = get_settings()
    client = razorpay.Client(auth=(settings.razorpay_key_id, settings.razorpay_key_secret))
    client.set_app_details({"title": "coursepay", "version": "1.0.0"})
    return client


def scrub(text: str) -> str:
    """Remove configured secrets from text headed for logs or responses."""
    settings = get_settings()
    for secret in (settings.razorpay_key_secret, settings.razorpay_webhook_secret):
        if secret:
            text = text.replace(secret, "***")
    return text


async def _call(op: str, fn: Callable[..., dict], data: dict[str, Any]) -> dict:
    timeout = get_settings().gateway_timeout_seconds
    try:
        return await asyncio.wait_for(asyncio.to_thread(fn, data=data), timeout=timeout)
    except asyncio.TimeoutError as exc:
        log.warning("gateway_timeout", op=op, timeout=timeout)
        raise GatewayTimeoutError() from exc
    except GATEWAY_ERRORS as exc:
        detail = scrub(str(exc)) or exc.__class__.__name__
        log.error("gateway_error", op=op, reason=detail)
        raise OrderCreationFailedError(details={"gateway_error": detail}) from exc


async def create_order(data: dict[str, Any]) -> dict:
    return await _call("order.create", get_razorpay_client().order.create, data)


async def create_payment_link(data: dict[str, Any]) -> dict:
    return await _call("payment_link.create", get_razorpay_client().payment_link.create, data)
