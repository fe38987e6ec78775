"""
Application entry point.

Run locally:
    uvicorn coursepay.main:app --reload --port 3000
or
    coursepay   (listens on PORT)

Configuration is validated at import, so a bad environment stops the process
before the server binds.
"""
import time
import uuid

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from coursepay.core.config import get_settings, validate_settings
from coursepay.core.exceptions import (
    AppError,
    app_exception_handler,
    generic_exception_handler,
    validation_exception_handler,
)
from coursepay.core.logging import bind_request_id, configure_logging, get_logger
from coursepay.routers import checkout, orders, payment_links, webhooks
from coursepay.storage.base import get_entitlement_store

settings = get_settings()
configure_logging(debug=settings.debug)
log = get_logger(__name__)
validate_settings(settings)

CAPABILITY_ROUTERS = {
    "order-creation": orders.router,
    "payment-link-creation": payment_links.router,
    "checkout-verification": checkout.router,
    "webhook-ingestion": webhooks.router,
}

app = FastAPI(
    title="coursepay",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=settings.cors_methods,
    allow_headers=settings.cors_headers,
)


@app.middleware("http")
async def request_id_middleware(request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    bind_request_id(request_id)
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    log.info(
        "request",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round(duration_ms, 2),
    )
    response.headers["X-Request-ID"] = request_id
    return response


app.add_exception_handler(AppError, app_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Routers, one per enabled capability
for capability in settings.capabilities:
    app.include_router(CAPABILITY_ROUTERS[capability], tags=[capability])


@app.on_event("startup")
async def startup():
    if settings.sentry_dsn:
        import sentry_sdk
        sentry_sdk.init(dsn=settings.sentry_dsn, environment=settings.env, traces_sample_rate=0.1)
        log.info("startup", msg="Sentry enabled")
    await get_entitlement_store().init()
    log.info(
        "startup",
        msg="Entitlement store ready",
        backend=settings.datastore_backend,
        capabilities=settings.capabilities,
    )


@app.get("/health")
async def health():
    """Health check for load balancers and monitoring."""
    return {"status": "ok"}


def run() -> None:
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
