import base64
import binascii
import json
from functools import lru_cache
from typing import Any, List

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

CAPABILITIES = (
    "order-creation",
    "payment-link-creation",
    "checkout-verification",
    "webhook-ingestion",
)
GATEWAY_CAPABILITIES = ("order-creation", "payment-link-creation", "checkout-verification")
DATASTORE_BACKENDS = ("firebase", "mongo", "memory")
VERIFY_SOURCES = ("checkout", "standard_checkout")

# Minor units per major unit, as expected by the gateway's amount field
CURRENCY_MINOR_UNITS = {"INR": 100}

_DEFAULT_CORS = ["http://localhost:3000", "http://localhost:5173"]


class ConfigurationError(Exception):
    """Required configuration is missing or unparsable. Fatal at startup."""


def _parse_list(v: Any, default: List[str]) -> List[str]:
    try:
        if v is None or v == "":
            return default.copy()
        if isinstance(v, list):
            return [x for x in v if isinstance(x, str) and x.strip()]
        s = str(v).strip()
        if not s:
            return default.copy()
        if s.startswith("["):
            out = json.loads(s)
            return [x.strip() for x in out if isinstance(x, str) and x.strip()] or default.copy()
        return [x.strip() for x in s.split(",") if x.strip()] or default.copy()
    except (ValueError, TypeError):
        return default.copy()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    env: str = Field(default="development", alias="ENV")
    debug: bool = Field(default=False, alias="DEBUG")
    port: int = Field(default=3000, alias="PORT")

    # Enabled capabilities: env as string, exposed as list
    capabilities_raw: str = Field(
        default=",".join(CAPABILITIES),
        alias="CAPABILITIES",
        description="Comma-separated or JSON list",
    )

    # Razorpay
    razorpay_key_id: str = Field(default="", alias="RAZORPAY_KEY_ID")
    razorpay_key_secret: str = Field(default="", alias="RAZORPAY_KEY_SECRET")
    razorpay_webhook_secret: str = Field(default="", alias="RAZORPAY_WEBHOOK_SECRET")
    currency: str = Field(default="INR", alias="CURRENCY")
    expose_key_id: bool = Field(default=True, alias="EXPOSE_KEY_ID")
    verify_source: str = Field(default="checkout", alias="VERIFY_SOURCE")
    payment_link_callback_url: str | None = Field(default=None, alias="PAYMENT_LINK_CALLBACK_URL")
    gateway_timeout_seconds: float = Field(default=10.0, alias="GATEWAY_TIMEOUT_SECONDS")

    # Entitlement datastore
    datastore_backend: str = Field(default="firebase", alias="DATASTORE_BACKEND")
    firebase_service_account: str | None = Field(default=None, alias="FIREBASE_SERVICE_ACCOUNT")
    firebase_service_account_base64: str | None = Field(
        default=None, alias="FIREBASE_SERVICE_ACCOUNT_BASE64"
    )
    firebase_database_url: str | None = Field(default=None, alias="FIREBASE_DATABASE_URL")
    mongodb_uri: str = Field(default="mongodb://localhost:27017", alias="MONGODB_URI")
    mongodb_db_name: str = Field(default="coursepay", alias="MONGODB_DB_NAME")
    store_timeout_seconds: float = Field(default=5.0, alias="STORE_TIMEOUT_SECONDS")

    # Sentry
    sentry_dsn: str | None = Field(default=None, alias="SENTRY_DSN")

    # CORS
    cors_origins_raw: str = Field(
        default=",".join(_DEFAULT_CORS),
        alias="CORS_ORIGINS",
        description="Comma-separated or JSON list",
    )
    cors_methods_raw: str = Field(default="GET,POST", alias="CORS_METHODS")
    cors_headers_raw: str = Field(
        default="Content-Type,X-Razorpay-Signature,X-Request-ID",
        alias="CORS_HEADERS",
    )

    @property
    def capabilities(self) -> List[str]:
        return _parse_list(self.capabilities_raw, list(CAPABILITIES))

    @property
    def cors_origins(self) -> List[str]:
        return _parse_list(self.cors_origins_raw, _DEFAULT_CORS)

    @property
    def cors_methods(self) -> List[str]:
        return [m.upper() for m in _parse_list(self.cors_methods_raw, ["GET", "POST"])]

    @property
    def cors_headers(self) -> List[str]:
        return _parse_list(self.cors_headers_raw, ["Content-Type"])

    @property
    def minor_units(self) -> int:
        return CURRENCY_MINOR_UNITS[self.currency.upper()]

    def firebase_credentials(self) -> dict[str, Any]:
        """Service account dict from inline JSON, falling back to base64-encoded JSON."""
        if self.firebase_service_account:
            raw = self.firebase_service_account
            origin = "FIREBASE_SERVICE_ACCOUNT"
        elif self.firebase_service_account_base64:
            origin = "FIREBASE_SERVICE_ACCOUNT_BASE64"
            try:
                raw = base64.b64decode(self.firebase_service_account_base64, validate=True).decode("utf-8")
            except (binascii.Error, UnicodeDecodeError) as exc:
                raise ConfigurationError(f"{origin} is not valid base64") from exc
        else:
            raise ConfigurationError(
                "FIREBASE_SERVICE_ACCOUNT or FIREBASE_SERVICE_ACCOUNT_BASE64 missing"
            )
        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise ConfigurationError(f"{origin} is not valid JSON") from exc
        if not isinstance(data, dict):
            raise ConfigurationError(f"{origin} must be a JSON object")
        return data


def validate_settings(settings: Settings) -> None:
    """Raise ConfigurationError listing every problem; called before serving."""
    problems: list[str] = []
    capabilities = settings.capabilities
    unknown = [c for c in capabilities if c not in CAPABILITIES]
    if unknown:
        problems.append(f"unknown capabilities: {', '.join(unknown)}")
    if not capabilities:
        problems.append("CAPABILITIES is empty")

    if any(c in GATEWAY_CAPABILITIES for c in capabilities):
        if not settings.razorpay_key_id:
            problems.append("RAZORPAY_KEY_ID missing")
        if not settings.razorpay_key_secret:
            problems.append("RAZORPAY_KEY_SECRET missing")
    if "webhook-ingestion" in capabilities and not settings.razorpay_webhook_secret:
        problems.append("RAZORPAY_WEBHOOK_SECRET missing")

    if settings.currency.upper() not in CURRENCY_MINOR_UNITS:
        problems.append(f"unsupported CURRENCY: {settings.currency}")
    if settings.verify_source not in VERIFY_SOURCES:
        problems.append(f"VERIFY_SOURCE must be one of {', '.join(VERIFY_SOURCES)}")
    if settings.gateway_timeout_seconds <= 0 or settings.store_timeout_seconds <= 0:
        problems.append("timeouts must be positive")

    if settings.datastore_backend not in DATASTORE_BACKENDS:
        problems.append(f"unknown DATASTORE_BACKEND: {settings.datastore_backend}")
    elif settings.datastore_backend == "firebase":
        try:
            settings.firebase_credentials()
        except ConfigurationError as exc:
            problems.append(str(exc))
        if not settings.firebase_database_url:
            problems.append("FIREBASE_DATABASE_URL missing")

    if problems:
        raise ConfigurationError("; ".join(problems))


@lru_cache
def get_settings() -> Settings:
    try:
        return Settings()
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc
