"""Startup configuration checks."""

import base64
import json

import pytest

from coursepay.core.config import ConfigurationError, Settings, validate_settings

SERVICE_ACCOUNT = {"type": "service_account", "project_id": "demo", "client_email": "svc@demo.iam"}


def _settings(**overrides) -> Settings:
    values = {
        "RAZORPAY_KEY_ID": "rzp_test",
        "RAZORPAY_KEY_SECRET": "secret",
        "RAZORPAY_WEBHOOK_SECRET": "whsecret",
        "DATASTORE_BACKEND": "memory",
        "CAPABILITIES": "",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_complete_configuration_is_valid():
    settings = _settings()
    validate_settings(settings)
    assert settings.capabilities == [
        "order-creation",
        "payment-link-creation",
        "checkout-verification",
        "webhook-ingestion",
    ]
    assert settings.minor_units == 100


def test_missing_gateway_secret_is_fatal():
    with pytest.raises(ConfigurationError, match="RAZORPAY_KEY_SECRET"):
        validate_settings(_settings(RAZORPAY_KEY_SECRET=""))


def test_webhook_secret_only_required_for_webhooks():
    settings = _settings(RAZORPAY_WEBHOOK_SECRET="", CAPABILITIES="order-creation,checkout-verification")
    validate_settings(settings)
    with pytest.raises(ConfigurationError, match="RAZORPAY_WEBHOOK_SECRET"):
        validate_settings(_settings(RAZORPAY_WEBHOOK_SECRET=""))


def test_webhook_only_deployment_needs_no_key():
    settings = _settings(RAZORPAY_KEY_ID="", RAZORPAY_KEY_SECRET="", CAPABILITIES='["webhook-ingestion"]')
    validate_settings(settings)
    assert settings.capabilities == ["webhook-ingestion"]


def test_unknown_capability_and_backend():
    with pytest.raises(ConfigurationError, match="unknown capabilities: refunds"):
        validate_settings(_settings(CAPABILITIES="order-creation,refunds"))
    with pytest.raises(ConfigurationError, match="DATASTORE_BACKEND"):
        validate_settings(_settings(DATASTORE_BACKEND="sqlite"))


def test_unsupported_currency():
    with pytest.raises(ConfigurationError, match="CURRENCY"):
        validate_settings(_settings(CURRENCY="XYZ"))


def test_firebase_inline_credentials():
    settings = _settings(
        DATASTORE_BACKEND="firebase",
        FIREBASE_SERVICE_ACCOUNT=json.dumps(SERVICE_ACCOUNT),
        FIREBASE_DATABASE_URL="https://demo.firebaseio.com",
    )
    validate_settings(settings)
    assert settings.firebase_credentials() == SERVICE_ACCOUNT


def test_firebase_base64_credentials():
    encoded = base64.b64encode(json.dumps(SERVICE_ACCOUNT).encode()).decode()
    settings = _settings(
        DATASTORE_BACKEND="firebase",
        FIREBASE_SERVICE_ACCOUNT_BASE64=encoded,
        FIREBASE_DATABASE_URL="https://demo.firebaseio.com",
    )
    validate_settings(settings)
    assert settings.firebase_credentials()["project_id"] == "demo"


@pytest.mark.parametrize(
    "overrides,message",
    [
        ({}, "FIREBASE_SERVICE_ACCOUNT or FIREBASE_SERVICE_ACCOUNT_BASE64 missing"),
        ({"FIREBASE_SERVICE_ACCOUNT": "{not json"}, "not valid JSON"),
        ({"FIREBASE_SERVICE_ACCOUNT": "[1]"}, "must be a JSON object"),
        ({"FIREBASE_SERVICE_ACCOUNT_BASE64": "%%%"}, "not valid base64"),
    ],
)
def test_firebase_bad_credentials(overrides, message):
    settings = _settings(
        DATASTORE_BACKEND="firebase",
        FIREBASE_DATABASE_URL="https://demo.firebaseio.com",
        **overrides,
    )
    with pytest.raises(ConfigurationError, match=message):
        validate_settings(settings)


def test_firebase_requires_database_url():
    settings = _settings(DATASTORE_BACKEND="firebase", FIREBASE_SERVICE_ACCOUNT=json.dumps(SERVICE_ACCOUNT))
    with pytest.raises(ConfigurationError, match="FIREBASE_DATABASE_URL"):
        validate_settings(settings)


def test_cors_lists():
    settings = _settings(CORS_ORIGINS="https://a.example, https://b.example", CORS_METHODS="get,post")
    assert settings.cors_origins == ["https://a.example", "https://b.example"]
    assert settings.cors_methods == ["GET", "POST"]
