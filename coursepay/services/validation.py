"""Input checks shared by order creation and payment confirmation."""

import math
import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from coursepay.core.exceptions import InvalidPayloadError

# Characters the realtime datastore rejects in path segments
FORBIDDEN_KEY_CHARS = frozenset(".#$[]/")
MAX_IDENTIFIER_LENGTH = 256
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def require_string(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidPayloadError(f"{field} is required", details={"field": field})
    return value


def require_identifier(value: Any, field: str) -> str:
    value = require_string(value, field)
    if (
        len(value) > MAX_IDENTIFIER_LENGTH
        or any(c in FORBIDDEN_KEY_CHARS for c in value)
        or any(ord(c) < 32 for c in value)
    ):
        raise InvalidPayloadError(f"{field} is not a valid identifier", details={"field": field})
    return value


def require_email(value: Any) -> str:
    value = require_string(value, "email").strip()
    if not EMAIL_RE.match(value):
        raise InvalidPayloadError("email is not a valid address", details={"field": "email"})
    return value


def to_minor_units(amount: Any, factor: int) -> int:
    """Convert a positive major-unit amount (e.g. rupees) to gateway minor units (paise)."""
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise InvalidPayloadError("amount must be a number", details={"field": "amount"})
    if not math.isfinite(amount) or amount <= 0:
        raise InvalidPayloadError("amount must be a positive number", details={"field": "amount"})
    minor = int((Decimal(str(amount)) * factor).to_integral_value(rounding=ROUND_HALF_UP))
    if minor < 1:
        raise InvalidPayloadError("amount is below the smallest currency unit", details={"field": "amount"})
    return minor
