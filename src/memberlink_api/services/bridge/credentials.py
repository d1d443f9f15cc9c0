"""Phone/PIN normalization and validation."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict

from .errors import ValidationError, ValidationErrorKind

_NON_DIGIT = re.compile(r"\D")
_THAI_MOBILE = re.compile(r"^0[689]\d{8}$")
_PIN = re.compile(r"^\d{4}$")


@dataclass(frozen=True)
class Credentials:
    """Validated, digits-only credentials."""

    phone: str
    pin: str

    def login_payload(self) -> Dict[str, str]:
        return {"tel": self.phone, "pin": self.pin}


def normalize_digits(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    return _NON_DIGIT.sub("", value)


def is_valid_phone(phone: Any) -> bool:
    return bool(_THAI_MOBILE.match(normalize_digits(phone)))


def is_valid_pin(pin: Any) -> bool:
    return bool(_PIN.match(normalize_digits(pin)))


def validate_credentials(phone: Any, pin: Any) -> Credentials:
    """Normalize raw phone/PIN input, raising ``ValidationError`` when malformed."""

    if not is_valid_phone(phone):
        raise ValidationError(
            ValidationErrorKind.INVALID_PHONE,
            "Invalid phone number format (must be a 10 digit Thai mobile number starting with 06, 08 or 09)",
        )

    if not is_valid_pin(pin):
        raise ValidationError(ValidationErrorKind.INVALID_PIN, "PIN must be exactly 4 digits")

    return Credentials(phone=normalize_digits(phone), pin=normalize_digits(pin))


__all__ = ["Credentials", "is_valid_phone", "is_valid_pin", "normalize_digits", "validate_credentials"]
