"""Error taxonomy for the member authentication bridge."""

from __future__ import annotations

from enum import Enum


class BridgeError(RuntimeError):
    """Base class for bridge failures."""


class ValidationErrorKind(str, Enum):
    INVALID_PHONE = "invalid_phone"
    INVALID_PIN = "invalid_pin"


class ValidationError(BridgeError):
    """Raised when phone or PIN are malformed. No network call is made."""

    def __init__(self, kind: ValidationErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message


class TransportUnavailableError(BridgeError):
    """Raised by a transport when the upstream session cannot be opened or used."""

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


__all__ = [
    "BridgeError",
    "TransportUnavailableError",
    "ValidationError",
    "ValidationErrorKind",
]
