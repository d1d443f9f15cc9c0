"""Upstream push event aliases and payload normalization.

The upstream emits the same semantic message under several historical event
names and several payload shapes. Every accepted name maps to one of two
categories, and every payload is classified into an explicit variant before any
field is read.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Union

LOGIN_EVENT = "login"

DEFAULT_REJECTION_REASON = "phone or PIN incorrect"


class EventCategory(str, Enum):
    IDENTITY = "identity"
    BALANCE = "balance"


EVENT_ALIASES: dict[str, EventCategory] = {
    "cus return": EventCategory.IDENTITY,
    "cus_return": EventCategory.IDENTITY,
    "customer_return": EventCategory.IDENTITY,
    "login_result": EventCategory.IDENTITY,
    "login return": EventCategory.IDENTITY,
    "user_data": EventCategory.IDENTITY,
    "credit_push": EventCategory.BALANCE,
    "credit push": EventCategory.BALANCE,
    "credit_update": EventCategory.BALANCE,
    "balance": EventCategory.BALANCE,
    "balance_update": EventCategory.BALANCE,
}

NESTED_BALANCE_KEYS: tuple[str, ...] = ("total_credit", "credit", "balance", "amount", "credit_balance")


def categorize_event(name: str) -> EventCategory | None:
    return EVENT_ALIASES.get(name)


# Identity payloads


@dataclass(frozen=True)
class IdentityAccepted:
    username: str | None
    first_name: str | None
    last_name: str | None
    phone: str | None = None


@dataclass(frozen=True)
class IdentityRejected:
    reason: str


@dataclass(frozen=True)
class IdentityUnrecognized:
    pass


IdentityPayload = Union[IdentityAccepted, IdentityRejected, IdentityUnrecognized]


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_identity_payload(payload: Any) -> IdentityPayload:
    """Classify a ``{success, data: {mm_user|username, first_name, last_name, message?}}`` payload."""

    if not isinstance(payload, Mapping):
        return IdentityUnrecognized()

    data = payload.get("data")
    data = data if isinstance(data, Mapping) else {}
    success = payload.get("success")

    if success is False:
        return IdentityRejected(reason=_text(data.get("message")) or DEFAULT_REJECTION_REASON)

    if success and data:
        return IdentityAccepted(
            username=_text(data.get("mm_user")) or _text(data.get("username")),
            first_name=_text(data.get("first_name")),
            last_name=_text(data.get("last_name")),
            phone=_text(data.get("tel")) or _text(data.get("phone")),
        )

    return IdentityUnrecognized()


# Balance payloads


@dataclass(frozen=True)
class NumericBalance:
    value: Any


@dataclass(frozen=True)
class NestedBalance:
    key: str
    value: Any


@dataclass(frozen=True)
class FlatBalance:
    value: Any


@dataclass(frozen=True)
class UnrecognizedBalance:
    pass


BalancePayload = Union[NumericBalance, NestedBalance, FlatBalance, UnrecognizedBalance]


def classify_balance_payload(payload: Any) -> BalancePayload:
    if isinstance(payload, bool):
        return UnrecognizedBalance()
    if isinstance(payload, (int, float, str)):
        return NumericBalance(payload)
    if not isinstance(payload, Mapping):
        return UnrecognizedBalance()

    data = payload.get("data")
    if isinstance(data, Mapping):
        for key in NESTED_BALANCE_KEYS:
            if data.get(key) is not None:
                return NestedBalance(key, data[key])
    elif isinstance(data, (int, float, str)) and not isinstance(data, bool):
        return NestedBalance("data", data)

    if payload.get("balance") is not None:
        return FlatBalance(payload["balance"])

    return UnrecognizedBalance()


def coerce_balance(raw: Any) -> float:
    """Coerce to a non-negative finite float. Anything unparsable becomes 0."""

    if isinstance(raw, bool) or raw is None:
        return 0.0
    if isinstance(raw, str):
        raw = raw.replace(",", "").strip()
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(value) or math.isinf(value) or value < 0:
        return 0.0
    return value


def normalize_balance(payload: Any) -> float:
    variant = classify_balance_payload(payload)
    if isinstance(variant, (NumericBalance, NestedBalance, FlatBalance)):
        return coerce_balance(variant.value)
    return 0.0


__all__ = [
    "BalancePayload",
    "DEFAULT_REJECTION_REASON",
    "EVENT_ALIASES",
    "EventCategory",
    "FlatBalance",
    "IdentityAccepted",
    "IdentityPayload",
    "IdentityRejected",
    "IdentityUnrecognized",
    "LOGIN_EVENT",
    "NESTED_BALANCE_KEYS",
    "NestedBalance",
    "NumericBalance",
    "UnrecognizedBalance",
    "categorize_event",
    "classify_balance_payload",
    "coerce_balance",
    "normalize_balance",
    "parse_identity_payload",
]
