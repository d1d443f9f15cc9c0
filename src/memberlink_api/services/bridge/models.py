"""Records and outcomes produced by the member authentication bridge."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Union


class MemberTier(str, Enum):
    BRONZE = "BRONZE"
    SILVER = "SILVER"
    GOLD = "GOLD"
    PLATINUM = "PLATINUM"


class MemberSource(str, Enum):
    UPSTREAM = "upstream"
    UPSTREAM_PARTIAL = "upstream-partial"
    FALLBACK = "fallback"


@dataclass
class PartialMemberRecord:
    """Fields gathered from upstream push events while an attempt is in flight.

    Updates are last-writer-wins per field, but a ``None`` update never clears a
    field that is already set, so presence only ever grows.
    """

    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    credit_balance: float | None = None
    events_seen: int = 0

    def merge(self, **fields: Any) -> None:
        for name, value in fields.items():
            if value is None:
                continue
            setattr(self, name, value)

    def note_activity(self) -> None:
        self.events_seen += 1

    @property
    def has_identity(self) -> bool:
        return bool(self.username or self.first_name or self.last_name)

    @property
    def has_balance(self) -> bool:
        return self.credit_balance is not None

    @property
    def is_complete(self) -> bool:
        return self.has_identity and self.has_balance

    @property
    def has_data(self) -> bool:
        return self.events_seen > 0 or self.has_identity or self.has_balance


@dataclass(frozen=True)
class MemberRecord:
    username: str
    phone: str
    first_name: str
    last_name: str
    full_name: str
    balance: float
    tier: MemberTier
    source: MemberSource
    display_balance: str
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc), compare=False)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "username": self.username,
            "phone": self.phone,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "fullName": self.full_name,
            "balance": self.balance,
            "displayBalance": self.display_balance,
            "tier": self.tier.value,
            "source": self.source.value,
            "lastUpdated": self.last_updated.isoformat(),
        }


@dataclass(frozen=True)
class Success:
    member: MemberRecord


@dataclass(frozen=True)
class CredentialRejected:
    reason: str


@dataclass(frozen=True)
class Unavailable:
    reason: str


AuthenticationOutcome = Union[Success, CredentialRejected, Unavailable]


__all__ = [
    "AuthenticationOutcome",
    "CredentialRejected",
    "MemberRecord",
    "MemberSource",
    "MemberTier",
    "PartialMemberRecord",
    "Success",
    "Unavailable",
]
