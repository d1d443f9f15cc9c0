"""Deterministic synthetic member records for when the upstream is unreachable."""

from __future__ import annotations

import random

from .credentials import Credentials
from .models import MemberRecord, MemberSource
from .tiers import classify_tier, format_display_balance

FALLBACK_FIRST_NAMES: tuple[str, ...] = (
    "Somchai",
    "Somsak",
    "Malee",
    "Suda",
    "Niran",
    "Pranee",
    "Anan",
    "Kanya",
)
FALLBACK_LAST_NAMES: tuple[str, ...] = (
    "Jaidee",
    "Srisuk",
    "Wongsa",
    "Thongdee",
    "Rattana",
    "Chaiyo",
    "Bunmee",
)

FALLBACK_BALANCE_FLOOR = 1_000.0
FALLBACK_BALANCE_SPAN = 149_000
FALLBACK_BALANCE_MULTIPLIER = 7_919


def fallback_seed(credentials: Credentials) -> int:
    return int(credentials.phone[-4:]) + int(credentials.pin)


def fallback_balance_base(credentials: Credentials) -> float:
    seed = fallback_seed(credentials)
    return FALLBACK_BALANCE_FLOOR + float((seed * FALLBACK_BALANCE_MULTIPLIER) % FALLBACK_BALANCE_SPAN)


def synthesize_fallback_member(credentials: Credentials, *, fuzz: float = 0.0) -> MemberRecord:
    """Build a full member record from the credentials alone.

    With ``fuzz`` at 0 the balance is exactly ``fallback_balance_base``. A positive
    ``fuzz`` adds up to +/- that amount, drawn from a generator seeded with the same
    seed, so repeated calls still agree.
    """

    seed = fallback_seed(credentials)
    first_name = FALLBACK_FIRST_NAMES[seed % len(FALLBACK_FIRST_NAMES)]
    last_name = FALLBACK_LAST_NAMES[seed % len(FALLBACK_LAST_NAMES)]

    balance = fallback_balance_base(credentials)
    if fuzz > 0:
        balance = max(FALLBACK_BALANCE_FLOOR, balance + random.Random(seed).uniform(-fuzz, fuzz))
    balance = round(balance, 2)

    return MemberRecord(
        username=f"member{credentials.phone[-4:]}",
        phone=credentials.phone,
        first_name=first_name,
        last_name=last_name,
        full_name=f"{first_name} {last_name}",
        balance=balance,
        tier=classify_tier(balance),
        source=MemberSource.FALLBACK,
        display_balance=format_display_balance(balance),
    )


__all__ = [
    "FALLBACK_BALANCE_FLOOR",
    "FALLBACK_FIRST_NAMES",
    "FALLBACK_LAST_NAMES",
    "fallback_balance_base",
    "fallback_seed",
    "synthesize_fallback_member",
]
