"""Tier classification and final member record formatting."""

from __future__ import annotations

import math

from .models import MemberRecord, MemberSource, MemberTier, PartialMemberRecord

# Lower bounds, inclusive, highest first.
TIER_THRESHOLDS: tuple[tuple[float, MemberTier], ...] = (
    (100_000.0, MemberTier.PLATINUM),
    (50_000.0, MemberTier.GOLD),
    (10_000.0, MemberTier.SILVER),
)

NOT_AVAILABLE = "N/A"


def classify_tier(balance: float) -> MemberTier:
    if balance is None or math.isnan(balance):
        return MemberTier.BRONZE
    for threshold, tier in TIER_THRESHOLDS:
        if balance >= threshold:
            return tier
    return MemberTier.BRONZE


def format_display_balance(balance: float) -> str:
    """Thousands separators and two decimals, matching the th-TH display format."""

    return f"{balance:,.2f}"


def format_member_record(
    record: PartialMemberRecord,
    *,
    source: MemberSource,
    phone: str,
) -> MemberRecord:
    first_name = (record.first_name or "").strip()
    last_name = (record.last_name or "").strip()
    full_name = f"{first_name} {last_name}".strip() or NOT_AVAILABLE
    balance = record.credit_balance if record.credit_balance is not None else 0.0

    return MemberRecord(
        username=record.username or NOT_AVAILABLE,
        phone=record.phone or phone,
        first_name=first_name,
        last_name=last_name,
        full_name=full_name,
        balance=balance,
        tier=classify_tier(balance),
        source=source,
        display_balance=format_display_balance(balance),
    )


__all__ = ["NOT_AVAILABLE", "TIER_THRESHOLDS", "classify_tier", "format_display_balance", "format_member_record"]
