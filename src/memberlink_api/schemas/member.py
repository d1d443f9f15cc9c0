from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from memberlink_api.services.bridge import MemberRecord


class MemberAuthenticateRequest(BaseModel):
    phone: str = Field(..., description="Member phone number; non-digits are ignored")
    pin: str = Field(..., description="Four digit member PIN")

    model_config = ConfigDict(extra="ignore")


class MemberResponse(BaseModel):
    username: str
    phone: str
    firstName: str
    lastName: str
    fullName: str
    balance: float
    displayBalance: str = Field(..., description="Display-only formatted balance")
    tier: Literal["BRONZE", "SILVER", "GOLD", "PLATINUM"]
    source: Literal["upstream", "upstream-partial", "fallback"]
    lastUpdated: datetime

    @classmethod
    def from_record(cls, record: MemberRecord) -> "MemberResponse":
        return cls(
            username=record.username,
            phone=record.phone,
            firstName=record.first_name,
            lastName=record.last_name,
            fullName=record.full_name,
            balance=record.balance,
            displayBalance=record.display_balance,
            tier=record.tier.value,
            source=record.source.value,
            lastUpdated=record.last_updated,
        )


class MemberAuthenticateResponse(BaseModel):
    member: MemberResponse
    isFallback: bool = Field(..., description="True when the upstream was unreachable and synthetic data was used")
