"""Member account linking endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from memberlink_api.api.dependencies.bridge import get_member_bridge
from memberlink_api.schemas.member import (
    MemberAuthenticateRequest,
    MemberAuthenticateResponse,
    MemberResponse,
)
from memberlink_api.services.bridge import (
    CredentialRejected,
    MemberBridgeService,
    MemberSource,
    Success,
    ValidationError,
)

router = APIRouter(prefix="/members", tags=["Members"])

CREDENTIALS_INCORRECT = "phone or PIN incorrect"


@router.post(
    "/authenticate",
    response_model=MemberAuthenticateResponse,
    summary="Log in to the upstream platform and return the member record",
)
async def authenticate_member(
    payload: MemberAuthenticateRequest,
    bridge: MemberBridgeService = Depends(get_member_bridge),
) -> MemberAuthenticateResponse:
    try:
        outcome = await bridge.authenticate(payload.phone, payload.pin)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": exc.kind.value, "message": exc.message},
        ) from exc

    if isinstance(outcome, CredentialRejected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "credentials_rejected", "message": CREDENTIALS_INCORRECT, "upstreamReason": outcome.reason},
        )
    if not isinstance(outcome, Success):
        # Only reachable with fallback disabled.
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"code": "upstream_unavailable", "message": outcome.reason},
        )

    member = outcome.member
    return MemberAuthenticateResponse(
        member=MemberResponse.from_record(member),
        isFallback=member.source is MemberSource.FALLBACK,
    )
