import secrets

from fastapi import Header, HTTPException, status

from memberlink_api.core.settings import settings


async def require_internal_api_key(api_key: str = Header("", alias="X-API-Key")) -> None:
    """Guard operator endpoints. An empty ``INTERNAL_API_KEY`` leaves them open (local development)."""

    expected = settings.internal_api_key
    if not expected:
        return

    if not secrets.compare_digest(api_key.encode(), expected.encode()):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
        )
