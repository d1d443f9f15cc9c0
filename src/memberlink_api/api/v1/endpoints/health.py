from __future__ import annotations

import time
from typing import AsyncIterator, Dict, Literal

import httpx
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from memberlink_api.api.dependencies.bridge import get_member_bridge
from memberlink_api.core.settings import settings
from memberlink_api.services.bridge import MemberBridgeService


router = APIRouter()


class ComponentStatus(BaseModel):
    status: Literal["ready", "degraded", "error"]
    detail: str | None = Field(default=None, description="Human readable status detail")
    latency_ms: float | None = Field(default=None, description="Round trip latency of the probe")


class UpstreamHealthPayload(BaseModel):
    status: Literal["ready", "degraded", "error"]
    components: Dict[str, ComponentStatus]


async def get_upstream_http_client() -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(
        timeout=settings.upstream_probe_timeout_seconds,
        follow_redirects=True,
    ) as client:
        yield client


@router.get("/healthz", summary="Service health check")
async def service_health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/health/healthz", include_in_schema=False)
async def service_health_alias() -> dict[str, str]:
    """Backward-compatible alias under /health."""

    return await service_health()


@router.get("/health/upstream", summary="Upstream reachability", response_model=UpstreamHealthPayload)
async def upstream_health(
    bridge: MemberBridgeService = Depends(get_member_bridge),
    http_client: httpx.AsyncClient = Depends(get_upstream_http_client),
) -> UpstreamHealthPayload:
    components: Dict[str, ComponentStatus] = {
        "http": await _evaluate_http_component(http_client),
    }

    probe = await bridge.probe_upstream()
    if probe.reachable:
        components["socket"] = ComponentStatus(
            status="ready",
            detail=f"Connected using {probe.strategy}",
            latency_ms=probe.latency_ms,
        )
    else:
        components["socket"] = ComponentStatus(status="error", detail=probe.detail)

    # The bridge still answers with fallback data when the socket is down.
    status: Literal["ready", "degraded", "error"] = "ready"
    if any(component.status != "ready" for component in components.values()):
        status = "degraded" if bridge.settings.fallback_enabled else "error"
    return UpstreamHealthPayload(status=status, components=components)


async def _evaluate_http_component(client: httpx.AsyncClient) -> ComponentStatus:
    started = time.perf_counter()
    try:
        response = await client.get(settings.upstream_url)
    except httpx.HTTPError as error:
        return ComponentStatus(status="error", detail=f"Upstream unreachable ({error.__class__.__name__})")

    latency_ms = round((time.perf_counter() - started) * 1000, 1)
    if response.status_code >= 500:
        return ComponentStatus(status="error", detail=f"HTTP {response.status_code}", latency_ms=latency_ms)
    return ComponentStatus(status="ready", detail=f"HTTP {response.status_code}", latency_ms=latency_ms)
