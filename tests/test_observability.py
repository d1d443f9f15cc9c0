from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from memberlink_api.app import create_app
from memberlink_api.core.settings import settings
from memberlink_api.observability.bridge import get_bridge_store
from memberlink_api.observability.tracing import parse_otlp_headers


@pytest.mark.asyncio
async def test_bridge_snapshot_reports_counters() -> None:
    app = create_app()
    store = get_bridge_store()
    store.record_attempt("polling-only", "unavailable")
    store.record_attempt("polling-upgrade", "success")
    store.record_outcome("upstream")
    store.record_validation_failure("invalid_pin")

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/api/v1/observability/bridge")

    assert response.status_code == 200
    assert response.json() == {
        "attempts": {"polling-only": {"unavailable": 1}, "polling-upgrade": {"success": 1}},
        "outcomes": {"upstream": 1},
        "validation_failures": {"invalid_pin": 1},
    }


@pytest.mark.asyncio
async def test_bridge_snapshot_requires_key() -> None:
    app = create_app()

    previous_key = settings.internal_api_key
    settings.internal_api_key = "snapshot-key"

    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            missing = await client.get("/api/v1/observability/bridge")
            valid = await client.get("/api/v1/observability/bridge", headers={"X-API-Key": "snapshot-key"})
        assert missing.status_code == 401
        assert valid.status_code == 200
    finally:
        settings.internal_api_key = previous_key


@pytest.mark.asyncio
async def test_prometheus_metrics_exposes_bridge_counters() -> None:
    app = create_app()
    store = get_bridge_store()
    store.record_attempt("polling-only", "partial")
    store.record_outcome("fallback")
    store.record_validation_failure("invalid_phone")

    previous_key = settings.internal_api_key
    settings.internal_api_key = "prom-key"

    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            unauthorized = await client.get("/api/v1/observability/prometheus")
            response = await client.get("/api/v1/observability/prometheus", headers={"X-API-Key": "prom-key"})
        assert unauthorized.status_code == 401
        assert response.status_code == 200
        body = response.text
        assert 'memberlink_bridge_attempts_total{resolution="partial",strategy="polling-only"} 1' in body
        assert 'memberlink_bridge_outcomes_total{outcome="fallback"} 1' in body
        assert 'memberlink_bridge_validation_failures_total{kind="invalid_phone"} 1' in body
    finally:
        settings.internal_api_key = previous_key


def test_parse_otlp_headers() -> None:
    assert parse_otlp_headers(None) is None
    assert parse_otlp_headers("") is None
    assert parse_otlp_headers("authorization=Bearer abc, x-team = bridge,broken") == {
        "authorization": "Bearer abc",
        "x-team": "bridge",
    }
