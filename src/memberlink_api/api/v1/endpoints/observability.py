"""Observability endpoints for member bridge telemetry and Prometheus metrics."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from memberlink_api.api.dependencies.security import require_internal_api_key
from memberlink_api.observability.bridge import get_bridge_store


router = APIRouter(prefix="/observability", tags=["Observability"])


@router.get(
    "/bridge",
    dependencies=[Depends(require_internal_api_key)],
    summary="Member bridge observability snapshot",
)
async def get_bridge_snapshot() -> dict[str, object]:
    """Attempts per strategy, outcomes per source and validation failures (requires internal API key)."""
    return get_bridge_store().snapshot().as_dict()


def _format_metric(name: str, description: str, value: int | float, labels: dict[str, str] | None = None) -> list[str]:
    label_fragment = ""
    if labels:
        formatted = ",".join(f'{key}="{val}"' for key, val in sorted(labels.items()))
        label_fragment = f"{{{formatted}}}"
    return [
        f"# HELP {name} {description}",
        f"# TYPE {name} gauge",
        f"{name}{label_fragment} {value}",
    ]


@router.get(
    "/prometheus",
    dependencies=[Depends(require_internal_api_key)],
    summary="Prometheus-formatted observability metrics",
    response_class=PlainTextResponse,
)
async def get_prometheus_metrics() -> PlainTextResponse:
    snapshot = get_bridge_store().snapshot()
    lines: list[str] = []

    for strategy, counts in sorted(snapshot.attempts.items()):
        for resolution, value in sorted(counts.items()):
            lines.extend(
                _format_metric(
                    "memberlink_bridge_attempts_total",
                    "Upstream session attempts by strategy and resolution",
                    value,
                    {"strategy": strategy, "resolution": resolution},
                )
            )

    for outcome, value in sorted(snapshot.outcomes.items()):
        lines.extend(
            _format_metric(
                "memberlink_bridge_outcomes_total",
                "Member authentication outcomes by source",
                value,
                {"outcome": outcome},
            )
        )

    for kind, value in sorted(snapshot.validation_failures.items()):
        lines.extend(
            _format_metric(
                "memberlink_bridge_validation_failures_total",
                "Rejected credential inputs by kind",
                value,
                {"kind": kind},
            )
        )

    return PlainTextResponse("\n".join(lines) + "\n")
