"""Connection strategies tried against the upstream push service, in order."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Mapping, Sequence

from loguru import logger

from memberlink_api.core.settings import Settings, get_settings


class TransportKind(str, Enum):
    POLLING = "polling"
    WEBSOCKET = "websocket"


@dataclass(frozen=True)
class ConnectionStrategy:
    name: str
    endpoint_url: str
    transports: tuple[TransportKind, ...]
    timeout_seconds: float
    extra_headers: Mapping[str, str] = field(default_factory=dict)
    socketio_path: str = "socket.io"

    def with_timeout(self, timeout_seconds: float) -> "ConnectionStrategy":
        return replace(self, timeout_seconds=timeout_seconds)

    @property
    def transport_names(self) -> list[str]:
        return [kind.value for kind in self.transports]


def _browser_headers(settings: Settings) -> dict[str, str]:
    origin = settings.upstream_url.rstrip("/")
    return {
        "User-Agent": settings.upstream_user_agent,
        "Origin": origin,
        "Referer": origin,
    }


def _strategy_catalog(settings: Settings) -> dict[str, ConnectionStrategy]:
    url = settings.upstream_url
    path = settings.upstream_socketio_path
    default_timeout = settings.upstream_default_timeout_seconds
    return {
        "polling-only": ConnectionStrategy(
            name="polling-only",
            endpoint_url=url,
            transports=(TransportKind.POLLING,),
            timeout_seconds=default_timeout,
            socketio_path=path,
        ),
        "polling-upgrade": ConnectionStrategy(
            name="polling-upgrade",
            endpoint_url=url,
            transports=(TransportKind.POLLING, TransportKind.WEBSOCKET),
            timeout_seconds=default_timeout,
            socketio_path=path,
        ),
        "polling-browser-headers": ConnectionStrategy(
            name="polling-browser-headers",
            endpoint_url=url,
            transports=(TransportKind.POLLING,),
            timeout_seconds=settings.upstream_header_timeout_seconds,
            extra_headers=_browser_headers(settings),
            socketio_path=path,
        ),
        "websocket-only": ConnectionStrategy(
            name="websocket-only",
            endpoint_url=url,
            transports=(TransportKind.WEBSOCKET,),
            timeout_seconds=default_timeout,
            socketio_path=path,
        ),
    }


def build_strategies(settings: Settings | None = None) -> tuple[ConnectionStrategy, ...]:
    """Resolve ``upstream_strategy_names`` into strategies, preserving configured order."""

    settings = settings or get_settings()
    catalog = _strategy_catalog(settings)
    strategies: list[ConnectionStrategy] = []
    for name in settings.upstream_strategy_names:
        strategy = catalog.get(name)
        if strategy is None:
            logger.warning("Unknown upstream strategy ignored", strategy=name, known=sorted(catalog))
            continue
        if strategy not in strategies:
            strategies.append(strategy)
    return tuple(strategies)


def total_timeout(strategies: Sequence[ConnectionStrategy]) -> float:
    return sum(strategy.timeout_seconds for strategy in strategies)


__all__ = ["ConnectionStrategy", "TransportKind", "build_strategies", "total_timeout"]
