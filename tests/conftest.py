import asyncio
import sys
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio


def _configure_path() -> None:
    src_path = Path(__file__).resolve().parents[1] / "src"
    if src_path.exists():
        sys.path.insert(0, str(src_path))


_configure_path()

from memberlink_api.app import create_app  # noqa: E402
from memberlink_api.api.dependencies.bridge import get_member_bridge  # noqa: E402
from memberlink_api.core.settings import Settings  # noqa: E402
from memberlink_api.observability.bridge import get_bridge_store  # noqa: E402
from memberlink_api.services.bridge import (  # noqa: E402
    ConnectionStrategy,
    MemberBridgeService,
    TransportKind,
    TransportUnavailableError,
)


class FakeTransport:
    """In-memory stand-in for an upstream session.

    ``script`` is a list of ``(delay_seconds, action, *args)`` steps played after
    the login event is emitted. Actions: ``"event"`` (name, payload) and
    ``"disconnect"`` (reason).
    """

    def __init__(
        self,
        *,
        script: list[tuple[Any, ...]] | None = None,
        connect_error: str | None = None,
        connect_delay: float = 0.0,
    ) -> None:
        self.script = script or []
        self.connect_error = connect_error
        self.connect_delay = connect_delay
        self.handlers: dict[str, Any] = {}
        self.catch_all = None
        self.disconnect_handler = None
        self.emitted: list[tuple[str, Any]] = []
        self.strategy: ConnectionStrategy | None = None
        self.connected = False
        self.closed = False
        self.close_calls = 0
        self._player: asyncio.Task | None = None

    def on_event(self, name, handler) -> None:
        self.handlers[name] = handler

    def on_any_event(self, handler) -> None:
        self.catch_all = handler

    def on_disconnect(self, handler) -> None:
        self.disconnect_handler = handler

    async def connect(self, strategy: ConnectionStrategy) -> None:
        self.strategy = strategy
        if self.connect_delay:
            await asyncio.sleep(self.connect_delay)
        if self.connect_error:
            raise TransportUnavailableError(self.connect_error, url=strategy.endpoint_url)
        self.connected = True

    async def emit(self, name: str, payload: Any) -> None:
        self.emitted.append((name, payload))
        if name == "login" and self.script:
            self._player = asyncio.create_task(self._play())

    async def _play(self) -> None:
        for delay, action, *args in self.script:
            if delay:
                await asyncio.sleep(delay)
            if action == "event":
                await self.fire(*args)
            elif action == "disconnect":
                await self.drop(*args)

    async def fire(self, name: str, payload: Any = None) -> None:
        if self.closed:
            return
        handler = self.handlers.get(name)
        if handler is not None:
            await handler(payload)
        elif self.catch_all is not None:
            await self.catch_all(name, payload)

    async def drop(self, reason: str = "transport close") -> None:
        if self.closed or self.disconnect_handler is None:
            return
        self.connected = False
        await self.disconnect_handler(reason)

    async def close(self) -> None:
        self.close_calls += 1
        self.closed = True
        self.connected = False
        if self._player is not None and not self._player.done():
            self._player.cancel()


class FakeTransportFactory:
    """Hands out one scripted transport per strategy call, in order."""

    def __init__(self, *transports: FakeTransport) -> None:
        self._pending = list(transports)
        self.created: list[FakeTransport] = []
        self.strategies: list[ConnectionStrategy] = []

    def queue(self, *transports: FakeTransport) -> None:
        self._pending.extend(transports)

    def __call__(self, strategy: ConnectionStrategy) -> FakeTransport:
        transport = self._pending.pop(0) if self._pending else FakeTransport(connect_error="no scripted transport")
        self.created.append(transport)
        self.strategies.append(strategy)
        return transport


def make_strategy(name: str = "polling-only", timeout_seconds: float = 0.2) -> ConnectionStrategy:
    return ConnectionStrategy(
        name=name,
        endpoint_url="https://upstream.test",
        transports=(TransportKind.POLLING,),
        timeout_seconds=timeout_seconds,
    )


@pytest.fixture
def strategy_builder():
    return make_strategy


@pytest.fixture
def fake_transport():
    return FakeTransport


@pytest.fixture
def fake_transport_factory():
    return FakeTransportFactory


@pytest.fixture
def bridge_settings() -> Settings:
    return Settings(
        bridge_grace_window_seconds=0.05,
        upstream_probe_timeout_seconds=0.2,
        fallback_enabled=True,
        fallback_balance_fuzz=0.0,
    )


@pytest.fixture(autouse=True)
def reset_bridge_store():
    store = get_bridge_store()
    store.reset()
    yield store
    store.reset()


@pytest_asyncio.fixture
async def app_with_bridge(bridge_settings):
    """App whose member bridge runs against scripted fake transports."""

    app = create_app()
    factory = FakeTransportFactory()
    strategies = [make_strategy("polling-only"), make_strategy("polling-upgrade")]

    def override_get_member_bridge() -> MemberBridgeService:
        return MemberBridgeService(
            settings=bridge_settings,
            strategies=strategies,
            transport_factory=factory,
        )

    app.dependency_overrides[get_member_bridge] = override_get_member_bridge

    try:
        yield app, factory
    finally:
        app.dependency_overrides.clear()
