from __future__ import annotations

import pytest
from socketio import exceptions as socketio_exceptions

from memberlink_api.services.bridge import ConnectionStrategy, SocketIOTransport, TransportKind, TransportUnavailableError


class StubClient:
    """Records the calls a ``socketio.AsyncClient`` would receive."""

    def __init__(self, *, connect_error: Exception | None = None, emit_error: Exception | None = None) -> None:
        self.handlers = {}
        self.connect_kwargs = None
        self.connect_url = None
        self.emitted = []
        self.disconnects = 0
        self.sid = "sid-1"
        self._connect_error = connect_error
        self._emit_error = emit_error

    def on(self, event, handler=None):
        self.handlers[event] = handler

    def transport(self) -> str:
        return "polling"

    async def connect(self, url, **kwargs):
        self.connect_url = url
        self.connect_kwargs = kwargs
        if self._connect_error is not None:
            raise self._connect_error

    async def emit(self, event, data=None):
        if self._emit_error is not None:
            raise self._emit_error
        self.emitted.append((event, data))

    async def disconnect(self):
        self.disconnects += 1
        handler = self.handlers.get("disconnect")
        if handler is not None:
            await handler("client disconnect")


STRATEGY = ConnectionStrategy(
    name="polling-browser-headers",
    endpoint_url="https://upstream.test",
    transports=(TransportKind.POLLING,),
    timeout_seconds=20,
    extra_headers={"Origin": "https://upstream.test"},
)


@pytest.mark.asyncio
async def test_connect_passes_strategy_options() -> None:
    client = StubClient()
    transport = SocketIOTransport(client=client)

    await transport.connect(STRATEGY)

    assert client.connect_url == "https://upstream.test"
    assert client.connect_kwargs == {
        "headers": {"Origin": "https://upstream.test"},
        "transports": ["polling"],
        "socketio_path": "socket.io",
        "wait_timeout": 20,
    }


@pytest.mark.asyncio
async def test_connect_error_is_mapped() -> None:
    transport = SocketIOTransport(client=StubClient(connect_error=socketio_exceptions.ConnectionError("refused")))

    with pytest.raises(TransportUnavailableError) as exc_info:
        await transport.connect(STRATEGY)

    assert exc_info.value.url == "https://upstream.test"
    assert "refused" in str(exc_info.value)


@pytest.mark.asyncio
async def test_emit_error_is_mapped() -> None:
    transport = SocketIOTransport(client=StubClient(emit_error=socketio_exceptions.BadNamespaceError("/")))
    await transport.connect(STRATEGY)

    with pytest.raises(TransportUnavailableError):
        await transport.emit("login", {"tel": "0812345678", "pin": "1234"})


@pytest.mark.asyncio
async def test_events_are_forwarded_with_first_argument() -> None:
    client = StubClient()
    transport = SocketIOTransport(client=client)
    received = []

    async def handler(payload):
        received.append(payload)

    transport.on_event("credit_push", handler)
    await client.handlers["credit_push"]({"balance": 5}, "extra")
    await client.handlers["credit_push"]()

    assert received == [{"balance": 5}, None]


@pytest.mark.asyncio
async def test_catch_all_skips_reserved_events() -> None:
    client = StubClient()
    transport = SocketIOTransport(client=client)
    received = []

    async def handler(name, payload):
        received.append((name, payload))

    transport.on_any_event(handler)
    await client.handlers["*"]("connect")
    await client.handlers["*"]("news", {"text": "hi"})

    assert received == [("news", {"text": "hi"})]


@pytest.mark.asyncio
async def test_disconnect_is_forwarded_until_close() -> None:
    client = StubClient()
    transport = SocketIOTransport(client=client)
    reasons = []

    async def handler(reason):
        reasons.append(reason)

    transport.on_disconnect(handler)
    await client.handlers["disconnect"]("transport close")
    await transport.close()

    assert reasons == ["transport close"]
    assert client.disconnects == 1
