"""Transport seam between a session attempt and the upstream Socket.IO service."""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Protocol

import socketio
from socketio import exceptions as socketio_exceptions
from loguru import logger

from .errors import TransportUnavailableError
from .strategies import ConnectionStrategy

EventHandler = Callable[[Any], Awaitable[None]]
CatchAllHandler = Callable[[str, Any], Awaitable[None]]
DisconnectHandler = Callable[[str | None], Awaitable[None]]

_RESERVED_EVENTS = frozenset({"connect", "connect_error", "disconnect"})


class SessionTransport(Protocol):
    """One upstream session. Instances are single-use."""

    def on_event(self, name: str, handler: EventHandler) -> None: ...

    def on_any_event(self, handler: CatchAllHandler) -> None: ...

    def on_disconnect(self, handler: DisconnectHandler) -> None: ...

    async def connect(self, strategy: ConnectionStrategy) -> None: ...

    async def emit(self, name: str, payload: Any) -> None: ...

    async def close(self) -> None: ...


TransportFactory = Callable[[ConnectionStrategy], SessionTransport]


def _first_arg(args: tuple[Any, ...]) -> Any:
    return args[0] if args else None


class SocketIOTransport:
    """``python-socketio`` backed session with reconnection disabled.

    Disconnects that happen after ``close()`` was called are caller-initiated and
    are not forwarded to the disconnect handler.
    """

    def __init__(self, client: socketio.AsyncClient | None = None) -> None:
        self._client = client or socketio.AsyncClient(
            reconnection=False,
            logger=False,
            engineio_logger=False,
        )
        self._closing = False
        self._disconnect_handler: DisconnectHandler | None = None
        self._url: str | None = None
        self._client.on("disconnect", self._handle_disconnect)

    def on_event(self, name: str, handler: EventHandler) -> None:
        async def _dispatch(*args: Any) -> None:
            await handler(_first_arg(args))

        self._client.on(name, _dispatch)

    def on_any_event(self, handler: CatchAllHandler) -> None:
        async def _dispatch(event: str, *args: Any) -> None:
            if event in _RESERVED_EVENTS:
                return
            await handler(event, _first_arg(args))

        self._client.on("*", _dispatch)

    def on_disconnect(self, handler: DisconnectHandler) -> None:
        self._disconnect_handler = handler

    async def _handle_disconnect(self, *args: Any) -> None:
        if self._closing or self._disconnect_handler is None:
            return
        reason = _first_arg(args)
        await self._disconnect_handler(str(reason) if reason is not None else None)

    async def connect(self, strategy: ConnectionStrategy) -> None:
        self._url = strategy.endpoint_url
        try:
            await self._client.connect(
                strategy.endpoint_url,
                headers=dict(strategy.extra_headers),
                transports=strategy.transport_names,
                socketio_path=strategy.socketio_path,
                wait_timeout=strategy.timeout_seconds,
            )
        except socketio_exceptions.ConnectionError as exc:
            raise TransportUnavailableError(str(exc) or "connection refused", url=strategy.endpoint_url) from exc
        logger.debug(
            "Upstream session connected",
            strategy=strategy.name,
            sid=self._client.sid,
            transport=self._client.transport(),
        )

    async def emit(self, name: str, payload: Any) -> None:
        try:
            await self._client.emit(name, payload)
        except socketio_exceptions.SocketIOError as exc:
            raise TransportUnavailableError(str(exc) or f"emit {name} failed", url=self._url) from exc

    async def close(self) -> None:
        self._closing = True
        try:
            await self._client.disconnect()
        except socketio_exceptions.SocketIOError as exc:
            raise TransportUnavailableError(str(exc) or "disconnect failed", url=self._url) from exc


def socketio_transport_factory(strategy: ConnectionStrategy) -> SessionTransport:
    return SocketIOTransport()


__all__ = [
    "CatchAllHandler",
    "DisconnectHandler",
    "EventHandler",
    "SessionTransport",
    "SocketIOTransport",
    "TransportFactory",
    "socketio_transport_factory",
]
