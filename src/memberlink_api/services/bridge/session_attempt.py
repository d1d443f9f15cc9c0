"""One login handshake against the upstream push service.

A ``SessionAttempt`` owns a single transport session for a single strategy. It
sends the login event, aggregates identity and balance pushes into a
``PartialMemberRecord`` and resolves exactly once. The triggers racing for that
resolution are:

* the strategy timeout (partial if any data arrived, unavailable otherwise),
* the grace window after connect (identity alone only resolves once it elapses),
* connect/emit errors (unavailable),
* unexpected disconnects (partial if any data arrived, unavailable otherwise),
* an explicit login rejection (credential rejected, bypasses the grace window),
* a complete record (identity and balance both present).

The result cell is an ``asyncio.Future``; the first trigger to set it wins and
every later trigger is a no-op. The transport is closed from a single place in
``run()`` so teardown happens exactly once whichever trigger wins.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any

from loguru import logger
from opentelemetry import trace

from memberlink_api.core.logging import mask_phone
from memberlink_api.observability.bridge import get_bridge_store

from .credentials import Credentials
from .errors import TransportUnavailableError
from .models import (
    AuthenticationOutcome,
    CredentialRejected,
    MemberSource,
    PartialMemberRecord,
    Success,
    Unavailable,
)
from .payloads import (
    EVENT_ALIASES,
    LOGIN_EVENT,
    EventCategory,
    IdentityAccepted,
    IdentityRejected,
    normalize_balance,
    parse_identity_payload,
)
from .strategies import ConnectionStrategy
from .tiers import format_member_record
from .transport import SessionTransport

tracer = trace.get_tracer(__name__)

DEFAULT_GRACE_WINDOW_SECONDS = 5.0


class AttemptState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    AWAITING_DATA = "awaiting_data"
    RESOLVED = "resolved"


class ResolutionKind(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    REJECTED = "rejected"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class AttemptResolution:
    kind: ResolutionKind
    trigger: str
    reason: str | None = None


class SessionAttempt:
    """Single-use login handshake for one strategy."""

    def __init__(
        self,
        strategy: ConnectionStrategy,
        credentials: Credentials,
        transport: SessionTransport,
        *,
        grace_window_seconds: float = DEFAULT_GRACE_WINDOW_SECONDS,
    ) -> None:
        self.strategy = strategy
        self.credentials = credentials
        self.record = PartialMemberRecord()
        self.state = AttemptState.IDLE
        self.resolution: AttemptResolution | None = None
        self._transport = transport
        self._grace_window_seconds = grace_window_seconds
        self._grace_elapsed = False
        self._grace_handle: asyncio.TimerHandle | None = None
        self._result: asyncio.Future[AttemptResolution] | None = None
        self._closed = False

    @property
    def resolved(self) -> bool:
        return self._result is not None and self._result.done()

    async def run(self) -> AuthenticationOutcome:
        if self.state is not AttemptState.IDLE:
            raise RuntimeError("SessionAttempt instances are single-use")

        loop = asyncio.get_running_loop()
        self._result = loop.create_future()
        self._register_handlers()

        with tracer.start_as_current_span(
            "member_bridge.session_attempt",
            attributes={"bridge.strategy": self.strategy.name},
        ) as span:
            timeout_handle = loop.call_later(self.strategy.timeout_seconds, self._on_timeout)
            open_task = asyncio.create_task(self._open_session())
            try:
                resolution = await self._result
            finally:
                timeout_handle.cancel()
                if self._grace_handle is not None:
                    self._grace_handle.cancel()
                if not open_task.done():
                    open_task.cancel()
                await asyncio.gather(open_task, return_exceptions=True)
                await self._close_session()
                self.state = AttemptState.RESOLVED

            self.resolution = resolution
            span.set_attribute("bridge.resolution", resolution.kind.value)
            span.set_attribute("bridge.trigger", resolution.trigger)

        get_bridge_store().record_attempt(self.strategy.name, resolution.kind.value)
        logger.info(
            "Upstream session attempt resolved",
            strategy=self.strategy.name,
            resolution=resolution.kind.value,
            trigger=resolution.trigger,
            reason=resolution.reason,
            phone=mask_phone(self.credentials.phone),
            events_seen=self.record.events_seen,
        )
        return self._to_outcome(resolution)

    def _register_handlers(self) -> None:
        handlers = {
            EventCategory.IDENTITY: self._handle_identity,
            EventCategory.BALANCE: self._handle_balance,
        }
        for name, category in EVENT_ALIASES.items():
            self._transport.on_event(name, handlers[category])
        self._transport.on_any_event(self._handle_any)
        self._transport.on_disconnect(self._handle_disconnect)

    async def _open_session(self) -> None:
        self.state = AttemptState.CONNECTING
        try:
            await self._transport.connect(self.strategy)
        except TransportUnavailableError as exc:
            self._resolve(ResolutionKind.UNAVAILABLE, "connect_error", str(exc))
            return
        except Exception as exc:
            logger.exception("Unexpected upstream connect failure", strategy=self.strategy.name)
            self._resolve(ResolutionKind.UNAVAILABLE, "connect_error", repr(exc))
            return

        if self.resolved:
            return

        self.state = AttemptState.AWAITING_DATA
        loop = asyncio.get_running_loop()
        self._grace_handle = loop.call_later(self._grace_window_seconds, self._on_grace_elapsed)

        try:
            await self._transport.emit(LOGIN_EVENT, self.credentials.login_payload())
        except TransportUnavailableError as exc:
            self._resolve(ResolutionKind.UNAVAILABLE, "emit_error", str(exc))
        except Exception as exc:
            logger.exception("Unexpected upstream login emit failure", strategy=self.strategy.name)
            self._resolve(ResolutionKind.UNAVAILABLE, "emit_error", repr(exc))

    def _resolve(self, kind: ResolutionKind, trigger: str, reason: str | None = None) -> bool:
        if self._result is None or self._result.done():
            return False
        self._result.set_result(AttemptResolution(kind=kind, trigger=trigger, reason=reason))
        return True

    def _resolve_on_interruption(self, trigger: str, reason: str) -> None:
        if self.record.has_data:
            self._resolve(ResolutionKind.PARTIAL, trigger, reason)
        else:
            self._resolve(ResolutionKind.UNAVAILABLE, trigger, reason)

    def _maybe_complete(self, trigger: str) -> None:
        if self.record.is_complete:
            self._resolve(ResolutionKind.SUCCESS, trigger)
        elif self.record.has_identity and self._grace_elapsed:
            self._resolve(ResolutionKind.PARTIAL, trigger, "balance not received within grace window")

    def _on_timeout(self) -> None:
        self._resolve_on_interruption("timeout", f"no complete response within {self.strategy.timeout_seconds:g}s")

    def _on_grace_elapsed(self) -> None:
        self._grace_elapsed = True
        self._maybe_complete("grace_window")

    async def _handle_identity(self, payload: Any) -> None:
        if self.resolved:
            return
        self.record.note_activity()
        parsed = parse_identity_payload(payload)
        if isinstance(parsed, IdentityRejected):
            self._resolve(ResolutionKind.REJECTED, "identity_rejected", parsed.reason)
            return
        if isinstance(parsed, IdentityAccepted):
            self.record.merge(
                username=parsed.username,
                first_name=parsed.first_name,
                last_name=parsed.last_name,
                phone=parsed.phone,
            )
        self._maybe_complete("identity")

    async def _handle_balance(self, payload: Any) -> None:
        if self.resolved:
            return
        self.record.note_activity()
        self.record.merge(credit_balance=normalize_balance(payload))
        self._maybe_complete("balance")

    async def _handle_any(self, name: str, payload: Any) -> None:
        if self.resolved:
            return
        self.record.note_activity()
        logger.debug("Unclassified upstream event", strategy=self.strategy.name, upstream_event=name)

    async def _handle_disconnect(self, reason: str | None) -> None:
        if self.resolved:
            return
        self._resolve_on_interruption("disconnect", reason or "upstream closed the session")

    async def _close_session(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._transport.close()
        except TransportUnavailableError as exc:
            logger.warning("Upstream session close failed", strategy=self.strategy.name, error=str(exc))
        except Exception:
            logger.exception("Unexpected upstream session close failure", strategy=self.strategy.name)

    def _to_outcome(self, resolution: AttemptResolution) -> AuthenticationOutcome:
        if resolution.kind is ResolutionKind.REJECTED:
            return CredentialRejected(reason=resolution.reason or "")
        if resolution.kind is ResolutionKind.UNAVAILABLE:
            return Unavailable(reason=resolution.reason or resolution.trigger)
        source = MemberSource.UPSTREAM if resolution.kind is ResolutionKind.SUCCESS else MemberSource.UPSTREAM_PARTIAL
        return Success(member=format_member_record(self.record, source=source, phone=self.credentials.phone))


__all__ = [
    "AttemptResolution",
    "AttemptState",
    "DEFAULT_GRACE_WINDOW_SECONDS",
    "ResolutionKind",
    "SessionAttempt",
]
