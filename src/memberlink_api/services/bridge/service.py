"""Facade used by the API layer: validate, sequence strategies, probe the upstream."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from functools import partial
from typing import Any, Sequence

from loguru import logger
from opentelemetry import trace

from memberlink_api.core.logging import mask_phone
from memberlink_api.core.settings import Settings, get_settings
from memberlink_api.observability.bridge import BridgeObservabilityStore, get_bridge_store

from .credentials import Credentials, validate_credentials
from .errors import TransportUnavailableError, ValidationError
from .fallback import synthesize_fallback_member
from .models import AuthenticationOutcome, CredentialRejected, Success
from .sequencer import StrategySequencer
from .session_attempt import SessionAttempt
from .strategies import ConnectionStrategy, build_strategies
from .transport import TransportFactory, socketio_transport_factory

tracer = trace.get_tracer(__name__)


@dataclass
class UpstreamProbeResult:
    reachable: bool
    strategy: str | None
    detail: str | None = None
    latency_ms: float | None = None


class MemberBridgeService:
    """Authenticate members against the upstream push service."""

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        strategies: Sequence[ConnectionStrategy] | None = None,
        transport_factory: TransportFactory | None = None,
        store: BridgeObservabilityStore | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.strategies = tuple(strategies) if strategies is not None else build_strategies(self.settings)
        self._transport_factory = transport_factory or socketio_transport_factory
        self._store = store or get_bridge_store()

        fallback = None
        if self.settings.fallback_enabled:
            fallback = partial(synthesize_fallback_member, fuzz=self.settings.fallback_balance_fuzz)
        self._sequencer = StrategySequencer(
            self.strategies,
            self._run_attempt,
            fallback=fallback,
            overall_deadline_seconds=self.settings.bridge_overall_deadline_seconds,
        )

    async def authenticate(self, phone: Any, pin: Any) -> AuthenticationOutcome:
        """Validate the raw credentials and run the strategy sequence.

        Raises:
            ValidationError: phone or PIN is malformed; nothing was sent upstream.
        """

        with tracer.start_as_current_span("member_bridge.authenticate") as span:
            try:
                credentials = validate_credentials(phone, pin)
            except ValidationError as exc:
                self._store.record_validation_failure(exc.kind.value)
                span.set_attribute("bridge.validation_error", exc.kind.value)
                raise

            logger.info(
                "Member authentication started",
                phone=mask_phone(credentials.phone),
                strategies=[strategy.name for strategy in self.strategies],
            )
            outcome = await self._sequencer.run(credentials)

            label = self._outcome_label(outcome)
            self._store.record_outcome(label)
            span.set_attribute("bridge.outcome", label)
            logger.info("Member authentication finished", phone=mask_phone(credentials.phone), outcome=label)
            return outcome

    async def _run_attempt(self, strategy: ConnectionStrategy, credentials: Credentials) -> AuthenticationOutcome:
        attempt = SessionAttempt(
            strategy,
            credentials,
            self._transport_factory(strategy),
            grace_window_seconds=self.settings.bridge_grace_window_seconds,
        )
        return await attempt.run()

    @staticmethod
    def _outcome_label(outcome: AuthenticationOutcome) -> str:
        if isinstance(outcome, Success):
            return outcome.member.source.value
        if isinstance(outcome, CredentialRejected):
            return "credential_rejected"
        return "unavailable"

    async def probe_upstream(self) -> UpstreamProbeResult:
        """Open and close one session with the first strategy, without logging in."""

        if not self.strategies:
            return UpstreamProbeResult(reachable=False, strategy=None, detail="no upstream strategies configured")

        strategy = self.strategies[0].with_timeout(self.settings.upstream_probe_timeout_seconds)
        transport = self._transport_factory(strategy)
        started = time.perf_counter()
        try:
            await asyncio.wait_for(transport.connect(strategy), timeout=strategy.timeout_seconds)
        except TransportUnavailableError as exc:
            return UpstreamProbeResult(reachable=False, strategy=strategy.name, detail=str(exc))
        except asyncio.TimeoutError:
            return UpstreamProbeResult(
                reachable=False,
                strategy=strategy.name,
                detail=f"connect timed out after {strategy.timeout_seconds:g}s",
            )
        finally:
            try:
                await transport.close()
            except TransportUnavailableError as exc:
                logger.warning("Upstream probe close failed", strategy=strategy.name, error=str(exc))

        latency_ms = round((time.perf_counter() - started) * 1000, 1)
        return UpstreamProbeResult(reachable=True, strategy=strategy.name, latency_ms=latency_ms)


__all__ = ["MemberBridgeService", "UpstreamProbeResult"]
