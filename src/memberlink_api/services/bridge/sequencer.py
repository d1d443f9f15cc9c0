"""Ordered, sequential strategy attempts with fallback on exhaustion."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Sequence

from loguru import logger

from memberlink_api.core.logging import mask_phone

from .credentials import Credentials
from .fallback import synthesize_fallback_member
from .models import AuthenticationOutcome, CredentialRejected, MemberRecord, Success, Unavailable
from .strategies import ConnectionStrategy, total_timeout

AttemptRunner = Callable[[ConnectionStrategy, Credentials], Awaitable[AuthenticationOutcome]]
FallbackBuilder = Callable[[Credentials], MemberRecord]


class StrategySequencer:
    """Try each strategy in order, one session at a time.

    A credential rejection is authoritative and stops the sequence. A success,
    full or partial, stops it too. Transport failures move on to the next
    strategy; once every strategy has failed (or the overall deadline is spent)
    the fallback builder supplies the member record.
    """

    def __init__(
        self,
        strategies: Sequence[ConnectionStrategy],
        attempt_runner: AttemptRunner,
        *,
        fallback: FallbackBuilder | None = synthesize_fallback_member,
        overall_deadline_seconds: float | None = None,
    ) -> None:
        self.strategies = tuple(strategies)
        self._attempt_runner = attempt_runner
        self._fallback = fallback
        self.overall_deadline_seconds = (
            overall_deadline_seconds if overall_deadline_seconds is not None else total_timeout(self.strategies)
        )

    async def run(self, credentials: Credentials) -> AuthenticationOutcome:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.overall_deadline_seconds
        last_reason = "no upstream strategies configured"

        for position, strategy in enumerate(self.strategies, start=1):
            remaining = deadline - loop.time()
            if remaining <= 0:
                last_reason = "overall deadline exhausted"
                logger.warning(
                    "Upstream strategies skipped after overall deadline",
                    skipped=[item.name for item in self.strategies[position - 1 :]],
                    deadline_seconds=self.overall_deadline_seconds,
                )
                break
            if strategy.timeout_seconds > remaining:
                strategy = strategy.with_timeout(remaining)

            outcome = await self._attempt_runner(strategy, credentials)

            if isinstance(outcome, CredentialRejected):
                logger.info(
                    "Upstream rejected credentials",
                    strategy=strategy.name,
                    phone=mask_phone(credentials.phone),
                )
                return outcome
            if isinstance(outcome, Success):
                return outcome

            last_reason = outcome.reason
            logger.warning(
                "Upstream strategy unavailable",
                strategy=strategy.name,
                position=position,
                total=len(self.strategies),
                reason=outcome.reason,
            )

        if self._fallback is None:
            return Unavailable(reason=last_reason)

        logger.warning(
            "All upstream strategies failed, using fallback member record",
            phone=mask_phone(credentials.phone),
            reason=last_reason,
        )
        return Success(member=self._fallback(credentials))


__all__ = ["AttemptRunner", "FallbackBuilder", "StrategySequencer"]
