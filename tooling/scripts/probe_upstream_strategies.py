#!/usr/bin/env python3
"""Try every configured upstream connection strategy once and report the result.

Usage:
    python tooling/scripts/probe_upstream_strategies.py
    python tooling/scripts/probe_upstream_strategies.py --phone 0812345678 --pin 1234 \
        --strategies polling-only,websocket-only

Without ``--phone``/``--pin`` each strategy only connects and disconnects. With
credentials each strategy runs a full login handshake (fallback disabled), so the
output shows which strategies return live member data.
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from loguru import logger

from memberlink_api.core.settings import get_settings
from memberlink_api.services.bridge import (
    CredentialRejected,
    MemberBridgeService,
    SessionAttempt,
    Success,
    ValidationError,
    build_strategies,
    validate_credentials,
)
from memberlink_api.services.bridge.transport import socketio_transport_factory


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Probe upstream Socket.IO connection strategies")
    parser.add_argument("--url", default=None, help="Override the upstream URL (default: UPSTREAM_URL setting).")
    parser.add_argument(
        "--strategies",
        default=None,
        help="Comma separated strategy names to try (default: UPSTREAM_STRATEGY_NAMES setting).",
    )
    parser.add_argument("--phone", default=None, help="Phone number for a full login handshake.")
    parser.add_argument("--pin", default=None, help="PIN for a full login handshake.")
    parser.add_argument(
        "--fail-on-unreachable",
        action="store_true",
        help="Exit with status 1 when no strategy connects.",
    )
    return parser.parse_args()


def _log_ok(message: str) -> None:
    print(f"[probe-upstream] ✅ {message}")


def _log_fail(message: str) -> None:
    print(f"[probe-upstream] ❌ {message}")


async def _run(args: argparse.Namespace) -> int:
    settings = get_settings().model_copy()
    if args.url:
        settings.upstream_url = args.url
    if args.strategies:
        settings.upstream_strategy_names = [name.strip() for name in args.strategies.split(",") if name.strip()]
    settings.fallback_enabled = False

    strategies = build_strategies(settings)
    if not strategies:
        _log_fail("No known strategies selected")
        return 1

    credentials = None
    if args.phone or args.pin:
        try:
            credentials = validate_credentials(args.phone, args.pin)
        except ValidationError as exc:
            _log_fail(f"Invalid credentials: {exc.message}")
            return 1

    reachable = 0
    for strategy in strategies:
        if credentials is None:
            service = MemberBridgeService(settings=settings, strategies=[strategy])
            probe = await service.probe_upstream()
            if probe.reachable:
                reachable += 1
                _log_ok(f"{strategy.name}: connected in {probe.latency_ms}ms")
            else:
                _log_fail(f"{strategy.name}: {probe.detail}")
            continue

        attempt = SessionAttempt(
            strategy,
            credentials,
            socketio_transport_factory(strategy),
            grace_window_seconds=settings.bridge_grace_window_seconds,
        )
        outcome = await attempt.run()
        if isinstance(outcome, Success):
            reachable += 1
            member = outcome.member
            _log_ok(
                f"{strategy.name}: {member.source.value} username={member.username} "
                f"balance={member.display_balance} tier={member.tier.value}"
            )
        elif isinstance(outcome, CredentialRejected):
            reachable += 1
            _log_fail(f"{strategy.name}: credentials rejected ({outcome.reason})")
        else:
            _log_fail(f"{strategy.name}: unavailable ({outcome.reason})")

    logger.info("Upstream strategy probe complete", reachable=reachable, total=len(strategies))
    if reachable == 0 and args.fail_on_unreachable:
        return 1
    return 0


def main() -> int:
    args = parse_args()
    return asyncio.run(_run(args))


if __name__ == "__main__":
    sys.exit(main())
