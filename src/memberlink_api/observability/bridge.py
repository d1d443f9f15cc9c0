from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from threading import Lock
from typing import Dict


@dataclass
class BridgeSnapshot:
    attempts: Dict[str, Dict[str, int]]
    outcomes: Dict[str, int]
    validation_failures: Dict[str, int]

    def as_dict(self) -> Dict[str, object]:
        return {
            "attempts": {strategy: dict(counts) for strategy, counts in self.attempts.items()},
            "outcomes": dict(self.outcomes),
            "validation_failures": dict(self.validation_failures),
        }


class BridgeObservabilityStore:
    """Collect member bridge telemetry for dashboards and alerting."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._attempts: Dict[str, Dict[str, int]] = defaultdict(lambda: defaultdict(int))
        self._outcomes: Dict[str, int] = defaultdict(int)
        self._validation_failures: Dict[str, int] = defaultdict(int)

    def record_attempt(self, strategy: str, resolution: str) -> None:
        with self._lock:
            self._attempts[strategy][resolution] += 1

    def record_outcome(self, outcome: str) -> None:
        with self._lock:
            self._outcomes[outcome] += 1

    def record_validation_failure(self, kind: str) -> None:
        with self._lock:
            self._validation_failures[kind] += 1

    def snapshot(self) -> BridgeSnapshot:
        with self._lock:
            attempts = {strategy: dict(counts) for strategy, counts in self._attempts.items()}
            outcomes = dict(self._outcomes)
            validation_failures = dict(self._validation_failures)
        return BridgeSnapshot(attempts=attempts, outcomes=outcomes, validation_failures=validation_failures)

    def reset(self) -> None:
        with self._lock:
            self._attempts.clear()
            self._outcomes.clear()
            self._validation_failures.clear()


_STORE = BridgeObservabilityStore()


def get_bridge_store() -> BridgeObservabilityStore:
    return _STORE


__all__ = ["get_bridge_store", "BridgeObservabilityStore", "BridgeSnapshot"]
