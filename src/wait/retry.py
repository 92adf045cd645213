from __future__ import annotations

from dataclasses import dataclass

from src.wait.outcome import FetchFailurePolicy


@dataclass(frozen=True, slots=True)
class AttemptRecord:
    number: int
    elapsed_ms: int
    status_ok: bool
    satisfied: bool
    value: str | None = None


def should_retry(attempt: AttemptRecord, policy: FetchFailurePolicy) -> bool:
    if attempt.satisfied:
        return False
    if not attempt.status_ok and policy is FetchFailurePolicy.FAIL_FAST:
        return False
    return True


def deadline_reached(elapsed_ms: int, timeout_ms: int) -> bool:
    return elapsed_ms >= timeout_ms
