from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class OutcomeReason(str, Enum):
    SATISFIED = "satisfied"
    TIMED_OUT = "timed_out"
    FETCH_FAILED = "fetch_failed"


class FetchFailurePolicy(str, Enum):
    """What a non-ok fetch status means for the session."""

    RETRY = "retry"
    FAIL_FAST = "fail_fast"

    @classmethod
    def parse(cls, raw: str | None, default: FetchFailurePolicy | None = None) -> FetchFailurePolicy:
        fallback = default or cls.RETRY
        token = (raw or "").strip().lower().replace("-", "_")
        if token in {"fail", "fail_fast", "abort"}:
            return cls.FAIL_FAST
        if token in {"retry", "continue"}:
            return cls.RETRY
        return fallback


@dataclass(frozen=True, slots=True)
class FetchResult:
    status_ok: bool
    value: str | None = None

    @classmethod
    def ok(cls, value: str | None) -> FetchResult:
        return cls(status_ok=True, value=value)

    @classmethod
    def failed(cls) -> FetchResult:
        return cls(status_ok=False, value=None)


@dataclass(frozen=True, slots=True)
class PollOutcome:
    succeeded: bool
    elapsed_ms: int
    attempts: int = 1
    reason: OutcomeReason = OutcomeReason.TIMED_OUT
    last_value: str | None = None


def to_fetch_result(raw: Any) -> FetchResult:
    """Normalize what a driver returned for a text read.

    Accepts a ``FetchResult``, a driver reply dict (``status`` 0 or no
    ``isError`` means ok), ``None`` (read failed) or a plain str/number.
    Anything else raises ``TypeError``.
    """
    if isinstance(raw, FetchResult):
        return raw
    if isinstance(raw, dict):
        if "status" in raw:
            ok = raw.get("status") == 0
        else:
            ok = raw.get("isError") is not True
        if not ok:
            logger.debug(f"Text read reported failure: {raw}")
            return FetchResult.failed()
        value = raw.get("value")
        return FetchResult.ok(None if value is None else str(value))
    if raw is None:
        return FetchResult.failed()
    if isinstance(raw, (str, int, float)) and not isinstance(raw, bool):
        return FetchResult.ok(str(raw))
    raise TypeError(f"Cannot read text from fetch result of type {type(raw).__name__}")
