from __future__ import annotations

import math
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable

from dotenv import load_dotenv

from src.wait.outcome import FetchFailurePolicy

DEFAULT_TIMEOUT_MS = 5000
POLL_INTERVAL_MS = 100

GLOBAL_TIMEOUT_KEY = "waitForConditionTimeout"

_TRUTHY = {"1", "true", "yes", "on"}


def coerce_timeout(value: Any) -> int | None:
    """Return ``value`` as whole milliseconds, or None when it is not a usable number."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if value < 0:
        return None
    return int(value)


def resolve_timeout(explicit: Any = None, configured: Any = None) -> int:
    for candidate in (explicit, configured):
        timeout_ms = coerce_timeout(candidate)
        if timeout_ms is not None:
            return timeout_ms
    return DEFAULT_TIMEOUT_MS


def _env_int(raw: str | None) -> int | None:
    token = (raw or "").strip()
    if not token:
        return None
    try:
        return coerce_timeout(float(token))
    except ValueError:
        return None


def _env_flag(raw: str | None, default: bool) -> bool:
    token = (raw or "").strip().lower()
    if not token:
        return default
    return token in _TRUTHY


@dataclass(slots=True)
class WaitSettings:
    wait_for_condition_timeout: int | None = None
    abort_on_failure: bool = True
    fetch_failure_policy: FetchFailurePolicy = FetchFailurePolicy.RETRY
    verbose: bool = False
    extra_globals: dict[str, Any] = field(default_factory=dict)

    def as_globals(self) -> dict[str, Any]:
        merged = dict(self.extra_globals)
        if self.wait_for_condition_timeout is not None:
            merged[GLOBAL_TIMEOUT_KEY] = self.wait_for_condition_timeout
        return merged


def load_settings(
    env: Mapping[str, str] | None = None,
    use_dotenv: bool = True,
    dotenv_loader: Callable[[], Any] = load_dotenv,
) -> WaitSettings:
    if env is None:
        if use_dotenv:
            dotenv_loader()
        env = os.environ

    return WaitSettings(
        wait_for_condition_timeout=_env_int(env.get("WAIT_FOR_CONDITION_TIMEOUT")),
        abort_on_failure=_env_flag(env.get("WAIT_ABORT_ON_FAILURE"), default=True),
        fetch_failure_policy=FetchFailurePolicy.parse(env.get("WAIT_FETCH_FAILURE_POLICY")),
        verbose=_env_flag(env.get("VERBOSE"), default=False),
    )


@dataclass(frozen=True, slots=True)
class WaitConfig:
    selector: str
    predicate: Callable[[str], Any]
    timeout_ms: int
    poll_interval_ms: int = POLL_INTERVAL_MS
    locate_strategy: str = "css"

    @classmethod
    def build(
        cls,
        selector: str,
        predicate: Callable[[str], Any],
        timeout_ms: Any = None,
        globals_: Mapping[str, Any] | None = None,
        locate_strategy: str = "css",
    ) -> WaitConfig:
        configured = (globals_ or {}).get(GLOBAL_TIMEOUT_KEY)
        return cls(
            selector=selector,
            predicate=predicate,
            timeout_ms=resolve_timeout(timeout_ms, configured),
            locate_strategy=locate_strategy,
        )
