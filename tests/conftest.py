from __future__ import annotations

import asyncio

import pytest

from src.wait.outcome import FetchResult
from src.wait.poller import Poller


class FakeClock:
    """Monotonic clock in whole milliseconds; sleeping advances it instantly."""

    def __init__(self) -> None:
        self.now_ms = 0
        self.sleeps: list[int] = []

    def __call__(self) -> float:
        return self.now_ms / 1000

    def advance(self, ms: int) -> None:
        self.now_ms += ms

    async def sleep(self, seconds: float) -> None:
        ms = round(seconds * 1000)
        self.sleeps.append(ms)
        self.now_ms += ms
        await asyncio.sleep(0)


class ScriptedFetch:
    """Returns queued results in order, repeating the last one once exhausted."""

    def __init__(self, *results: FetchResult, clock: FakeClock | None = None, latency_ms: int = 0) -> None:
        self.results = list(results)
        self.calls = 0
        self.clock = clock
        self.latency_ms = latency_ms

    def __call__(self) -> FetchResult:
        index = min(self.calls, len(self.results) - 1)
        self.calls += 1
        if self.clock is not None and self.latency_ms:
            self.clock.advance(self.latency_ms)
        return self.results[index]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def poller(clock: FakeClock) -> Poller:
    return Poller(clock=clock, sleep=clock.sleep)
