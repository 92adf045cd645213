from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections.abc import Awaitable
from typing import Any, Callable

from tenacity import AsyncRetrying, RetryCallState, retry_if_result, wait_fixed

from src.wait.config import POLL_INTERVAL_MS
from src.wait.errors import FetchError, PollCancelled, PredicateError
from src.wait.outcome import FetchFailurePolicy, OutcomeReason, PollOutcome, to_fetch_result
from src.wait.retry import AttemptRecord, deadline_reached, should_retry

logger = logging.getLogger(__name__)

FetchFn = Callable[[], Any]
PredicateFn = Callable[[str], Any]
Clock = Callable[[], float]
SleepFn = Callable[[float], Awaitable[Any]]


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class _Session:
    """State of one polling run; discarded once the outcome is built."""

    def __init__(
        self,
        fetch: FetchFn,
        predicate: PredicateFn,
        timeout_ms: int,
        policy: FetchFailurePolicy,
        clock: Clock,
        sleep: SleepFn,
        cancel: asyncio.Event | None,
    ) -> None:
        self.fetch = fetch
        self.predicate = predicate
        self.timeout_ms = timeout_ms
        self.policy = policy
        self.clock = clock
        self._sleep = sleep
        self.cancel = cancel
        self.started = clock()
        self.attempts = 0
        self.last: AttemptRecord | None = None

    def elapsed_ms(self) -> int:
        return round((self.clock() - self.started) * 1000)

    async def attempt(self) -> AttemptRecord:
        self.attempts += 1
        number = self.attempts
        try:
            result = to_fetch_result(await _resolve(self.fetch()))
        except Exception as exc:
            raise FetchError(number, exc) from exc
        elapsed = self.elapsed_ms()

        satisfied = False
        if result.status_ok:
            text = result.value if result.value is not None else ""
            try:
                satisfied = bool(await _resolve(self.predicate(text)))
            except Exception as exc:
                raise PredicateError(number, result.value, exc) from exc

        self.last = AttemptRecord(
            number=number,
            elapsed_ms=elapsed,
            status_ok=result.status_ok,
            satisfied=satisfied,
            value=result.value if result.status_ok else None,
        )
        return self.last

    def keep_polling(self, record: AttemptRecord) -> bool:
        return should_retry(record, self.policy)

    def stop(self, retry_state: RetryCallState) -> bool:
        if self.last is None:
            return False
        return deadline_reached(self.last.elapsed_ms, self.timeout_ms)

    def before_sleep(self, retry_state: RetryCallState) -> None:
        if self.last is None:
            return
        status = "not satisfied" if self.last.status_ok else "fetch failed"
        logger.debug(
            f"Attempt {self.last.number} {status} after {self.last.elapsed_ms} ms, retrying"
        )

    async def sleep(self, seconds: float) -> None:
        if self.cancel is None:
            await self._sleep(seconds)
            return
        if self.cancel.is_set():
            raise PollCancelled(self.attempts, self.elapsed_ms())

        sleeper = asyncio.ensure_future(self._sleep(seconds))
        waiter = asyncio.ensure_future(self.cancel.wait())
        try:
            await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleeper, waiter):
                if not task.done():
                    task.cancel()
            await asyncio.gather(sleeper, waiter, return_exceptions=True)
        if self.cancel.is_set():
            raise PollCancelled(self.attempts, self.elapsed_ms())


class Poller:
    """Samples a value until a predicate holds or the timeout elapses.

    Attempts never overlap: the interval before attempt N+1 starts only once
    attempt N's fetch has returned. The first fetch always happens, even with a
    zero timeout. Raising fetchers surface as ``FetchError``; a non-ok
    ``FetchResult`` is handled according to ``fetch_failure_policy``.
    """

    def __init__(
        self,
        fetch_failure_policy: FetchFailurePolicy = FetchFailurePolicy.RETRY,
        clock: Clock = time.monotonic,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self.fetch_failure_policy = fetch_failure_policy
        self._clock = clock
        self._sleep = sleep

    async def run(
        self,
        fetch: FetchFn,
        predicate: PredicateFn,
        timeout_ms: int,
        poll_interval_ms: int = POLL_INTERVAL_MS,
        cancel: asyncio.Event | None = None,
    ) -> PollOutcome:
        if timeout_ms < 0:
            raise ValueError(f"timeout_ms must be >= 0, got {timeout_ms}")
        if poll_interval_ms <= 0:
            raise ValueError(f"poll_interval_ms must be > 0, got {poll_interval_ms}")
        if cancel is not None and cancel.is_set():
            raise PollCancelled(attempts=0, elapsed_ms=0)

        session = _Session(
            fetch=fetch,
            predicate=predicate,
            timeout_ms=timeout_ms,
            policy=self.fetch_failure_policy,
            clock=self._clock,
            sleep=self._sleep,
            cancel=cancel,
        )
        retrying = AsyncRetrying(
            sleep=session.sleep,
            stop=session.stop,
            wait=wait_fixed(poll_interval_ms / 1000),
            retry=retry_if_result(session.keep_polling),
            before_sleep=session.before_sleep,
            retry_error_callback=lambda retry_state: retry_state.outcome.result(),
        )
        record: AttemptRecord = await retrying(session.attempt)
        return self._outcome(record, session.attempts)

    def _outcome(self, record: AttemptRecord, attempts: int) -> PollOutcome:
        if record.satisfied:
            logger.info(f"Predicate satisfied after {record.elapsed_ms} ms ({attempts} attempts)")
            return PollOutcome(
                succeeded=True,
                elapsed_ms=record.elapsed_ms,
                attempts=attempts,
                reason=OutcomeReason.SATISFIED,
                last_value=record.value,
            )

        if not record.status_ok and self.fetch_failure_policy is FetchFailurePolicy.FAIL_FAST:
            reason = OutcomeReason.FETCH_FAILED
            logger.warning(f"Fetch failed on attempt {record.number}, not retrying")
        else:
            reason = OutcomeReason.TIMED_OUT
            logger.warning(
                f"Predicate not satisfied after {record.elapsed_ms} ms ({attempts} attempts)"
            )
        return PollOutcome(
            succeeded=False,
            elapsed_ms=record.elapsed_ms,
            attempts=attempts,
            reason=reason,
            last_value=record.value,
        )
