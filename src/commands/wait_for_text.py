from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable

from src.commands.locate import LocateStrategy, TextFetcher
from src.commands.reporter import AssertionReporter
from src.wait.config import WaitConfig, WaitSettings
from src.wait.errors import WaitError
from src.wait.outcome import OutcomeReason, PollOutcome
from src.wait.poller import Poller

logger = logging.getLogger(__name__)

EXPRESSION_TRUE = "expression true"
EXPRESSION_FALSE = "expression false"


@dataclass(slots=True)
class CommandResult:
    selector: str
    passed: bool
    message: str
    timeout_ms: int
    outcome: PollOutcome | None = None
    error: WaitError | None = None


CompletionHandler = Callable[[CommandResult], Any]


class WaitForTextCommand:
    """Waits until an element's text satisfies a predicate, then reports an assertion.

    Example::

        command = WaitForTextCommand(fetcher, reporter)
        await command.run("div.status", lambda text: text == "ready")

    Every run produces exactly one assertion and one completion, whether the
    predicate held, timed out, or the read blew up. A reporter that raises
    still lets completion fire before its error propagates; a failing
    completion handler is logged and does not stop the others. Instances are
    single-use.
    """

    def __init__(
        self,
        fetcher: TextFetcher,
        reporter: AssertionReporter,
        globals_: Mapping[str, Any] | None = None,
        locate_strategy: LocateStrategy | str = LocateStrategy.CSS,
        abort_on_failure: bool = True,
        poller: Poller | None = None,
        cancel: asyncio.Event | None = None,
    ) -> None:
        self.fetcher = fetcher
        self.reporter = reporter
        self.globals = dict(globals_ or {})
        self.locate_strategy = LocateStrategy.parse(locate_strategy)
        self.abort_on_failure = abort_on_failure
        self.poller = poller or Poller()
        self.cancel = cancel
        self._handlers: list[CompletionHandler] = []
        self._started = False
        self.result: CommandResult | None = None

    @classmethod
    def from_settings(
        cls,
        fetcher: TextFetcher,
        reporter: AssertionReporter,
        settings: WaitSettings,
        locate_strategy: LocateStrategy | str = LocateStrategy.CSS,
        poller: Poller | None = None,
    ) -> WaitForTextCommand:
        return cls(
            fetcher,
            reporter,
            globals_=settings.as_globals(),
            locate_strategy=locate_strategy,
            abort_on_failure=settings.abort_on_failure,
            poller=poller or Poller(fetch_failure_policy=settings.fetch_failure_policy),
        )

    def on_complete(self, handler: CompletionHandler) -> None:
        self._handlers.append(handler)

    async def run(
        self,
        selector: str,
        predicate: Callable[[str], Any],
        timeout_ms: Any = None,
    ) -> CommandResult:
        if self._started:
            raise RuntimeError("WaitForTextCommand instances are single-use")
        self._started = True

        config = WaitConfig.build(
            selector,
            predicate,
            timeout_ms=timeout_ms,
            globals_=self.globals,
            locate_strategy=self.locate_strategy,
        )
        strategy = self.locate_strategy

        def fetch() -> Any:
            return self.fetcher.get_text(config.selector, strategy)

        logger.debug(
            f"waitForText {config.selector!r} ({strategy.value}) timeout={config.timeout_ms} ms"
        )
        try:
            outcome = await self.poller.run(
                fetch,
                config.predicate,
                config.timeout_ms,
                config.poll_interval_ms,
                cancel=self.cancel,
            )
        except WaitError as exc:
            logger.warning(f"waitForText {config.selector!r} aborted: {exc}")
            result = CommandResult(
                selector=config.selector,
                passed=False,
                message=f"waitForText: {config.selector}. {exc}",
                timeout_ms=config.timeout_ms,
                error=exc,
            )
        else:
            result = self._result(config, outcome)

        try:
            self.reporter.assertion(
                result.passed,
                EXPRESSION_TRUE,
                EXPRESSION_TRUE if result.passed else EXPRESSION_FALSE,
                result.message,
                self.abort_on_failure,
            )
        finally:
            self._complete(result)
        return result

    @staticmethod
    def _result(config: WaitConfig, outcome: PollOutcome) -> CommandResult:
        if outcome.succeeded:
            message = (
                f"waitForText: {config.selector}. "
                f"Expression was true after {outcome.elapsed_ms} ms."
            )
        elif outcome.reason is OutcomeReason.FETCH_FAILED:
            message = (
                f"waitForText: {config.selector}. "
                f"Element text could not be read after {outcome.elapsed_ms} ms."
            )
        else:
            message = (
                f"waitForText: {config.selector}. "
                f"Expression wasn't true in {config.timeout_ms} ms."
            )
        return CommandResult(
            selector=config.selector,
            passed=outcome.succeeded,
            message=message,
            timeout_ms=config.timeout_ms,
            outcome=outcome,
        )

    def _complete(self, result: CommandResult) -> None:
        self.result = result
        for handler in self._handlers:
            try:
                handler(result)
            except Exception:
                logger.exception(f"waitForText completion handler failed for {result.selector!r}")
