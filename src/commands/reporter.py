from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from rich.console import Console

logger = logging.getLogger(__name__)


class AssertionReporter(Protocol):
    def assertion(
        self,
        passed: bool,
        expected: str,
        actual: str,
        message: str,
        abort_on_failure: bool,
    ) -> Any: ...


@dataclass(slots=True)
class AssertionRecord:
    passed: bool
    expected: str
    actual: str
    message: str
    abort_on_failure: bool


@dataclass
class RecordingReporter:
    records: list[AssertionRecord] = field(default_factory=list)

    def assertion(
        self,
        passed: bool,
        expected: str,
        actual: str,
        message: str,
        abort_on_failure: bool,
    ) -> AssertionRecord:
        record = AssertionRecord(
            passed=passed,
            expected=expected,
            actual=actual,
            message=message,
            abort_on_failure=abort_on_failure,
        )
        self.records.append(record)
        return record

    @property
    def failures(self) -> list[AssertionRecord]:
        return [record for record in self.records if not record.passed]

    @property
    def should_abort(self) -> bool:
        return any(record.abort_on_failure for record in self.failures)


class ConsoleReporter(RecordingReporter):
    """Records assertions and prints one line per result."""

    def __init__(self, console: Console | None = None, verbose: bool = False) -> None:
        super().__init__()
        self.console = console or Console()
        self.verbose = verbose

    def assertion(
        self,
        passed: bool,
        expected: str,
        actual: str,
        message: str,
        abort_on_failure: bool,
    ) -> AssertionRecord:
        record = super().assertion(passed, expected, actual, message, abort_on_failure)
        if passed:
            self.console.print(f"✅ PASSED {message}", markup=False)
        else:
            self.console.print(f"❌ FAILED {message}", markup=False)
            if self.verbose:
                self.console.print(f"   Expected: {expected}", markup=False)
                self.console.print(f"   Actual: {actual}", markup=False)
        logger.info(f"assertion passed={passed} message={message!r}")
        return record
