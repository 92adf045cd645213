from src.wait.outcome import FetchFailurePolicy
from src.wait.retry import AttemptRecord, deadline_reached, should_retry


def _record(status_ok: bool = True, satisfied: bool = False) -> AttemptRecord:
    return AttemptRecord(number=1, elapsed_ms=0, status_ok=status_ok, satisfied=satisfied)


def test_should_retry_when_not_satisfied() -> None:
    assert should_retry(_record(), FetchFailurePolicy.RETRY)


def test_should_not_retry_when_satisfied() -> None:
    assert not should_retry(_record(satisfied=True), FetchFailurePolicy.RETRY)


def test_fetch_failure_retried_by_default() -> None:
    assert should_retry(_record(status_ok=False), FetchFailurePolicy.RETRY)


def test_fetch_failure_stops_when_failing_fast() -> None:
    assert not should_retry(_record(status_ok=False), FetchFailurePolicy.FAIL_FAST)


def test_deadline_reached_at_timeout() -> None:
    assert not deadline_reached(elapsed_ms=499, timeout_ms=500)
    assert deadline_reached(elapsed_ms=500, timeout_ms=500)
    assert deadline_reached(elapsed_ms=0, timeout_ms=0)
