from __future__ import annotations


class WaitError(Exception):
    """Base class for failures raised by a polling session."""


class FetchError(WaitError):
    def __init__(self, attempt: int, cause: BaseException) -> None:
        self.attempt = attempt
        self.cause = cause
        detail = str(cause) or type(cause).__name__
        super().__init__(f"Fetch failed on attempt {attempt}: {detail}")


class PredicateError(WaitError):
    def __init__(self, attempt: int, value: str | None, cause: BaseException) -> None:
        self.attempt = attempt
        self.value = value
        self.cause = cause
        detail = str(cause) or type(cause).__name__
        super().__init__(f"Predicate raised on attempt {attempt}: {detail}")


class PollCancelled(WaitError):
    def __init__(self, attempts: int, elapsed_ms: int) -> None:
        self.attempts = attempts
        self.elapsed_ms = elapsed_ms
        super().__init__(f"Polling cancelled after {attempts} attempts ({elapsed_ms} ms)")
