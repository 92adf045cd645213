from __future__ import annotations

import inspect
from enum import Enum
from typing import Any, Protocol

from src.wait.outcome import FetchResult, to_fetch_result


class LocateStrategy(str, Enum):
    CSS = "css"
    XPATH = "xpath"

    @classmethod
    def parse(cls, raw: Any) -> LocateStrategy:
        if isinstance(raw, LocateStrategy):
            return raw
        token = str(raw or "").strip().lower()
        if token == "xpath":
            return cls.XPATH
        if token in {"", "css", "css selector"}:
            return cls.CSS
        raise ValueError(f"Unknown locate strategy: {raw}")


class TextFetcher(Protocol):
    def get_text(self, selector: str, strategy: LocateStrategy) -> Any:
        """Return a FetchResult, or an awaitable resolving to one."""


class AmbientTextClient(Protocol):
    """Client whose locate strategy is global state switched by use_css/use_xpath."""

    def use_css(self) -> Any: ...

    def use_xpath(self) -> Any: ...

    def get_text(self, selector: str) -> Any: ...


class PinnedStrategyFetcher:
    """Adapts an ambient-strategy client to the explicit TextFetcher interface.

    Something else may flip the client's strategy between two polls (page
    object wrappers reset it after every call), so the requested strategy is
    switched on again before each read.
    """

    def __init__(self, client: AmbientTextClient) -> None:
        self.client = client

    async def get_text(self, selector: str, strategy: LocateStrategy) -> FetchResult:
        if strategy is LocateStrategy.XPATH:
            switched = self.client.use_xpath()
        else:
            switched = self.client.use_css()
        if inspect.isawaitable(switched):
            await switched

        raw = self.client.get_text(selector)
        if inspect.isawaitable(raw):
            raw = await raw
        return to_fetch_result(raw)

