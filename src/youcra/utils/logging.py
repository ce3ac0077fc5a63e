"""Console logging with an explicit, configurable suppression policy."""

from __future__ import annotations

import re
from typing import Any, Iterable, List, Optional, Pattern

from rich.console import Console
from rich.errors import MarkupError
from rich.text import Text

from youcra.config.settings import LogFilterConfig, Settings, get_settings

_DEBUG_PREFIX = "[dim]debug:[/dim]"


class LogFilter:
    """Decides whether a console message should be suppressed."""

    def __init__(self, contains: Iterable[str] = (), patterns: Iterable[str] = ()) -> None:
        self._contains: List[str] = [item for item in contains if item]
        self._patterns: List[Pattern[str]] = [re.compile(pattern) for pattern in patterns]

    @classmethod
    def from_config(cls, config: LogFilterConfig) -> "LogFilter":
        return cls(contains=config.contains, patterns=config.patterns)

    def is_suppressed(self, message: str) -> bool:
        if any(fragment in message for fragment in self._contains):
            return True
        return any(pattern.search(message) for pattern in self._patterns)


class FilteredConsole(Console):
    """Rich console that drops log lines matched by a :class:`LogFilter`.

    Debug lines (those passed through :meth:`debug`) are only written when the
    configured level is ``DEBUG``.
    """

    def __init__(
        self,
        *args: Any,
        log_filter: Optional[LogFilter] = None,
        log_level: str = "INFO",
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.log_filter = log_filter or LogFilter()
        self.log_level = log_level.upper()

    def log(self, *objects: Any, _stack_offset: int = 1, **kwargs: Any) -> None:  # type: ignore[override]
        message = " ".join(_plain_text(obj) for obj in objects)
        if self.log_filter.is_suppressed(message):
            return
        super().log(*objects, _stack_offset=_stack_offset + 1, **kwargs)

    def debug(self, message: str) -> None:
        """Log ``message`` only when running at DEBUG level."""

        if self.log_level != "DEBUG":
            return
        self.log(f"{_DEBUG_PREFIX} {message}", _stack_offset=2)


def _plain_text(obj: Any) -> str:
    if isinstance(obj, Text):
        return obj.plain
    if isinstance(obj, str):
        try:
            return Text.from_markup(obj).plain
        except MarkupError:
            return obj
    return str(obj)


def create_console(settings: Optional[Settings] = None, **kwargs: Any) -> FilteredConsole:
    """Build the application console from settings."""

    settings = settings or get_settings()
    return FilteredConsole(
        log_filter=LogFilter.from_config(settings.log_filters),
        log_level=settings.log_level,
        **kwargs,
    )


def log_debug(console: Console, message: str) -> None:
    """Emit a debug line on consoles that support level filtering."""

    if isinstance(console, FilteredConsole):
        console.debug(message)


__all__ = ["FilteredConsole", "LogFilter", "create_console", "log_debug"]
