"""Per-run logger and event sink handed to every component."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

from .constraint import TOOL_NAME

EventCallback = Callable[[Any], None]


class EventSink:
    """Synchronous publish/subscribe hub owned by a single run."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[EventCallback]] = {}

    def on(self, event: str, callback: EventCallback) -> None:
        self._listeners.setdefault(event, []).append(callback)

    def off(self, event: str, callback: EventCallback) -> None:
        callbacks = self._listeners.get(event)
        if not callbacks:
            return
        try:
            callbacks.remove(callback)
        except ValueError:
            return
        if not callbacks:
            del self._listeners[event]

    def emit(self, event: str, payload: Any = None) -> None:
        for callback in list(self._listeners.get(event, ())):
            callback(payload)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))


@dataclass(slots=True)
class RunContext:
    logger: logging.Logger
    events: EventSink = field(default_factory=EventSink)

    @classmethod
    def create(cls, name: str = TOOL_NAME) -> "RunContext":
        return cls(logger=logging.getLogger(name))


def configure_logging(verbose: bool = False, console: Console | None = None) -> logging.Logger:
    logger = logging.getLogger(TOOL_NAME)
    logger.handlers.clear()
    handler = RichHandler(console=console, show_path=False, markup=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    return logger


__all__ = ["EventCallback", "EventSink", "RunContext", "configure_logging"]
