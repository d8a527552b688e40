"""Transient user notifications (the CLI's toasts)."""

from __future__ import annotations

import logging

from rich.console import Console

logger = logging.getLogger(__name__)

_STYLE = {
    "success": ("green", "✓"),
    "error": ("red", "✗"),
    "warning": ("yellow", "⚠"),
    "info": ("cyan", "•"),
}


class Notifier:
    """Prints one-line notices to the console."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(stderr=True)

    def notify(self, level: str, message: str) -> None:
        color, mark = _STYLE.get(level, _STYLE["info"])
        logger.debug("notify %s: %s", level, message)
        self.console.print(f"[{color}]{mark} {message}[/{color}]")

    def success(self, message: str) -> None:
        self.notify("success", message)

    def error(self, message: str) -> None:
        self.notify("error", message)

    def warning(self, message: str) -> None:
        self.notify("warning", message)

    def info(self, message: str) -> None:
        self.notify("info", message)


class RecordingNotifier(Notifier):
    """Keeps ``(level, message)`` pairs instead of printing."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def notify(self, level: str, message: str) -> None:
        logger.debug("notify %s: %s", level, message)
        self.messages.append((level, message))

    def levels(self) -> list[str]:
        return [level for level, _ in self.messages]
