"""Interface between the polling engine and whatever displays its state."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import structlog

logger = structlog.get_logger(__name__)

APP_NAME = "Azure PRMate"


@dataclass(slots=True, frozen=True)
class Status:
    count: int = 0
    fetching: bool = False
    error: bool = False

    @property
    def tooltip(self) -> str:
        if self.error:
            return f"{APP_NAME} (error)"
        text = f"{APP_NAME} ({self.count} awaiting)"
        if self.fetching:
            text += " (fetching...)"
        return text


class Notifier(Protocol):
    def set_status(self, count: int, fetching: bool, error: bool) -> None: ...

    def show_reminder(self, count: int) -> None: ...

    def set_error_tooltip(self) -> None: ...


class AutoStartController(Protocol):
    """Run-at-login toggle owned by the UI layer."""

    def is_enabled(self) -> bool: ...

    def enable(self) -> None: ...

    def disable(self) -> None: ...


def reminder_message(count: int) -> str:
    return (
        f"You have {count} pull request(s) awaiting your attention. "
        "Click the Azure icon to view them."
    )


class LoggingNotifier:
    """Headless notifier that reports status through the log."""

    def __init__(self, pull_requests_url: str) -> None:
        self.pull_requests_url = pull_requests_url
        self.status = Status()

    def set_status(self, count: int, fetching: bool, error: bool) -> None:
        self.status = Status(count=count, fetching=fetching, error=error)
        logger.info("status_changed", tooltip=self.status.tooltip, count=count, fetching=fetching, error=error)

    def show_reminder(self, count: int) -> None:
        logger.info("reminder", message=reminder_message(count), url=self.pull_requests_url)

    def set_error_tooltip(self) -> None:
        self.status = Status(count=self.status.count, error=True)
        logger.info("status_changed", tooltip=self.status.tooltip, error=True)


__all__ = [
    "APP_NAME",
    "AutoStartController",
    "LoggingNotifier",
    "Notifier",
    "Status",
    "reminder_message",
]
