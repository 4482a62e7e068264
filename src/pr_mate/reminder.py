"""Cooldown gate for reminder notifications."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta


@dataclass(slots=True)
class ReminderCadenceTracker:
    frequency: timedelta
    last_reminder_at: datetime | None = None

    @classmethod
    def every(cls, minutes: int) -> ReminderCadenceTracker:
        return cls(frequency=timedelta(minutes=minutes))

    def should_remind(self, count: int, now: datetime) -> bool:
        if count <= 0:
            return False
        return self.last_reminder_at is None or now - self.last_reminder_at > self.frequency

    def remind_if_due(self, count: int, now: datetime, remind: Callable[[int], None]) -> bool:
        """Record the reminder and fire ``remind`` when one is due."""
        if not self.should_remind(count, now):
            return False
        self.last_reminder_at = now
        remind(count)
        return True


__all__ = ["ReminderCadenceTracker"]
