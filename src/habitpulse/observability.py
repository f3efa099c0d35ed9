"""Side channel for statistics events.

Aggregate code reports what it built or served through a :class:`StatsObserver`
instead of writing anywhere itself. The default observer forwards events to
the ``habitpulse.stats`` logger; tests plug in :class:`RecordingObserver`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from .logging_config import get_logger


@dataclass(frozen=True)
class StatsEvent:
    name: str
    user_id: int
    range_key: str
    fields: dict[str, Any] = field(default_factory=dict)


class StatsObserver(Protocol):
    def emit(self, event: StatsEvent) -> None:  # pragma: no cover - interface
        ...


class LoggingObserver:
    """Write events as structured debug records."""

    def __init__(self, logger: logging.Logger | None = None, level: int = logging.DEBUG):
        self.logger = logger or get_logger("stats")
        self.level = level

    def emit(self, event: StatsEvent) -> None:
        self.logger.log(
            self.level,
            "stats event %s for %s",
            event.name,
            event.range_key,
            extra={"event": event.name, "user_id": event.user_id, **event.fields},
        )


class RecordingObserver:
    """Keep events in memory."""

    def __init__(self) -> None:
        self.events: list[StatsEvent] = []

    def emit(self, event: StatsEvent) -> None:
        self.events.append(event)

    def names(self) -> list[str]:
        return [event.name for event in self.events]


__all__ = ["LoggingObserver", "RecordingObserver", "StatsEvent", "StatsObserver"]
