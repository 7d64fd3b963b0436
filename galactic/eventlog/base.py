from __future__ import annotations

import abc
import logging
import traceback
from datetime import datetime

from .models import Event, SeverityLevel, _aware

log = logging.getLogger(__name__)


class EventLog(abc.ABC):
    """A sink for events that can also be queried back."""

    @abc.abstractmethod
    def log(self, event: Event) -> bool:
        raise NotImplementedError

    @abc.abstractmethod
    def find(
        self,
        source: str | None = None,
        severity: SeverityLevel | None = None,
        category: str | None = None,
        begin: datetime | None = None,
        end: datetime | None = None,
    ) -> list[Event]:
        raise NotImplementedError

    @staticmethod
    def matches(
        event: Event,
        source: str | None = None,
        severity: SeverityLevel | None = None,
        category: str | None = None,
        begin: datetime | None = None,
        end: datetime | None = None,
    ) -> bool:
        if source and event.source.casefold() != source.strip().casefold():
            return False
        if severity is not None and event.severity is not severity:
            return False
        if category and event.category.casefold() != category.strip().casefold():
            return False
        date = _aware(event.date)
        if begin is not None and date < _aware(begin):
            return False
        if end is not None and date > _aware(end):
            return False
        return True


def log_exception(exc: BaseException, event_log: EventLog | None, source: str) -> bool:
    """Record an exception as an Error event on an injected event log.

    Returns False when no event log is supplied or the write fails.
    """
    if event_log is None:
        return False
    details = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    event = Event(
        source=source,
        severity=SeverityLevel.ERROR,
        category=f"{type(exc).__module__}.{type(exc).__qualname__}",
        details=f"{exc}\n{details}",
    )
    try:
        return event_log.log(event)
    except Exception:  # noqa: BLE001
        log.exception("Failed to write exception to event log")
        return False
