from __future__ import annotations

import abc
from datetime import datetime

from .models import Calendar


class CalendarUtility(abc.ABC):
    @property
    @abc.abstractmethod
    def calendar_names(self) -> list[str]:
        raise NotImplementedError

    @abc.abstractmethod
    def get_calendar(self, name: str, start: datetime, end: datetime) -> Calendar | None:
        """The named calendar with the events that start between start and end."""
        raise NotImplementedError

    @abc.abstractmethod
    def save_calendar(self, calendar: Calendar) -> bool:
        raise NotImplementedError
