from __future__ import annotations

from .base import CalendarUtility
from .ical import ICalendarUtility
from .models import Calendar, Event, PriorityLevel

__all__ = ["Calendar", "CalendarUtility", "Event", "ICalendarUtility", "PriorityLevel"]
