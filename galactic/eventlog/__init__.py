from __future__ import annotations

from .base import EventLog, log_exception
from .file import FileEventLog
from .models import Event, SeverityLevel
from .sql import SqlEventLog

__all__ = [
    "Event",
    "EventLog",
    "FileEventLog",
    "SeverityLevel",
    "SqlEventLog",
    "log_exception",
]
