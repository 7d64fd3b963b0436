from __future__ import annotations

import json
import logging
import os
from datetime import datetime

from .base import EventLog, _aware
from .models import Event, SeverityLevel

log = logging.getLogger(__name__)


class FileEventLog(EventLog):
    """Event log stored as JSON lines in `<log_path>/<log_name>.log`."""

    def __init__(self, log_name: str, log_path: str) -> None:
        log_name = (log_name or "").strip()
        log_path = (log_path or "").strip()
        if not log_name:
            raise ValueError("log_name must not be empty")
        if not log_path:
            raise ValueError("log_path must not be empty")
        if not os.path.isdir(log_path):
            raise FileNotFoundError(log_path)
        self.log_name = log_name
        self.log_path = log_path

    @property
    def file_path(self) -> str:
        return os.path.join(self.log_path, f"{self.log_name}.log")

    def log(self, event: Event) -> bool:
        if event is None:
            raise TypeError("event must not be None")
        if not (event.source and event.category and event.details):
            return False
        try:
            with open(self.file_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(event.to_dict(), ensure_ascii=False))
                f.write("\n")
            return True
        except OSError as e:
            log.warning("Unable to write event log %s: %s", self.file_path, e)
            return False

    def _read(self) -> list[Event]:
        if not os.path.isfile(self.file_path):
            return []
        events: list[Event] = []
        with open(self.file_path, "r", encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    events.append(Event.from_dict(json.loads(line)))
                except (ValueError, KeyError) as e:
                    log.warning("Skipping malformed event at %s:%d: %s", self.file_path, lineno, e)
        return events

    def find(
        self,
        source: str | None = None,
        severity: SeverityLevel | None = None,
        category: str | None = None,
        begin: datetime | None = None,
        end: datetime | None = None,
    ) -> list[Event]:
        try:
            events = self._read()
        except OSError as e:
            log.warning("Unable to read event log %s: %s", self.file_path, e)
            return []
        found = [e for e in events if self.matches(e, source, severity, category, begin, end)]
        return sorted(found, key=lambda e: _aware(e.date))
