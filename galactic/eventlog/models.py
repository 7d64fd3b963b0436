from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import total_ordering

UNKNOWN = "Unknown"


def _aware(dt: datetime | None) -> datetime | None:
    if dt is None or dt.tzinfo is not None:
        return dt
    return dt.astimezone()


class SeverityLevel(enum.Enum):
    INFORMATION = "Information"
    WARNING = "Warning"
    ERROR = "Error"
    UNKNOWN = "Unknown"

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def from_name(cls, name: str | None) -> "SeverityLevel":
        s = (name or "").strip().casefold()
        for member in cls:
            if member.value.casefold() == s:
                return member
        return cls.UNKNOWN


@total_ordering
@dataclass(eq=False)
class Event:
    """An entry recorded in an event log. Events sort by date."""

    source: str = UNKNOWN
    date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    severity: SeverityLevel = SeverityLevel.UNKNOWN
    category: str = UNKNOWN
    details: str = ""

    def __post_init__(self) -> None:
        self.source = (self.source or "").strip() or UNKNOWN
        self.category = (self.category or "").strip() or UNKNOWN
        if not isinstance(self.severity, SeverityLevel):
            self.severity = SeverityLevel.from_name(str(self.severity))
        if self.details is None:
            self.details = ""

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Event):
            return NotImplemented
        return (
            self.date == other.date
            and self.source == other.source
            and self.category == other.category
            and self.severity is other.severity
            and self.details == other.details
        )

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Event):
            return NotImplemented
        return _aware(self.date) < _aware(other.date)

    __hash__ = None  # type: ignore[assignment]

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "date": self.date.isoformat(),
            "severity": self.severity.value,
            "category": self.category,
            "details": self.details,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Event":
        return cls(
            source=d.get("source") or UNKNOWN,
            date=datetime.fromisoformat(d["date"]),
            severity=SeverityLevel.from_name(d.get("severity")),
            category=d.get("category") or UNKNOWN,
            details=d.get("details") or "",
        )
