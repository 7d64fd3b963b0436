from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime


class PriorityLevel(enum.IntEnum):
    HIGH = 1
    MEDIUM = 2
    LOW = 3


@dataclass
class Event:
    title: str = ""
    description: str = ""
    location: str = ""
    location_url: str = ""
    canceled: bool = False
    no_end_time: bool = False
    priority: PriorityLevel = PriorityLevel.MEDIUM
    start_date: datetime | None = None
    end_date: datetime | None = None
    all_day_event: bool = False
    contact_name: str = ""
    contact_email: str = ""
    contact_phone: str = ""
    reoccurring: bool = False
    last_updated: datetime | None = None
    last_updated_by: str = ""
    details_last_updated: datetime | None = None
    details_last_updated_by: str = ""
    on_multiple_calendars: bool = False
    uid: str = ""


@dataclass
class Calendar:
    name: str
    description: str = ""
    events: list[Event] = field(default_factory=list)
