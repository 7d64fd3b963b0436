"""Calendars published as iCalendar (.ics) feeds."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import date, datetime, time, timezone

import httpx
import icalendar

from ..configuration import ConfigurationItem
from ..env_settings import get_env
from ..exceptions import ConfigurationError
from .base import CalendarUtility
from .models import Calendar, Event, PriorityLevel

log = logging.getLogger(__name__)

PRODID = "-//Galactic//Calendar//EN"

# RFC 5545 PRIORITY: 0 undefined, 1-4 high, 5 medium, 6-9 low.
PRIORITY_UNDEFINED = 0
PRIORITY_HIGH_MAX = 4
PRIORITY_MEDIUM_MAX = 6
_PRIORITY_OUT = {PriorityLevel.HIGH: 1, PriorityLevel.MEDIUM: 5, PriorityLevel.LOW: 7}


@dataclass
class CalendarSource:
    name: str
    uri: str
    credentials: tuple[str, str] | None = None


def priority_from_ical(value: int | None) -> PriorityLevel:
    try:
        n = int(value or PRIORITY_UNDEFINED)
    except (TypeError, ValueError):
        return PriorityLevel.MEDIUM
    if n == PRIORITY_UNDEFINED:
        return PriorityLevel.MEDIUM
    if n <= PRIORITY_HIGH_MAX:
        return PriorityLevel.HIGH
    if n <= PRIORITY_MEDIUM_MAX:
        return PriorityLevel.MEDIUM
    return PriorityLevel.LOW


def _as_datetime(v: date | datetime | None) -> datetime | None:
    if v is None:
        return None
    if isinstance(v, datetime):
        return v if v.tzinfo else v.replace(tzinfo=timezone.utc)
    return datetime.combine(v, time.min, tzinfo=timezone.utc)


def _decoded(component: icalendar.cal.Component, name: str):
    if name not in component:
        return None
    try:
        return component.decoded(name)
    except (KeyError, ValueError):
        return None


def _text(component: icalendar.cal.Component, name: str) -> str:
    v = component.get(name)
    return str(v) if v is not None else ""


def parse_config(text: str | None) -> dict[str, CalendarSource]:
    """Parse `Name|URI|username|password` lines; credentials need both parts."""
    sources: dict[str, CalendarSource] = {}
    for lineno, line in enumerate((text or "").splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        parts = [p.strip() for p in line.split("|")]
        if len(parts) != 4 or not parts[0] or not parts[1]:
            raise ConfigurationError(f"calendar configuration line {lineno} is malformed")
        name, uri, username, password = parts
        creds = (username, password) if username and password else None
        sources[name] = CalendarSource(name, uri, creds)
    return sources


class ICalendarUtility(CalendarUtility):
    def __init__(self, config_text: str | None = None, http_client: httpx.Client | None = None) -> None:
        self.sources = parse_config(config_text)
        self.http = http_client or httpx.Client(timeout=get_env().http_timeout_s, follow_redirects=True)

    @classmethod
    def from_configuration_item(
        cls,
        folder_path: str,
        name: str,
        encrypted: bool = True,
        http_client: httpx.Client | None = None,
    ) -> "ICalendarUtility":
        item = ConfigurationItem(folder_path, name, encrypted)
        text = item.value
        if text is None:
            raise ConfigurationError(f"configuration item {name!r} could not be read")
        return cls(text, http_client)

    @property
    def calendar_names(self) -> list[str]:
        return list(self.sources)

    def _fetch(self, source: CalendarSource) -> str | None:
        auth = httpx.BasicAuth(*source.credentials) if source.credentials else None
        try:
            r = self.http.get(source.uri, auth=auth)
            r.raise_for_status()
        except httpx.HTTPError as e:
            log.warning("Unable to fetch calendar %s from %s: %s", source.name, source.uri, e)
            return None
        return r.text

    def get_calendar(self, name: str, start: datetime, end: datetime) -> Calendar | None:
        name = (name or "").strip()
        if not name:
            raise ValueError("name must not be empty")
        source = self.sources.get(name)
        if source is None:
            return None
        text = self._fetch(source)
        if text is None:
            return None
        calendar = self.parse(text, name)
        if calendar is None:
            return None
        lo, hi = _as_datetime(start), _as_datetime(end)
        calendar.events = [
            e for e in calendar.events
            if e.start_date is not None
            and (lo is None or e.start_date >= lo)
            and (hi is None or e.start_date <= hi)
        ]
        return calendar

    @staticmethod
    def parse(text: str, name: str = "") -> Calendar | None:
        try:
            cal = icalendar.Calendar.from_ical(text)
        except ValueError as e:
            log.warning("Unable to parse calendar %s: %s", name, e)
            return None
        calendar = Calendar(
            name=name or _text(cal, "X-WR-CALNAME"),
            description=_text(cal, "X-WR-CALDESC"),
        )
        for comp in cal.walk("VEVENT"):
            calendar.events.append(ICalendarUtility._event(comp))
        calendar.events.sort(key=lambda e: e.start_date or datetime.min.replace(tzinfo=timezone.utc))
        return calendar

    @staticmethod
    def _event(comp: icalendar.cal.Component) -> Event:
        raw_start = _decoded(comp, "DTSTART")
        raw_end = _decoded(comp, "DTEND")
        all_day = isinstance(raw_start, date) and not isinstance(raw_start, datetime)
        organizer = comp.get("ORGANIZER")
        contact_name = ""
        contact_email = ""
        if organizer is not None:
            contact_name = str(organizer.params.get("CN", "")) if hasattr(organizer, "params") else ""
            addr = str(organizer)
            contact_email = addr[7:] if addr.lower().startswith("mailto:") else addr
        contact = _text(comp, "CONTACT")
        return Event(
            uid=_text(comp, "UID"),
            title=_text(comp, "SUMMARY"),
            description=_text(comp, "DESCRIPTION"),
            location=_text(comp, "LOCATION"),
            location_url=_text(comp, "URL"),
            canceled=_text(comp, "STATUS").upper() == "CANCELLED",
            no_end_time=raw_end is None and "DURATION" not in comp,
            priority=priority_from_ical(comp.get("PRIORITY")),
            start_date=_as_datetime(raw_start),
            end_date=_as_datetime(raw_end),
            all_day_event=all_day,
            contact_name=contact_name or contact,
            contact_email=contact_email,
            reoccurring="RRULE" in comp or "RDATE" in comp,
            last_updated=_as_datetime(_decoded(comp, "LAST-MODIFIED")),
            details_last_updated=_as_datetime(_decoded(comp, "DTSTAMP")),
        )

    @staticmethod
    def get_calendar_text(calendar: Calendar) -> str:
        if calendar is None:
            raise TypeError("calendar must not be None")
        cal = icalendar.Calendar()
        cal.add("prodid", PRODID)
        cal.add("version", "2.0")
        cal.add("x-wr-calname", calendar.name)
        if calendar.description:
            cal.add("x-wr-caldesc", calendar.description)
        for e in calendar.events:
            ev = icalendar.Event()
            if e.uid:
                ev.add("uid", e.uid)
            ev.add("summary", e.title)
            if e.start_date is not None:
                ev.add("dtstart", e.start_date.date() if e.all_day_event else e.start_date)
            if e.end_date is not None and not e.no_end_time:
                ev.add("dtend", e.end_date.date() if e.all_day_event else e.end_date)
            if e.description:
                ev.add("description", e.description)
            if e.location:
                ev.add("location", e.location)
            if e.location_url:
                ev.add("url", e.location_url)
            if e.canceled:
                ev.add("status", "CANCELLED")
            ev.add("priority", _PRIORITY_OUT[e.priority])
            if e.contact_email:
                organizer = icalendar.vCalAddress(f"mailto:{e.contact_email}")
                if e.contact_name:
                    organizer.params["cn"] = icalendar.vText(e.contact_name)
                ev.add("organizer", organizer)
            if e.contact_phone:
                ev.add("contact", e.contact_phone)
            if e.last_updated is not None:
                ev.add("last-modified", e.last_updated)
            cal.add_component(ev)
        return cal.to_ical().decode("utf-8")

    def save_calendar(self, calendar: Calendar, path: str | None = None) -> bool:
        """Write the calendar as an .ics file (default: `<config_dir>/<name>.ics`)."""
        if calendar is None:
            raise TypeError("calendar must not be None")
        target = path or os.path.join(get_env().config_dir, f"{calendar.name}.ics")
        try:
            with open(target, "w", encoding="utf-8", newline="") as f:
                f.write(self.get_calendar_text(calendar))
            return True
        except OSError as e:
            log.warning("Unable to save calendar %s to %s: %s", calendar.name, target, e)
            return False
