from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String, create_engine, delete, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker

from .base import EventLog, _aware
from .models import Event, SeverityLevel

log = logging.getLogger(__name__)

MAX_DETAILS_LENGTH = 4000


class Base(DeclarativeBase):
    pass


class EventRecord(Base):
    __tablename__ = "galactic_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    source: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    category: Mapped[str] = mapped_column(String(255), nullable=False)
    severity: Mapped[str] = mapped_column(String(16), nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    details: Mapped[str] = mapped_column(String(MAX_DETAILS_LENGTH), default="", nullable=False)

    def to_event(self) -> Event:
        date = self.date
        # SQLite drops tzinfo; values are stored as UTC.
        if date.tzinfo is None:
            date = date.replace(tzinfo=timezone.utc)
        return Event(
            source=self.source,
            date=date,
            severity=SeverityLevel.from_name(self.severity),
            category=self.category,
            details=self.details,
        )


def _utc(dt: datetime | None) -> datetime | None:
    dt = _aware(dt)
    return dt.astimezone(timezone.utc) if dt is not None else None


class SqlEventLog(EventLog):
    """Event log backed by a single SQL table."""

    def __init__(self, url_or_engine: str | Engine, create_schema: bool = True) -> None:
        if isinstance(url_or_engine, Engine):
            self.engine = url_or_engine
        else:
            url = (url_or_engine or "").strip()
            if not url:
                raise ValueError("database url must not be empty")
            self.engine = create_engine(url, echo=False, future=True)
        self.Session = sessionmaker(bind=self.engine, autocommit=False, autoflush=False, future=True)
        if create_schema:
            Base.metadata.create_all(self.engine)

    def log(self, event: Event) -> bool:
        if event is None:
            raise TypeError("event must not be None")
        rec = EventRecord(
            source=event.source,
            category=event.category,
            severity=event.severity.value,
            date=_utc(event.date),
            details=(event.details or "")[:MAX_DETAILS_LENGTH],
        )
        try:
            with self.Session() as db:
                db.add(rec)
                db.commit()
            return True
        except SQLAlchemyError as e:
            log.warning("Unable to write event to database: %s", e)
            return False

    def find(
        self,
        source: str | None = None,
        severity: SeverityLevel | None = None,
        category: str | None = None,
        begin: datetime | None = None,
        end: datetime | None = None,
    ) -> list[Event]:
        stmt = select(EventRecord)
        if source:
            stmt = stmt.where(func.lower(EventRecord.source) == source.strip().lower())
        if severity is not None:
            stmt = stmt.where(EventRecord.severity == severity.value)
        if category:
            stmt = stmt.where(func.lower(EventRecord.category) == category.strip().lower())
        if begin is not None:
            stmt = stmt.where(EventRecord.date >= _utc(begin))
        if end is not None:
            stmt = stmt.where(EventRecord.date <= _utc(end))
        stmt = stmt.order_by(EventRecord.date.asc(), EventRecord.id.asc())
        try:
            with self.Session() as db:
                return [r.to_event() for r in db.scalars(stmt).all()]
        except SQLAlchemyError as e:
            log.warning("Unable to query events: %s", e)
            return []

    def delete_events(self, source: str | None = None, before: datetime | None = None) -> int:
        """Delete matching events, returning the number removed (-1 on error)."""
        stmt = delete(EventRecord)
        if source:
            stmt = stmt.where(func.lower(EventRecord.source) == source.strip().lower())
        if before is not None:
            stmt = stmt.where(EventRecord.date < _utc(before))
        try:
            with self.Session() as db:
                res = db.execute(stmt)
                db.commit()
                return int(res.rowcount or 0)
        except SQLAlchemyError as e:
            log.warning("Unable to delete events: %s", e)
            return -1
