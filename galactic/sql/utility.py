from __future__ import annotations

import logging
import os
from functools import lru_cache

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ..eventlog import EventLog, log_exception
from .row import SqlRow

log = logging.getLogger(__name__)


@lru_cache(maxsize=32)
def _engine(connection_string: str) -> Engine:
    return create_engine(connection_string, echo=False, future=True, pool_pre_ping=True)


def _append_statement(batches: list[str], chars: list[str]) -> None:
    stmt = "".join(chars).strip()
    if any(line.strip() and not line.strip().startswith("--") for line in stmt.splitlines()):
        batches.append(stmt)


class SqlUtility:
    """Runs SQL text against a database given by an SQLAlchemy URL."""

    max_nchar_length = 4000
    max_nvarchar_length = 4000
    max_varchar_length = 8000

    @staticmethod
    def engine(connection_string: str) -> Engine:
        connection_string = (connection_string or "").strip()
        if not connection_string:
            raise ValueError("connection_string must not be empty")
        return _engine(connection_string)

    def execute_non_query(self, command: str, connection_string: str, event_log: EventLog | None = None) -> bool:
        if not (command or "").strip():
            raise ValueError("command must not be empty")
        try:
            with self.engine(connection_string).begin() as conn:
                conn.execute(text(command))
            return True
        except SQLAlchemyError as e:
            log.warning("SQL command failed: %s", e)
            log_exception(e, event_log, __name__)
            return False

    def execute_query(self, query: str, connection_string: str, event_log: EventLog | None = None) -> list[SqlRow]:
        if not (query or "").strip():
            raise ValueError("query must not be empty")
        try:
            with self.engine(connection_string).connect() as conn:
                result = conn.execute(text(query))
                return [SqlRow.from_mapping(r) for r in result.mappings()]
        except SQLAlchemyError as e:
            log.warning("SQL query failed: %s", e)
            log_exception(e, event_log, __name__)
            return []

    @staticmethod
    def _read_file(path: str, event_log: EventLog | None) -> str | None:
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except OSError as e:
            log.warning("Unable to read SQL file %s: %s", path, e)
            log_exception(e, event_log, __name__)
            return None

    def execute_non_query_sql_file(self, path: str, connection_string: str, event_log: EventLog | None = None) -> bool:
        sql = self._read_file(path, event_log)
        if not sql:
            return False
        return self.execute_non_query(sql, connection_string, event_log)

    def execute_query_sql_file(self, path: str, connection_string: str, event_log: EventLog | None = None) -> list[SqlRow]:
        sql = self._read_file(path, event_log)
        if not sql:
            return []
        return self.execute_query(sql, connection_string, event_log)

    def split_batches(self, script: str) -> list[str]:
        """Statements of a script, split on `;` outside quotes and `--` comments."""
        batches: list[str] = []
        current: list[str] = []
        quote = None
        comment = False
        for ch in script:
            if comment:
                current.append(ch)
                if ch == "\n":
                    comment = False
                continue
            if quote:
                current.append(ch)
                # a doubled quote reopens the literal on the next character
                if ch == quote:
                    quote = None
                continue
            if ch in ("'", '"'):
                quote = ch
            elif ch == "-" and current and current[-1] == "-":
                comment = True
            elif ch == ";":
                _append_statement(batches, current)
                current = []
                continue
            current.append(ch)
        _append_statement(batches, current)
        return batches

    def run_script(self, connection_string: str, script_paths: list[str], event_log: EventLog | None = None) -> bool:
        """Run each script in order inside one transaction. Every file must exist first."""
        if not script_paths:
            raise ValueError("script_paths must not be empty")
        missing = [p for p in script_paths if not os.path.isfile(p)]
        if missing:
            log.warning("SQL scripts not found: %s", ", ".join(missing))
            return False
        batches: list[str] = []
        for p in script_paths:
            sql = self._read_file(p, event_log)
            if sql is None:
                return False
            batches.extend(self.split_batches(sql))
        try:
            with self.engine(connection_string).begin() as conn:
                for b in batches:
                    conn.execute(text(b))
            return True
        except SQLAlchemyError as e:
            log.warning("SQL script failed: %s", e)
            log_exception(e, event_log, __name__)
            return False
