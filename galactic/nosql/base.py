from __future__ import annotations

import abc
from typing import Any

from .document import Document


class NoSqlUtility(abc.ABC):
    @abc.abstractmethod
    def add_or_replace(self, id: Any, document: Document) -> str | None:
        """Store a document under id; returns the stored id or None on failure."""

    @abc.abstractmethod
    def delete(self, id: Any) -> bool: ...

    @abc.abstractmethod
    def get(self, id: Any) -> Document | None: ...

    @abc.abstractmethod
    def get_by_query(self, query: dict) -> list[Document]: ...
