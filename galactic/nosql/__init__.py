from __future__ import annotations

from .base import NoSqlUtility
from .document import Document, DocumentKind
from .mongodb import MongoDBUtility

__all__ = ["Document", "DocumentKind", "MongoDBUtility", "NoSqlUtility"]
