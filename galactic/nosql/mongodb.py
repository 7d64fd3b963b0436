from __future__ import annotations

import logging
from typing import Any

from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from ..configuration import ConfigurationItem
from ..eventlog import EventLog, log_exception
from ..exceptions import ConfigurationError
from .base import NoSqlUtility
from .document import Document, DocumentKind

log = logging.getLogger(__name__)

DEFAULT_COLLECTION = "default"


def validate_collection_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise ValueError("collection name must not be empty")
    if "$" in name or "\x00" in name or name.startswith("system."):
        raise ValueError(f"invalid collection name: {name!r}")
    return name


class MongoDBUtility(NoSqlUtility):
    def __init__(
        self,
        connection_string: str,
        database: str,
        client: MongoClient | None = None,
        event_log: EventLog | None = None,
        collection: str = DEFAULT_COLLECTION,
    ) -> None:
        database = (database or "").strip()
        if not database:
            raise ValueError("database must not be empty")
        if client is None and not (connection_string or "").strip():
            raise ValueError("connection_string must not be empty")
        self.client = client if client is not None else MongoClient(connection_string)
        self.database = self.client[database]
        self.event_log = event_log
        self.default_collection = validate_collection_name(collection)

    @classmethod
    def from_configuration_item(cls, folder_path: str, name: str, encrypted: bool = True, **kwargs: Any) -> "MongoDBUtility":
        """Item text is `connection_string|database`."""
        text = ConfigurationItem(folder_path, name, encrypted).value
        parts = [p.strip() for p in (text or "").strip().split("|")]
        if len(parts) != 2 or not all(parts):
            raise ConfigurationError(f"MongoDB configuration item {name!r} is malformed")
        return cls(parts[0], parts[1], **kwargs)

    def collection(self, name: str | None = None) -> Collection:
        return self.database[validate_collection_name(name or self.default_collection)]

    def _fail(self, action: str, e: PyMongoError) -> None:
        log.warning("MongoDB %s failed: %s", action, e)
        log_exception(e, self.event_log, __name__)

    def add_or_replace(self, id: Any, document: Document, collection: str | None = None) -> str | None:
        if document is None:
            raise TypeError("document must not be None")
        if document.kind is not DocumentKind.MAP:
            raise ValueError("only map documents can be stored")
        doc = document.to_python()
        try:
            if id is None:
                doc.pop("_id", None)
                return str(self.collection(collection).insert_one(doc).inserted_id)
            doc["_id"] = id
            self.collection(collection).replace_one({"_id": id}, doc, upsert=True)
            return str(id)
        except PyMongoError as e:
            self._fail("add_or_replace", e)
            return None

    def delete(self, id: Any, collection: str | None = None) -> bool:
        if id is None:
            raise TypeError("id must not be None")
        try:
            return self.collection(collection).delete_one({"_id": id}).deleted_count == 1
        except PyMongoError as e:
            self._fail("delete", e)
            return False

    def get(self, id: Any, collection: str | None = None) -> Document | None:
        if id is None:
            raise TypeError("id must not be None")
        try:
            doc = self.collection(collection).find_one({"_id": id})
        except PyMongoError as e:
            self._fail("get", e)
            return None
        return Document.from_python(doc) if doc is not None else None

    def get_by_query(self, query: dict, collection: str | None = None) -> list[Document]:
        try:
            return [Document.from_python(d) for d in self.collection(collection).find(query or {})]
        except PyMongoError as e:
            self._fail("query", e)
            return []

    def drop_collection(self, name: str) -> bool:
        try:
            self.database.drop_collection(validate_collection_name(name))
            return True
        except PyMongoError as e:
            self._fail("drop_collection", e)
            return False
