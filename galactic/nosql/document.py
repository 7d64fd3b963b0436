"""Schema-free documents as a closed set of value kinds."""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Any


class DocumentKind(enum.Enum):
    NULL = "null"
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    STR = "str"
    BYTES = "bytes"
    DATETIME = "datetime"
    LIST = "list"
    MAP = "map"


@dataclass(frozen=True)
class Document:
    kind: DocumentKind
    value: Any = None

    @classmethod
    def null(cls) -> "Document":
        return cls(DocumentKind.NULL)

    @classmethod
    def map(cls, fields: dict[str, "Document"] | None = None) -> "Document":
        return cls(DocumentKind.MAP, dict(fields or {}))

    @classmethod
    def from_python(cls, obj: Any) -> "Document":
        if isinstance(obj, Document):
            return obj
        if obj is None:
            return cls.null()
        # bool before int: bool is an int subclass
        if isinstance(obj, bool):
            return cls(DocumentKind.BOOL, obj)
        if isinstance(obj, int):
            return cls(DocumentKind.INT, obj)
        if isinstance(obj, float):
            return cls(DocumentKind.FLOAT, obj)
        if isinstance(obj, str):
            return cls(DocumentKind.STR, obj)
        if isinstance(obj, (bytes, bytearray)):
            return cls(DocumentKind.BYTES, bytes(obj))
        if isinstance(obj, datetime):
            return cls(DocumentKind.DATETIME, obj)
        if isinstance(obj, (list, tuple)):
            return cls(DocumentKind.LIST, [cls.from_python(v) for v in obj])
        if isinstance(obj, dict):
            return cls(DocumentKind.MAP, {str(k): cls.from_python(v) for k, v in obj.items()})
        # ObjectId, Decimal128 and similar driver scalars
        return cls(DocumentKind.STR, str(obj))

    def to_python(self) -> Any:
        if self.kind is DocumentKind.LIST:
            return [v.to_python() for v in self.value]
        if self.kind is DocumentKind.MAP:
            return {k: v.to_python() for k, v in self.value.items()}
        return self.value

    @property
    def is_null(self) -> bool:
        return self.kind is DocumentKind.NULL

    def get(self, key: str, default: "Document | None" = None) -> "Document | None":
        if self.kind is not DocumentKind.MAP:
            raise TypeError(f"{self.kind.value} document has no fields")
        return self.value.get(key, default)

    def __getitem__(self, key: str | int) -> "Document":
        if self.kind is DocumentKind.MAP and isinstance(key, str):
            return self.value[key]
        if self.kind is DocumentKind.LIST and isinstance(key, int):
            return self.value[key]
        raise TypeError(f"cannot index {self.kind.value} document with {type(key).__name__}")

    def keys(self) -> list[str]:
        if self.kind is not DocumentKind.MAP:
            raise TypeError(f"{self.kind.value} document has no fields")
        return list(self.value)
