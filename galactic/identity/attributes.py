"""Attribute carriers and the per-class attribute registration table.

Every concrete identity class declares which backing-store attribute names it
understands and how to read or write each of them. `get_attributes` and
`set_attributes` consult this table only.
"""
from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")

Getter = Callable[[Any], Any]
# A setter may return False to report a failed remote write; None counts as success.
Setter = Callable[[Any, Any], "bool | None"]


@dataclass(frozen=True)
class IdentityAttribute(Generic[T]):
    name: str
    value: T


@dataclass(frozen=True)
class AttributeAccessor:
    name: str
    getter: Getter
    setter: Setter | None = None

    @property
    def writable(self) -> bool:
        return self.setter is not None

    @classmethod
    def from_property(cls, name: str, prop: property) -> "AttributeAccessor":
        if not isinstance(prop, property) or prop.fget is None:
            raise TypeError(f"{name}: expected a readable property")
        return cls(name, prop.fget, prop.fset)


class AttributeTable(Mapping[str, AttributeAccessor]):
    """Immutable, case-insensitive map of attribute name to accessor."""

    def __init__(self, *accessors: AttributeAccessor) -> None:
        items: dict[str, AttributeAccessor] = {}
        for a in accessors:
            key = a.name.casefold()
            if not key:
                raise ValueError("attribute name must not be empty")
            if key in items:
                raise ValueError(f"duplicate attribute name: {a.name}")
            items[key] = a
        self._items = items

    def extend(self, *accessors: AttributeAccessor) -> "AttributeTable":
        return AttributeTable(*self._items.values(), *accessors)

    def __getitem__(self, name: str) -> AttributeAccessor:
        return self._items[(name or "").casefold()]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.casefold() in self._items

    def __iter__(self) -> Iterator[str]:
        return (a.name for a in self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def get(self, name: str, default: Any = None) -> Any:  # type: ignore[override]
        return self._items.get((name or "").casefold(), default)
