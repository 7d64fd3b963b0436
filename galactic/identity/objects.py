from __future__ import annotations

import abc
import logging
from collections import deque
from datetime import datetime
from functools import total_ordering
from typing import TYPE_CHECKING, Any, ClassVar, Iterable

from .attributes import AttributeTable, IdentityAttribute

if TYPE_CHECKING:
    from .group import Group

log = logging.getLogger(__name__)


def _compare_values(a: Any, b: Any) -> int:
    if a is None and b is None:
        return 0
    if a is None:
        return -1
    if b is None:
        return 1
    if isinstance(a, str) and isinstance(b, str):
        a, b = a.casefold(), b.casefold()
    try:
        return (a > b) - (a < b)
    except TypeError:
        a, b = str(a).casefold(), str(b).casefold()
        return (a > b) - (a < b)


@total_ordering
class IdentityObject(abc.ABC):
    """A user or group held in a backing store.

    Equality and hashing use `unique_id` only; ordering is a case-insensitive
    comparison of `unique_id`.
    """

    attribute_table: ClassVar[AttributeTable] = AttributeTable()

    @property
    @abc.abstractmethod
    def unique_id(self) -> str:
        raise NotImplementedError

    @property
    @abc.abstractmethod
    def type(self) -> str:
        raise NotImplementedError

    @property
    @abc.abstractmethod
    def creation_time(self) -> datetime | None:
        raise NotImplementedError

    @property
    @abc.abstractmethod
    def groups(self) -> list["Group"]:
        """Groups this object is a direct member of, fetched on each access."""
        raise NotImplementedError

    @abc.abstractmethod
    def refresh(self) -> bool:
        """Re-read the backing-store record."""
        raise NotImplementedError

    # Attributes

    def get_attributes(self, names: Iterable[str] | None) -> list[IdentityAttribute[Any]]:
        if names is None:
            return []
        table = type(self).attribute_table
        out: list[IdentityAttribute[Any]] = []
        for name in names:
            accessor = table.get(name)
            if accessor is None:
                continue
            out.append(IdentityAttribute(accessor.name, accessor.getter(self)))
        return out

    def set_attributes(self, attributes: Iterable[IdentityAttribute[Any]] | None) -> list[IdentityAttribute[bool]]:
        """Write each known attribute, returning a success flag per attribute written.

        Unknown or read-only names produce no entry.
        """
        if attributes is None:
            return []
        table = type(self).attribute_table
        out: list[IdentityAttribute[bool]] = []
        for attr in attributes:
            accessor = table.get(attr.name)
            if accessor is None or accessor.setter is None:
                continue
            try:
                ok = accessor.setter(self, attr.value) is not False
            except Exception as e:  # noqa: BLE001
                log.warning("Setting %s on %s failed: %s", accessor.name, self.unique_id, e)
                ok = False
            out.append(IdentityAttribute(accessor.name, ok))
        return out

    # Membership

    def add_to_group(self, group: "Group | None") -> bool:
        if group is None:
            return False
        return group.add_members([self])

    def remove_from_group(self, group: "Group | None") -> bool:
        if group is None:
            return False
        return group.remove_members([self])

    def member_of_group(self, group: "Group", recursive: bool = False) -> bool:
        if group is None:
            raise TypeError("group must not be None")
        if recursive:
            return self._transitive_member_of(group)
        return any(g.unique_id == group.unique_id for g in self.groups)

    def _transitive_member_of(self, group: "Group") -> bool:
        """Breadth-first walk of groups-of-groups.

        Providers that can answer with one remote query override this.
        """
        seen: set[str] = set()
        queue: deque[IdentityObject] = deque([self])
        while queue:
            current = queue.popleft()
            for g in current.groups:
                if g.unique_id == group.unique_id:
                    return True
                if g.unique_id not in seen:
                    seen.add(g.unique_id)
                    queue.append(g)
        return False

    # Comparison

    def compare_to(self, other: "IdentityObject") -> int:
        if other is None:
            raise TypeError("other must not be None")
        a = (self.unique_id or "").casefold()
        b = (other.unique_id or "").casefold()
        return (a > b) - (a < b)

    def _single(self, name: str) -> tuple[bool, Any]:
        accessor = type(self).attribute_table.get(name)
        if accessor is None:
            return False, None
        return True, accessor.getter(self)

    def compare_attribute(self, other: "IdentityObject", name: str, other_name: str | None = None) -> int:
        if other is None:
            raise TypeError("other must not be None")
        other_name = other_name or name
        if not (name or "").strip() or not other_name.strip():
            raise ValueError("attribute name must not be empty")
        _, a = self._single(name)
        _, b = other._single(other_name)
        return _compare_values(a, b)

    def equals_attribute(self, other: "IdentityObject", name: str, other_name: str | None = None) -> bool:
        if other is None:
            raise TypeError("other must not be None")
        other_name = other_name or name
        if not (name or "").strip() or not other_name.strip():
            raise ValueError("attribute name must not be empty")
        found_a, a = self._single(name)
        found_b, b = other._single(other_name)
        if not (found_a and found_b):
            return False
        return a == b

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, IdentityObject):
            return NotImplemented
        return self.unique_id == other.unique_id

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, IdentityObject):
            return NotImplemented
        return self.compare_to(other) < 0

    def __hash__(self) -> int:
        return hash(self.unique_id)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.unique_id!r}>"
