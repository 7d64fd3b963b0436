from __future__ import annotations

import abc
from datetime import datetime
from typing import TYPE_CHECKING, Any

from ..identity import AttributeAccessor, AttributeTable, Group, IdentityObject

if TYPE_CHECKING:
    from .client import AzureActiveDirectoryClient


def parse_graph_datetime(v: Any) -> datetime | None:
    s = str(v or "").strip()
    if not s:
        return None
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(s)
    except ValueError:
        return None


def graph_property(name: str, doc: str | None = None) -> property:
    """A Graph JSON field; assignment PATCHes the object."""

    def fget(self: "AzureObject") -> Any:
        return self.record.get(name)

    def fset(self: "AzureObject", value: Any) -> bool:
        return self._update({name: value})

    return property(fget, fset, doc=doc)


class AzureObject(IdentityObject):
    """A directory object held as the JSON record Graph returned."""

    attribute_table = AttributeTable(
        AttributeAccessor("id", lambda o: o.unique_id),
        AttributeAccessor("createdDateTime", lambda o: o.creation_time),
    )

    def __init__(self, client: "AzureActiveDirectoryClient", record: dict) -> None:
        if record is None:
            raise TypeError("record must not be None")
        self.client = client
        self.record = dict(record)

    @property
    def unique_id(self) -> str:
        return str(self.record.get("id") or "")

    @property
    def creation_time(self) -> datetime | None:
        return parse_graph_datetime(self.record.get("createdDateTime"))

    @property
    def groups(self) -> list[Group]:
        return self.client.get_group_membership(self.unique_id, recursive=False)

    def _transitive_member_of(self, group: Group) -> bool:
        # checkMemberGroups is transitive on Graph
        found = self.client.check_group_membership(self.unique_id, [group.unique_id])
        return group.unique_id in found

    @abc.abstractmethod
    def _fetch(self) -> dict | None:
        raise NotImplementedError

    @abc.abstractmethod
    def _update(self, changes: dict) -> bool:
        raise NotImplementedError

    def refresh(self) -> bool:
        record = self._fetch()
        if record is None:
            return False
        self.record = record
        return True
