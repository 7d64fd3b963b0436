from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from ..identity import AttributeAccessor, AttributeTable, Group, IdentityObject
from ..ldap import LDAPClient, LDAPEntry
from ..ldap.utils import guid_from_bytes

if TYPE_CHECKING:
    from .client import ActiveDirectoryClient

log = logging.getLogger(__name__)


def _generalized_time(v: Any) -> datetime | None:
    if isinstance(v, datetime):
        return v if v.tzinfo else v.replace(tzinfo=timezone.utc)
    s = str(v or "").strip()
    if not s:
        return None
    try:
        return datetime.strptime(s.split(".")[0].rstrip("Z"), "%Y%m%d%H%M%S").replace(tzinfo=timezone.utc)
    except ValueError:
        return None


def entry_guid(entry: LDAPEntry) -> str:
    raw = LDAPClient.get_byte_attribute_value(entry, "objectGUID")
    if raw and len(raw) == 16:
        return guid_from_bytes(raw)
    return (LDAPClient.get_string_attribute_value(entry, "objectGUID") or "").strip("{}")


def string_property(ldap_name: str, doc: str | None = None) -> property:
    """Single-valued string attribute, written through to the directory."""

    def fget(self: "ADObject") -> str | None:
        return self._str(ldap_name)

    def fset(self: "ADObject", value: str | None) -> bool:
        return self._set(ldap_name, value)

    return property(fget, fset, doc=doc)


class ADObject(IdentityObject):
    """An entry in Active Directory, keyed by objectGUID."""

    attribute_table = AttributeTable(
        AttributeAccessor("objectGUID", lambda o: o.unique_id),
        AttributeAccessor("distinguishedName", lambda o: o.dn),
        AttributeAccessor("whenCreated", lambda o: o.creation_time),
    )

    def __init__(self, client: "ActiveDirectoryClient", entry: LDAPEntry) -> None:
        if entry is None:
            raise TypeError("entry must not be None")
        self.client = client
        self.entry = entry

    @property
    def dn(self) -> str:
        return self.entry.dn

    @property
    def unique_id(self) -> str:
        return entry_guid(self.entry)

    @property
    def creation_time(self) -> datetime | None:
        return _generalized_time(self._value("whenCreated") or self._value("createTimeStamp"))

    @property
    def groups(self) -> list[Group]:
        return self.client.get_groups_by_dn(self.client.ldap.get_all_attribute_values(self.entry, "memberOf"))

    def refresh(self) -> bool:
        entry = self.client.get_entry_by_guid(self.unique_id)
        if entry is None:
            return False
        self.entry = entry
        return True

    def _transitive_member_of(self, group: Group) -> bool:
        group_dn = getattr(group, "dn", None)
        if not group_dn:
            return super()._transitive_member_of(group)
        return self.client.is_member_recursive(self.dn, group_dn)

    def _value(self, name: str) -> Any:
        values = self.entry.values(name)
        return values[0] if values else None

    def _str(self, name: str) -> str | None:
        return LDAPClient.get_string_attribute_value(self.entry, name)

    def _strs(self, name: str) -> list[str]:
        return LDAPClient.get_string_attribute_values(self.entry, name)

    def _set(self, name: str, value: Any) -> bool:
        return self.client.set_attribute(self.dn, name, value)
