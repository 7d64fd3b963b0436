from __future__ import annotations

import logging
import re
from typing import Any

import dns.exception
import dns.resolver
from ldap3 import BASE
from ldap3.utils.dn import escape_rdn

from ..identity import DirectorySystemClient, Group, IdentityAttribute, IdentityObject, User
from ..identity.client import split_wildcard
from ..ldap import LDAPClient, LDAPConfig, LDAPEntry
from ..ldap.utils import domain_to_base_dn, escape_ldap_filter_value, guid_filter_value
from .flags import GROUP_TYPE_NAMES, GroupType, to_signed32
from .group import ADGroup
from .user import ADUser

log = logging.getLogger(__name__)

USER_FILTER = "(&(objectCategory=person)(objectClass=user))"
GROUP_FILTER = "(objectClass=group)"
# LDAP_MATCHING_RULE_IN_CHAIN: transitive membership evaluated by the DC.
IN_CHAIN = "1.2.840.113556.1.4.1941"

DEFAULT_SITE = "Default-First-Site-Name"
GROUP_NAME_MAX_CHARS = 63
PAGE_SIZE = 1000

_LETTER_RE = re.compile(r"[^\W\d_]")


class ActiveDirectoryClient(DirectorySystemClient):
    """Users and groups in Active Directory over an `LDAPClient`."""

    def __init__(self, ldap: LDAPClient, domain: str = "") -> None:
        if ldap is None:
            raise TypeError("ldap must not be None")
        self.ldap = ldap
        self.domain = (domain or "").strip().strip(".")
        self.base_dn = ldap.search_base or domain_to_base_dn(self.domain)

    @classmethod
    def connect(cls, cfg: LDAPConfig) -> "ActiveDirectoryClient":
        return cls(LDAPClient(cfg), cfg.domain)

    # Lookups

    def _search(self, flt: str, attributes: list[str] | None = None, base_dn: str | None = None) -> list[LDAPEntry]:
        return self.ldap.search(flt, attributes, base_dn=base_dn or self.base_dn, page_size=PAGE_SIZE) or []

    def wrap(self, entry: LDAPEntry) -> IdentityObject | None:
        classes = {c.lower() for c in LDAPClient.get_string_attribute_values(entry, "objectClass")}
        if "group" in classes:
            return ADGroup(self, entry)
        if "user" in classes or "person" in classes:
            return ADUser(self, entry)
        return None

    def get_entry_by_guid(self, guid: str, attributes: list[str] | None = None) -> LDAPEntry | None:
        try:
            value = guid_filter_value(guid)
        except (ValueError, AttributeError):
            log.warning("Invalid objectGUID %r", guid)
            return None
        found = self._search(f"(objectGUID={value})", attributes)
        return found[0] if found else None

    @staticmethod
    def attribute_filter(name: str, value: Any) -> str:
        name = (name or "").strip()
        if not name:
            raise ValueError("attribute name must not be empty")
        s, prefix = split_wildcard(value)
        return f"({name}={escape_ldap_filter_value(s)}{'*' if prefix else ''})"

    def get_entries_by_attribute(
        self,
        name: str,
        value: Any,
        object_filter: str = "",
        attributes: list[str] | None = None,
    ) -> list[LDAPEntry]:
        flt = self.attribute_filter(name, value)
        if object_filter:
            flt = f"(&{object_filter}{flt})"
        return self._search(flt, attributes)

    def get_entry_by_attribute(self, name: str, value: Any, object_filter: str = "") -> LDAPEntry | None:
        found = self.get_entries_by_attribute(name, value, object_filter)
        return found[0] if len(found) == 1 else None

    def get_user(self, unique_id: str) -> ADUser | None:
        entry = self.get_entry_by_guid(unique_id, ADUser.LDAP_ATTRIBUTES)
        return ADUser(self, entry) if entry is not None else None

    def get_group(self, unique_id: str) -> ADGroup | None:
        entry = self.get_entry_by_guid(unique_id, ADGroup.LDAP_ATTRIBUTES)
        return ADGroup(self, entry) if entry is not None else None

    def get_user_by_login(self, login: str) -> ADUser | None:
        login = (login or "").strip()
        if not login:
            return None
        name = "userPrincipalName" if "@" in login else "sAMAccountName"
        found = self._search(f"(&{USER_FILTER}({name}={escape_ldap_filter_value(login)}))", ADUser.LDAP_ATTRIBUTES)
        return ADUser(self, found[0]) if len(found) == 1 else None

    def get_group_by_name(self, name: str) -> ADGroup | None:
        name = (name or "").strip()
        if not name:
            return None
        found = self._search(f"(&{GROUP_FILTER}(cn={escape_ldap_filter_value(name)}))", ADGroup.LDAP_ATTRIBUTES)
        return ADGroup(self, found[0]) if len(found) == 1 else None

    def get_all_users(self) -> list[User]:
        return [ADUser(self, e) for e in self._search(USER_FILTER, ADUser.LDAP_ATTRIBUTES)]

    def get_all_groups(self) -> list[Group]:
        return [ADGroup(self, e) for e in self._search(GROUP_FILTER, ADGroup.LDAP_ATTRIBUTES)]

    def get_users_by_attribute(
        self,
        attribute: IdentityAttribute,
        returned_attributes: list[str] | None = None,
    ) -> list[User]:
        if attribute is None:
            raise TypeError("attribute must not be None")
        attrs = sorted(set(ADUser.LDAP_ATTRIBUTES) | set(returned_attributes or []))
        return [ADUser(self, e) for e in self.get_entries_by_attribute(attribute.name, attribute.value, USER_FILTER, attrs)]

    def get_groups_by_attribute(
        self,
        attribute: IdentityAttribute,
        returned_attributes: list[str] | None = None,
    ) -> list[Group]:
        if attribute is None:
            raise TypeError("attribute must not be None")
        attrs = sorted(set(ADGroup.LDAP_ATTRIBUTES) | set(returned_attributes or []))
        return [ADGroup(self, e) for e in self.get_entries_by_attribute(attribute.name, attribute.value, GROUP_FILTER, attrs)]

    def get_group_types(self) -> list[str]:
        return list(GROUP_TYPE_NAMES)

    # Membership

    def get_groups_by_dn(self, dns: list[str]) -> list[Group]:
        groups: list[Group] = []
        for dn in dns or []:
            entry = self.ldap.get_entry_by_distinguished_name(str(dn), ADGroup.LDAP_ATTRIBUTES)
            if entry is not None:
                groups.append(ADGroup(self, entry))
        return groups

    def get_members(self, group_dn: str) -> list[IdentityObject]:
        flt = f"(memberOf={escape_ldap_filter_value(group_dn)})"
        attrs = sorted(set(ADUser.LDAP_ATTRIBUTES) | set(ADGroup.LDAP_ATTRIBUTES))
        out: list[IdentityObject] = []
        for e in self._search(flt, attrs):
            obj = self.wrap(e)
            if obj is not None:
                out.append(obj)
        return out

    def get_all_user_members(self, group_dn: str) -> list[User]:
        flt = f"(&{USER_FILTER}(memberOf:{IN_CHAIN}:={escape_ldap_filter_value(group_dn)}))"
        return [ADUser(self, e) for e in self._search(flt, ADUser.LDAP_ATTRIBUTES)]

    def is_member_recursive(self, member_dn: str, group_dn: str) -> bool:
        flt = f"(memberOf:{IN_CHAIN}:={escape_ldap_filter_value(group_dn)})"
        found = self.ldap.search(flt, ["distinguishedName"], base_dn=member_dn, scope=BASE)
        return bool(found)

    # Writes

    def set_attribute(self, dn: str, name: str, value: Any) -> bool:
        """Replace an attribute; None or empty clears it, a list replaces all values."""
        if value is None or value == "" or (isinstance(value, (list, tuple)) and not value):
            return self.ldap.delete_attribute(dn, name)
        values = list(value) if isinstance(value, (list, tuple)) else [value]
        return self.ldap.replace_attribute(dn, name, values)

    def update_attributes(self, dn: str, changes: dict[str, Any]) -> bool:
        """Apply set_attribute for each change; False if any of them failed."""
        if not dn or not changes:
            return False
        ok = True
        for name, value in changes.items():
            if not self.set_attribute(dn, name, value):
                log.warning("Updating %s on %s failed", name, dn)
                ok = False
        return ok

    def _parent_dn(self, parent_unique_id: str | None, default_rdn: str) -> str | None:
        if parent_unique_id:
            parent = self.get_entry_by_guid(parent_unique_id, ["distinguishedName"])
            return parent.dn if parent is not None else None
        return f"{default_rdn},{self.base_dn}"

    @staticmethod
    def _extra(additional_attributes: list[IdentityAttribute] | None) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for a in additional_attributes or []:
            if a is None or not a.name or a.value is None:
                continue
            out[a.name] = a.value
        return out

    def create_user(
        self,
        login: str,
        parent_unique_id: str | None = None,
        additional_attributes: list[IdentityAttribute] | None = None,
    ) -> User | None:
        login = (login or "").strip()
        if not login:
            raise ValueError("login must not be empty")
        parent = self._parent_dn(parent_unique_id, ADUser.DEFAULT_CREATE_PATH)
        if not parent:
            return None
        sam = login.split("@", 1)[0]
        attrs: dict[str, Any] = {
            "objectClass": ["top", "person", "organizationalPerson", "user"],
            "sAMAccountName": sam,
        }
        if "@" in login:
            attrs["userPrincipalName"] = login
        attrs.update(self._extra(additional_attributes))
        dn = f"CN={escape_rdn(sam)},{parent}"
        if not self.ldap.add(dn, attrs):
            return None
        entry = self.ldap.get_entry_by_distinguished_name(dn, ADUser.LDAP_ATTRIBUTES)
        return ADUser(self, entry) if entry is not None else None

    @staticmethod
    def is_group_name_valid(name: str) -> bool:
        if not name or len(name) > GROUP_NAME_MAX_CHARS:
            return False
        if name[0] in (" ", "."):
            return False
        return bool(_LETTER_RE.search(name))

    def create_group(
        self,
        name: str,
        type: str,
        parent_unique_id: str | None = None,
        additional_attributes: list[IdentityAttribute] | None = None,
    ) -> Group | None:
        """Create a security group of the given scope (Universal, DomainLocal or Global)."""
        name = (name or "").strip()
        if not self.is_group_name_valid(name):
            raise ValueError(f"invalid group name: {name!r}")
        scope = next((v for k, v in GROUP_TYPE_NAMES.items() if k.lower() == (type or "").strip().lower()), None)
        if scope is None:
            raise ValueError(f"unknown group type: {type!r}")
        parent = self._parent_dn(parent_unique_id, ADUser.DEFAULT_CREATE_PATH)
        if not parent:
            return None
        attrs: dict[str, Any] = {
            "objectClass": ["top", "group"],
            "sAMAccountName": name,
            "groupType": to_signed32(int(scope | GroupType.SECURITY)),
        }
        attrs.update(self._extra(additional_attributes))
        dn = f"CN={escape_rdn(name)},{parent}"
        if not self.ldap.add(dn, attrs):
            return None
        entry = self.ldap.get_entry_by_distinguished_name(dn, ADGroup.LDAP_ATTRIBUTES)
        return ADGroup(self, entry) if entry is not None else None

    def _delete_by_guid(self, unique_id: str) -> bool:
        entry = self.get_entry_by_guid(unique_id, ["distinguishedName"])
        if entry is None:
            return False
        return self.ldap.delete(entry.dn)

    def delete_user(self, unique_id: str) -> bool:
        return self._delete_by_guid(unique_id)

    def delete_group(self, unique_id: str) -> bool:
        return self._delete_by_guid(unique_id)

    def move_rename_object(self, unique_id: str, new_parent_unique_id: str | None, new_name: str) -> bool:
        entry = self.get_entry_by_guid(unique_id, ["distinguishedName"])
        if entry is None:
            return False
        new_parent = None
        if new_parent_unique_id:
            parent = self.get_entry_by_guid(new_parent_unique_id, ["distinguishedName"])
            if parent is None:
                return False
            new_parent = parent.dn
        return self.ldap.move_rename_entry(entry.dn, new_parent or "", new_name)

    # DNS

    @staticmethod
    def get_site_domain_controllers(
        domain: str,
        site: str = DEFAULT_SITE,
        nameservers: list[str] | None = None,
        timeout_s: float = 5.0,
    ) -> list[str]:
        """Host names of the domain controllers registered for an AD site."""
        domain = (domain or "").strip().strip(".")
        if not domain:
            return []
        site = (site or "").strip() or DEFAULT_SITE
        name = f"_ldap._tcp.{site}._sites.dc._msdcs.{domain}"
        try:
            if nameservers:
                resolver = dns.resolver.Resolver(configure=False)
                resolver.nameservers = list(nameservers)
            else:
                resolver = dns.resolver.Resolver()
            resolver.timeout = timeout_s
            resolver.lifetime = timeout_s
            answers = resolver.resolve(name, "SRV")
        except dns.exception.DNSException as e:
            log.warning("SRV lookup %s failed: %s", name, e)
            return []
        records = sorted(answers, key=lambda r: (r.priority, -r.weight))
        return [str(r.target).rstrip(".") for r in records]
