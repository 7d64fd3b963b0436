from __future__ import annotations

import logging

from ..identity import AttributeAccessor, Group, IdentityObject, User
from .flags import group_type_name
from .objects import ADObject, string_property

log = logging.getLogger(__name__)


class ADGroup(ADObject, Group):
    LDAP_ATTRIBUTES = [
        "objectGUID", "objectClass", "distinguishedName", "whenCreated", "memberOf",
        "cn", "sAMAccountName", "description", "displayName", "mail", "groupType",
    ]

    description = string_property("description")
    display_name = string_property("displayName")
    mail = string_property("mail")

    @property
    def name(self) -> str | None:
        return self._str("cn") or self._str("sAMAccountName")

    @property
    def type(self) -> str:
        return group_type_name(self._value("groupType"))

    @property
    def members(self) -> list[IdentityObject]:
        return self.client.get_members(self.dn)

    @property
    def all_user_members(self) -> list[User]:
        return self.client.get_all_user_members(self.dn)

    def _member_dns(self, members: list[IdentityObject]) -> list[str]:
        if members is None:
            raise TypeError("members must not be None")
        dns: list[str] = []
        for m in members:
            dn = getattr(m, "dn", None)
            if not dn:
                log.warning("Cannot add non-directory object %r to %s", m, self.dn)
                continue
            dns.append(dn)
        return dns

    def add_members(self, members: list[IdentityObject]) -> bool:
        dns = self._member_dns(members)
        if not dns:
            return False
        return self.client.ldap.add_attribute_values(self.dn, "member", dns)

    def remove_members(self, members: list[IdentityObject]) -> bool:
        dns = self._member_dns(members)
        if not dns:
            return False
        return self.client.ldap.delete_attribute(self.dn, "member", dns)

    attribute_table = ADObject.attribute_table.extend(
        AttributeAccessor.from_property("description", description),
        AttributeAccessor.from_property("displayName", display_name),
        AttributeAccessor.from_property("mail", mail),
        AttributeAccessor.from_property("cn", name),
        AttributeAccessor.from_property("groupType", type),
    )
