from __future__ import annotations

from ..identity import AttributeAccessor, Group, IdentityObject, User
from .objects import AzureObject, graph_property


class AzureGroup(AzureObject, Group):
    SELECT = [
        "id", "description", "displayName", "mail", "proxyAddresses", "mailEnabled",
        "mailNickname", "securityEnabled", "visibility", "createdDateTime", "groupTypes",
    ]

    description = graph_property("description")
    display_name = graph_property("displayName")
    mail_nickname = graph_property("mailNickname")
    visibility = graph_property("visibility")

    @property
    def type(self) -> str:
        return "Group"

    @property
    def mail(self) -> str | None:
        return self.record.get("mail")

    @property
    def mail_enabled(self) -> bool:
        return bool(self.record.get("mailEnabled", False))

    @property
    def security_enabled(self) -> bool:
        return bool(self.record.get("securityEnabled", False))

    @property
    def members(self) -> list[IdentityObject]:
        return self.client.get_members(self.unique_id)

    @property
    def all_user_members(self) -> list[User]:
        return self.client.get_user_members(self.unique_id, recursive=True)

    def add_members(self, members: list[IdentityObject]) -> bool:
        if members is None:
            raise TypeError("members must not be None")
        ok = True
        for m in members:
            ok = self.client.add_object_to_group(m.unique_id, self.unique_id) and ok
        return ok

    def remove_members(self, members: list[IdentityObject]) -> bool:
        if members is None:
            raise TypeError("members must not be None")
        ok = True
        for m in members:
            ok = self.client.delete_object_from_group(m.unique_id, self.unique_id) and ok
        return ok

    def _fetch(self) -> dict | None:
        return self.client.get_graph_group(self.unique_id)

    def _update(self, changes: dict) -> bool:
        return self.client.update_group(self.unique_id, changes)

    attribute_table = AzureObject.attribute_table.extend(
        AttributeAccessor.from_property("description", description),
        AttributeAccessor.from_property("displayName", display_name),
        AttributeAccessor.from_property("mail", mail),
        AttributeAccessor.from_property("mailNickname", mail_nickname),
        AttributeAccessor.from_property("mailEnabled", mail_enabled),
        AttributeAccessor.from_property("securityEnabled", security_enabled),
        AttributeAccessor.from_property("visibility", visibility),
    )
