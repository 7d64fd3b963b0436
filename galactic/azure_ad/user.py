from __future__ import annotations

from datetime import datetime

from ..identity import AttributeAccessor, User
from .objects import AzureObject, graph_property, parse_graph_datetime

_SMTP_PREFIX = "smtp:"


class AzureUser(AzureObject, User):
    SELECT = [
        "id", "userPrincipalName", "displayName", "givenName", "surname", "mail",
        "proxyAddresses", "city", "country", "department", "employeeId", "mobilePhone",
        "companyName", "officeLocation", "streetAddress", "postalCode", "businessPhones",
        "state", "jobTitle", "createdDateTime", "accountEnabled", "lastPasswordChangeDateTime",
        "passwordProfile", "mailNickname",
    ]

    city = graph_property("city")
    country_code = graph_property("country")
    department = graph_property("department")
    display_name = graph_property("displayName")
    employee_number = graph_property("employeeId")
    first_name = graph_property("givenName")
    last_name = graph_property("surname")
    login = graph_property("userPrincipalName")
    mobile_phone = graph_property("mobilePhone")
    organization = graph_property("companyName")
    physical_address = graph_property("officeLocation")
    postal_address = graph_property("streetAddress")
    postal_code = graph_property("postalCode")
    state = graph_property("state")
    title = graph_property("jobTitle")
    primary_email_address = graph_property("mail")

    @property
    def type(self) -> str:
        return "User"

    @property
    def middle_name(self) -> str | None:
        return None

    @property
    def email_addresses(self) -> list[str]:
        out: list[str] = []
        for a in self.record.get("proxyAddresses") or []:
            a = str(a)
            out.append(a[len(_SMTP_PREFIX):] if a.lower().startswith(_SMTP_PREFIX) else a)
        return out

    @property
    def primary_phone(self) -> str | None:
        phones = self.record.get("businessPhones") or []
        return phones[0] if phones else None

    @primary_phone.setter
    def primary_phone(self, value: str | None) -> bool:
        return self._update({"businessPhones": [value] if value else []})

    @property
    def manager_id(self) -> str | None:
        manager = self.client.get_user_manager(self.unique_id)
        return manager.get("id") if manager else None

    @manager_id.setter
    def manager_id(self, value: str | None) -> bool:
        return self.client.set_user_manager(self.unique_id, value)

    @property
    def manager_name(self) -> str | None:
        manager = self.client.get_user_manager(self.unique_id)
        return manager.get("displayName") if manager else None

    # Account state

    @property
    def account_enabled(self) -> bool:
        return bool(self.record.get("accountEnabled", False))

    @account_enabled.setter
    def account_enabled(self, value: bool) -> bool:
        return self._update({"accountEnabled": bool(value)})

    @property
    def is_disabled(self) -> bool:
        return not self.account_enabled

    @property
    def password_change_required_at_next_login(self) -> bool:
        profile = self.record.get("passwordProfile") or {}
        return bool(profile.get("forceChangePasswordNextSignIn", False))

    @property
    def password_expired(self) -> bool:
        return False

    @property
    def password_last_set(self) -> datetime | None:
        return parse_graph_datetime(self.record.get("lastPasswordChangeDateTime"))

    def disable(self) -> bool:
        return self._update({"accountEnabled": False})

    def enable(self) -> bool:
        return self._update({"accountEnabled": True})

    def set_password(self, password: str, force_change: bool = False) -> bool:
        if not password:
            raise ValueError("password must not be empty")
        return self._update({"passwordProfile": {"password": password, "forceChangePasswordNextSignIn": force_change}})

    def unlock(self) -> bool:
        # Smart lockout cannot be cleared through Graph.
        return False

    def _fetch(self) -> dict | None:
        return self.client.get_graph_user(self.unique_id)

    def _update(self, changes: dict) -> bool:
        return self.client.update_user(self.unique_id, changes)

    attribute_table = AzureObject.attribute_table.extend(
        AttributeAccessor.from_property("city", city),
        AttributeAccessor.from_property("country", country_code),
        AttributeAccessor.from_property("department", department),
        AttributeAccessor.from_property("displayName", display_name),
        AttributeAccessor.from_property("employeeId", employee_number),
        AttributeAccessor.from_property("givenName", first_name),
        AttributeAccessor.from_property("surname", last_name),
        AttributeAccessor.from_property("userPrincipalName", login),
        AttributeAccessor.from_property("mobilePhone", mobile_phone),
        AttributeAccessor.from_property("companyName", organization),
        AttributeAccessor.from_property("lastPasswordChangeDateTime", password_last_set),
        AttributeAccessor.from_property("officeLocation", physical_address),
        AttributeAccessor.from_property("streetAddress", postal_address),
        AttributeAccessor.from_property("postalCode", postal_code),
        AttributeAccessor.from_property("businessPhones", primary_phone),
        AttributeAccessor.from_property("state", state),
        AttributeAccessor.from_property("jobTitle", title),
        AttributeAccessor.from_property("proxyAddresses", email_addresses),
        AttributeAccessor.from_property("mail", primary_email_address),
        AttributeAccessor.from_property("accountEnabled", account_enabled),
        AttributeAccessor.from_property("manager", manager_id),
    )
