from __future__ import annotations

from datetime import datetime

from ..identity import AttributeAccessor, User
from ..ldap.utils import dn_first_component_value, filetime_to_datetime
from .flags import UserAccountControl, user_account_control_contains
from .objects import ADObject, entry_guid, string_property

_SMTP_PREFIX = "smtp:"


class ADUser(ADObject, User):
    DEFAULT_CREATE_PATH = "CN=Users"

    LDAP_ATTRIBUTES = [
        "objectGUID", "objectClass", "distinguishedName", "whenCreated", "memberOf",
        "l", "c", "department", "displayName", "proxyAddresses", "mail", "employeeNumber",
        "employeeType", "givenName", "middleName", "sn", "sAMAccountName", "userPrincipalName",
        "manager", "mobile", "company", "physicalDeliveryOfficeName", "postalAddress",
        "postalCode", "telephoneNumber", "st", "title", "pwdLastSet", "userAccountControl",
        "msDS-User-Account-Control-Computed", "lockoutTime",
    ]

    city = string_property("l")
    country_code = string_property("c")
    department = string_property("department")
    display_name = string_property("displayName")
    primary_email_address = string_property("mail")
    employee_number = string_property("employeeNumber")
    first_name = string_property("givenName")
    middle_name = string_property("middleName")
    last_name = string_property("sn")
    login = string_property("sAMAccountName")
    mobile_phone = string_property("mobile")
    organization = string_property("company")
    physical_address = string_property("physicalDeliveryOfficeName")
    postal_address = string_property("postalAddress")
    postal_code = string_property("postalCode")
    primary_phone = string_property("telephoneNumber")
    state = string_property("st")
    title = string_property("title")
    user_principal_name = string_property("userPrincipalName")

    @property
    def type(self) -> str:
        return self._str("employeeType") or ""

    @type.setter
    def type(self, value: str | None) -> bool:
        return self._set("employeeType", value)

    @property
    def email_addresses(self) -> list[str]:
        out: list[str] = []
        for a in self._strs("proxyAddresses"):
            if a.lower().startswith(_SMTP_PREFIX):
                out.append(a[len(_SMTP_PREFIX):])
            elif ":" not in a:
                out.append(a)
        return out

    @email_addresses.setter
    def email_addresses(self, value: list[str] | None) -> bool:
        addrs = [a if ":" in a else f"{_SMTP_PREFIX}{a}" for a in (value or []) if a]
        return self._set("proxyAddresses", addrs)

    @property
    def manager_dn(self) -> str | None:
        return self._str("manager")

    @property
    def manager_name(self) -> str | None:
        dn = self.manager_dn
        return dn_first_component_value(dn) if dn else None

    @property
    def manager_id(self) -> str | None:
        dn = self.manager_dn
        if not dn:
            return None
        entry = self.client.ldap.get_entry_by_distinguished_name(dn, ["objectGUID"])
        if entry is None:
            return None
        return entry_guid(entry) or None

    @manager_id.setter
    def manager_id(self, value: str | None) -> bool:
        if not value:
            return self._set("manager", None)
        entry = self.client.get_entry_by_guid(value, ["distinguishedName"])
        if entry is None:
            return False
        return self._set("manager", entry.dn)

    # Account state

    @property
    def user_account_control(self) -> int:
        try:
            return int(self._value("userAccountControl") or 0)
        except (TypeError, ValueError):
            return 0

    @property
    def is_disabled(self) -> bool:
        return user_account_control_contains(self.user_account_control, UserAccountControl.ACCOUNTDISABLE)

    @property
    def is_locked_out(self) -> bool:
        computed = self._value("msDS-User-Account-Control-Computed")
        if user_account_control_contains(computed, UserAccountControl.LOCKOUT):
            return True
        return filetime_to_datetime(self._value("lockoutTime")) is not None

    @property
    def password_expired(self) -> bool:
        computed = self._value("msDS-User-Account-Control-Computed")
        return user_account_control_contains(computed, UserAccountControl.PASSWORD_EXPIRED) or user_account_control_contains(
            self.user_account_control, UserAccountControl.PASSWORD_EXPIRED
        )

    @property
    def password_change_required_at_next_login(self) -> bool:
        v = self._value("pwdLastSet")
        if v is None:
            return False
        if isinstance(v, datetime):
            return v.year <= 1601
        try:
            return int(v) == 0
        except (TypeError, ValueError):
            return False

    @property
    def password_last_set(self) -> datetime | None:
        return filetime_to_datetime(self._value("pwdLastSet"))

    def _set_account_flag(self, flag: UserAccountControl, on: bool) -> bool:
        uac = self.user_account_control
        new = (uac | int(flag)) if on else (uac & ~int(flag))
        if new == uac:
            return True
        return self._set("userAccountControl", str(new))

    def disable(self) -> bool:
        return self._set_account_flag(UserAccountControl.ACCOUNTDISABLE, True)

    def enable(self) -> bool:
        return self._set_account_flag(UserAccountControl.ACCOUNTDISABLE, False)

    def unlock(self) -> bool:
        return self._set("lockoutTime", "0")

    def set_password(self, password: str) -> bool:
        if not password:
            raise ValueError("password must not be empty")
        return self.client.ldap.modify_password(self.dn, password)

    def require_password_change(self) -> bool:
        return self._set("pwdLastSet", "0")

    attribute_table = ADObject.attribute_table.extend(
        AttributeAccessor.from_property("l", city),
        AttributeAccessor.from_property("c", country_code),
        AttributeAccessor.from_property("department", department),
        AttributeAccessor.from_property("displayName", display_name),
        AttributeAccessor.from_property("proxyAddresses", email_addresses),
        AttributeAccessor.from_property("mail", primary_email_address),
        AttributeAccessor.from_property("employeeNumber", employee_number),
        AttributeAccessor.from_property("employeeType", type),
        AttributeAccessor.from_property("givenName", first_name),
        AttributeAccessor.from_property("middleName", middle_name),
        AttributeAccessor.from_property("sn", last_name),
        AttributeAccessor.from_property("sAMAccountName", login),
        AttributeAccessor.from_property("userPrincipalName", user_principal_name),
        AttributeAccessor.from_property("manager", manager_id),
        AttributeAccessor.from_property("mobile", mobile_phone),
        AttributeAccessor.from_property("company", organization),
        AttributeAccessor.from_property("physicalDeliveryOfficeName", physical_address),
        AttributeAccessor.from_property("postalAddress", postal_address),
        AttributeAccessor.from_property("postalCode", postal_code),
        AttributeAccessor.from_property("telephoneNumber", primary_phone),
        AttributeAccessor.from_property("st", state),
        AttributeAccessor.from_property("title", title),
        AttributeAccessor.from_property("pwdLastSet", password_last_set),
        AttributeAccessor.from_property("userAccountControl", user_account_control),
    )
