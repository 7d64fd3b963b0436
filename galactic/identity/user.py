from __future__ import annotations

import abc
from datetime import datetime

from .objects import IdentityObject


class User(IdentityObject):
    """A person account. Contact and organisation fields are all optional."""

    @property
    @abc.abstractmethod
    def city(self) -> str | None: ...

    @property
    @abc.abstractmethod
    def country_code(self) -> str | None: ...

    @property
    @abc.abstractmethod
    def department(self) -> str | None: ...

    @property
    @abc.abstractmethod
    def display_name(self) -> str | None: ...

    @property
    @abc.abstractmethod
    def email_addresses(self) -> list[str]: ...

    @property
    @abc.abstractmethod
    def primary_email_address(self) -> str | None: ...

    @property
    @abc.abstractmethod
    def employee_number(self) -> str | None: ...

    @property
    @abc.abstractmethod
    def first_name(self) -> str | None: ...

    @property
    @abc.abstractmethod
    def middle_name(self) -> str | None: ...

    @property
    @abc.abstractmethod
    def last_name(self) -> str | None: ...

    @property
    @abc.abstractmethod
    def login(self) -> str | None: ...

    @property
    @abc.abstractmethod
    def manager_id(self) -> str | None: ...

    @property
    @abc.abstractmethod
    def manager_name(self) -> str | None: ...

    @property
    @abc.abstractmethod
    def mobile_phone(self) -> str | None: ...

    @property
    @abc.abstractmethod
    def organization(self) -> str | None: ...

    @property
    @abc.abstractmethod
    def physical_address(self) -> str | None: ...

    @property
    @abc.abstractmethod
    def postal_address(self) -> str | None: ...

    @property
    @abc.abstractmethod
    def postal_code(self) -> str | None: ...

    @property
    @abc.abstractmethod
    def primary_phone(self) -> str | None: ...

    @property
    @abc.abstractmethod
    def state(self) -> str | None: ...

    @property
    @abc.abstractmethod
    def title(self) -> str | None: ...

    # Password state, derived from the backing store.

    @property
    @abc.abstractmethod
    def is_disabled(self) -> bool: ...

    @property
    @abc.abstractmethod
    def password_change_required_at_next_login(self) -> bool: ...

    @property
    @abc.abstractmethod
    def password_expired(self) -> bool: ...

    @property
    @abc.abstractmethod
    def password_last_set(self) -> datetime | None: ...

    @abc.abstractmethod
    def disable(self) -> bool: ...

    @abc.abstractmethod
    def enable(self) -> bool: ...

    @abc.abstractmethod
    def set_password(self, password: str) -> bool: ...

    @abc.abstractmethod
    def unlock(self) -> bool: ...
