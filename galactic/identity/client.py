from __future__ import annotations

import abc

from .attributes import IdentityAttribute
from .group import Group
from .user import User


def split_wildcard(value: str) -> tuple[str, bool]:
    """Return (value, is_prefix) for search values ending in '*'."""
    s = "" if value is None else str(value)
    if s.endswith("*"):
        return s[:-1], True
    return s, False


class DirectorySystemClient(abc.ABC):
    """Operations every directory back-end provides."""

    @abc.abstractmethod
    def create_group(
        self,
        name: str,
        type: str,
        parent_unique_id: str | None = None,
        additional_attributes: list[IdentityAttribute] | None = None,
    ) -> Group | None: ...

    @abc.abstractmethod
    def create_user(
        self,
        login: str,
        parent_unique_id: str | None = None,
        additional_attributes: list[IdentityAttribute] | None = None,
    ) -> User | None: ...

    @abc.abstractmethod
    def delete_group(self, unique_id: str) -> bool: ...

    @abc.abstractmethod
    def delete_user(self, unique_id: str) -> bool: ...

    @abc.abstractmethod
    def get_all_groups(self) -> list[Group]: ...

    @abc.abstractmethod
    def get_all_users(self) -> list[User]: ...

    @abc.abstractmethod
    def get_groups_by_attribute(
        self,
        attribute: IdentityAttribute,
        returned_attributes: list[str] | None = None,
    ) -> list[Group]:
        """Groups whose attribute matches; a trailing '*' in the value is a prefix match."""

    @abc.abstractmethod
    def get_group_types(self) -> list[str]: ...

    @abc.abstractmethod
    def get_users_by_attribute(
        self,
        attribute: IdentityAttribute,
        returned_attributes: list[str] | None = None,
    ) -> list[User]:
        """Users whose attribute matches; a trailing '*' in the value is a prefix match."""
