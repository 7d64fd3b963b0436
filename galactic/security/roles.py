"""Role membership kept as a simple text mapping of role names to usernames.

Text format, one block per role:

    Administrators = [
    alice
    bob
    ]
"""
from __future__ import annotations

import copy
import logging
import re
from typing import Iterable

from ..configuration import ConfigurationItem
from ..exceptions import ConfigurationError, RoleProviderError

log = logging.getLogger(__name__)

MAX_ROLE_NAME_LENGTH = 60

_ROLE_START_RE = re.compile(r"^(?P<name>[^=]+?)\s*=\s*\[\s*$")


def validate_role_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise ValueError("role name must not be empty")
    if "," in name:
        raise ValueError(f"role name must not contain a comma: {name!r}")
    if len(name) > MAX_ROLE_NAME_LENGTH:
        raise ValueError(f"role name is longer than {MAX_ROLE_NAME_LENGTH} characters: {name!r}")
    return name


def _key(s: str) -> str:
    return (s or "").strip().casefold()


class RoleMappingStore:
    """Role name -> usernames. Names compare case-insensitively."""

    def __init__(self, mappings: dict[str, Iterable[str]] | None = None) -> None:
        self._roles: dict[str, tuple[str, list[str]]] = {}
        for role, users in (mappings or {}).items():
            self.add_role(role)
            for u in users:
                self.add_user(role, u)

    @classmethod
    def parse(cls, text: str | None) -> "RoleMappingStore":
        store = cls()
        current: str | None = None
        for lineno, raw in enumerate((text or "").splitlines(), start=1):
            line = raw.strip()
            if not line:
                continue
            if current is None:
                m = _ROLE_START_RE.match(line)
                if not m:
                    raise ConfigurationError(f"role mapping line {lineno}: expected 'Role = ['")
                current = validate_role_name(m.group("name"))
                store.add_role(current)
            elif line == "]":
                current = None
            else:
                store.add_user(current, line)
        if current is not None:
            raise ConfigurationError(f"role mapping for {current!r} is missing its closing ']'")
        return store

    def to_text(self) -> str:
        lines: list[str] = []
        for name, users in self._roles.values():
            lines.append(f"{name} = [")
            lines.extend(users)
            lines.append("]")
        return "\n".join(lines) + ("\n" if lines else "")

    def snapshot(self) -> dict[str, tuple[str, list[str]]]:
        return copy.deepcopy(self._roles)

    def restore(self, snapshot: dict[str, tuple[str, list[str]]]) -> None:
        self._roles = copy.deepcopy(snapshot)

    @property
    def roles(self) -> list[str]:
        return [name for name, _ in self._roles.values()]

    def has_role(self, role: str) -> bool:
        return _key(role) in self._roles

    def users(self, role: str) -> list[str]:
        entry = self._roles.get(_key(role))
        return list(entry[1]) if entry else []

    def add_role(self, role: str) -> bool:
        role = validate_role_name(role)
        if _key(role) in self._roles:
            return False
        self._roles[_key(role)] = (role, [])
        return True

    def remove_role(self, role: str) -> bool:
        return self._roles.pop(_key(role), None) is not None

    def add_user(self, role: str, username: str) -> bool:
        username = (username or "").strip()
        entry = self._roles.get(_key(role))
        if entry is None or not username:
            return False
        if any(_key(u) == _key(username) for u in entry[1]):
            return False
        entry[1].append(username)
        return True

    def remove_user(self, role: str, username: str) -> bool:
        entry = self._roles.get(_key(role))
        if entry is None:
            return False
        before = len(entry[1])
        entry[1][:] = [u for u in entry[1] if _key(u) != _key(username)]
        return len(entry[1]) != before


class SimpleMappingRoleProvider:
    """Role provider over a `RoleMappingStore`, persisted to a configuration item when one is given."""

    def __init__(self, store: RoleMappingStore, configuration_item: ConfigurationItem | None = None) -> None:
        if store is None:
            raise TypeError("store must not be None")
        self.store = store
        self.configuration_item = configuration_item

    @classmethod
    def from_configuration_item(cls, item: ConfigurationItem) -> "SimpleMappingRoleProvider":
        return cls(RoleMappingStore.parse(item.value), item)

    def _save(self, snapshot: dict) -> None:
        if self.configuration_item is None:
            return
        if not self.configuration_item.write(self.store.to_text()):
            self.store.restore(snapshot)
            raise RoleProviderError("unable to save role mappings; changes were rolled back")

    def _require_roles(self, role_names: Iterable[str]) -> list[str]:
        roles = [validate_role_name(r) for r in role_names or []]
        missing = [r for r in roles if not self.store.has_role(r)]
        if missing:
            raise RoleProviderError(f"unknown role(s): {', '.join(missing)}")
        return roles

    def add_users_to_roles(self, usernames: Iterable[str], role_names: Iterable[str]) -> None:
        roles = self._require_roles(role_names)
        users = list(usernames or [])
        snapshot = self.store.snapshot()
        for role in roles:
            for u in users:
                self.store.add_user(role, u)
        self._save(snapshot)

    def remove_users_from_roles(self, usernames: Iterable[str], role_names: Iterable[str]) -> None:
        roles = self._require_roles(role_names)
        users = list(usernames or [])
        snapshot = self.store.snapshot()
        for role in roles:
            for u in users:
                self.store.remove_user(role, u)
        self._save(snapshot)

    def create_role(self, role_name: str) -> None:
        snapshot = self.store.snapshot()
        if not self.store.add_role(role_name):
            raise RoleProviderError(f"role already exists: {role_name}")
        self._save(snapshot)

    def delete_role(self, role_name: str, throw_on_populated_role: bool = True) -> bool:
        if not self.store.has_role(role_name):
            return False
        if throw_on_populated_role and self.store.users(role_name):
            raise RoleProviderError(f"role is not empty: {role_name}")
        snapshot = self.store.snapshot()
        self.store.remove_role(role_name)
        self._save(snapshot)
        return True

    def find_users_in_role(self, role_name: str, username_to_match: str) -> list[str]:
        needle = _key(username_to_match)
        return [u for u in self.store.users(role_name) if needle in _key(u)]

    def get_all_roles(self) -> list[str]:
        return self.store.roles

    def get_roles_for_user(self, username: str) -> list[str]:
        return [r for r in self.store.roles if self.is_user_in_role(username, r)]

    def get_users_in_role(self, role_name: str) -> list[str]:
        return self.store.users(role_name)

    def is_user_in_role(self, username: str, role_name: str) -> bool:
        return any(_key(u) == _key(username) for u in self.store.users(role_name))

    def role_exists(self, role_name: str) -> bool:
        return self.store.has_role(role_name)
