from __future__ import annotations

import abc
from collections import deque
from typing import TYPE_CHECKING, Iterator

from .objects import IdentityObject

if TYPE_CHECKING:
    from .user import User


class Group(IdentityObject):
    """A group whose members are users and other groups."""

    @property
    @abc.abstractmethod
    def description(self) -> str | None:
        raise NotImplementedError

    @property
    @abc.abstractmethod
    def members(self) -> list[IdentityObject]:
        raise NotImplementedError

    @abc.abstractmethod
    def add_members(self, members: list[IdentityObject]) -> bool:
        raise NotImplementedError

    @abc.abstractmethod
    def remove_members(self, members: list[IdentityObject]) -> bool:
        raise NotImplementedError

    @property
    def member_count(self) -> int:
        return len(self.members)

    @property
    def user_members(self) -> list["User"]:
        from .user import User

        return [m for m in self.members if isinstance(m, User)]

    @property
    def group_members(self) -> list["Group"]:
        return [m for m in self.members if isinstance(m, Group)]

    @property
    def all_user_members(self) -> list["User"]:
        """Users in this group and in every nested group, without duplicates."""
        users: dict[str, User] = {}
        seen: set[str] = {self.unique_id}
        queue: deque[Group] = deque([self])
        while queue:
            g = queue.popleft()
            for u in g.user_members:
                users.setdefault(u.unique_id, u)
            for sub in g.group_members:
                if sub.unique_id not in seen:
                    seen.add(sub.unique_id)
                    queue.append(sub)
        return list(users.values())

    def clear_membership(self) -> bool:
        members = self.members
        if not members:
            return True
        return self.remove_members(members)

    def __iter__(self) -> Iterator[IdentityObject]:
        return iter(self.members)
