from __future__ import annotations

from .attributes import AttributeAccessor, AttributeTable, IdentityAttribute
from .client import DirectorySystemClient
from .group import Group
from .objects import IdentityObject
from .user import User

__all__ = [
    "AttributeAccessor",
    "AttributeTable",
    "DirectorySystemClient",
    "Group",
    "IdentityAttribute",
    "IdentityObject",
    "User",
]
