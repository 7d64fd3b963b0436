from __future__ import annotations

from .client import ActiveDirectoryClient
from .flags import GroupType, UserAccountControl
from .group import ADGroup
from .user import ADUser

__all__ = ["ADGroup", "ADUser", "ActiveDirectoryClient", "GroupType", "UserAccountControl"]
