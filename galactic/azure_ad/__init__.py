from __future__ import annotations

from .client import AzureActiveDirectoryClient
from .group import AzureGroup
from .user import AzureUser

__all__ = ["AzureActiveDirectoryClient", "AzureGroup", "AzureUser"]
