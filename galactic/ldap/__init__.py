from __future__ import annotations

from .client import LDAPClient
from .models import LDAPConfig, LDAPEntry

__all__ = ["LDAPClient", "LDAPConfig", "LDAPEntry"]
