from __future__ import annotations

from .roles import RoleMappingStore, SimpleMappingRoleProvider

__all__ = ["RoleMappingStore", "SimpleMappingRoleProvider"]
