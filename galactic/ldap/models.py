from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ldap3.utils.ciDict import CaseInsensitiveDict


@dataclass
class LDAPConfig:
    servers: list[str]
    port: int = 389
    use_ssl: bool = False
    starttls: bool = False
    auth_type: str = "ANONYMOUS"  # ANONYMOUS|SIMPLE|NTLM
    user: str = ""
    password: str = ""
    domain: str = ""
    tls_validate: bool = False
    connect_timeout_s: float = 10.0

    def __post_init__(self) -> None:
        self.servers = [s.strip() for s in (self.servers or []) if s and s.strip()]
        self.auth_type = (self.auth_type or "ANONYMOUS").strip().upper()
        if not self.servers:
            raise ValueError("at least one LDAP server is required")
        if self.port <= 0:
            raise ValueError("port must be positive")
        if self.auth_type not in ("ANONYMOUS", "SIMPLE", "NTLM"):
            raise ValueError(f"unsupported auth type: {self.auth_type}")
        if self.auth_type != "ANONYMOUS" and not (self.user and self.password):
            raise ValueError("user and password are required for authenticated binds")

    @property
    def bind_principal(self) -> str:
        u = (self.user or "").strip()
        d = (self.domain or "").strip().strip(".")
        if not u:
            return ""
        if self.auth_type == "NTLM":
            if "\\" in u:
                return u
            return f"{d.split('.')[0].upper()}\\{u}" if d else u
        if "@" in u or "=" in u:
            return u
        return f"{u}@{d}" if d else u


@dataclass
class LDAPEntry:
    """One search result: DN plus decoded and raw attribute values."""

    dn: str
    attributes: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    raw_attributes: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)

    def __post_init__(self) -> None:
        if not isinstance(self.attributes, CaseInsensitiveDict):
            self.attributes = CaseInsensitiveDict(self.attributes or {})
        if not isinstance(self.raw_attributes, CaseInsensitiveDict):
            self.raw_attributes = CaseInsensitiveDict(self.raw_attributes or {})

    def values(self, name: str) -> list[Any]:
        v = self.attributes.get(name)
        if v is None:
            return []
        if isinstance(v, (list, tuple)):
            return list(v)
        return [v]

    def raw_values(self, name: str) -> list[bytes]:
        v = self.raw_attributes.get(name)
        if v is None:
            return []
        if isinstance(v, (list, tuple)):
            return [bytes(x) for x in v]
        return [bytes(v)]
