from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

_FILETIME_EPOCH_OFFSET_S = 11_644_473_600
# FILETIME values at or above this mean "never" (0x7FFFFFFFFFFFFFFF).
FILETIME_NEVER = 0x7FFFFFFFFFFFFFFF


def escape_ldap_filter_value(value: str) -> str:
    """RFC 4515 escaping for LDAP filter values."""
    out: list[str] = []
    for ch in value:
        if ch == "\\":
            out.append("\\5c")
        elif ch == "*":
            out.append("\\2a")
        elif ch == "(":
            out.append("\\28")
        elif ch == ")":
            out.append("\\29")
        elif ch == "\x00":
            out.append("\\00")
        else:
            out.append(ch)
    return "".join(out)


def filetime_to_datetime(v: Any) -> datetime | None:
    """Convert Windows FILETIME (100ns since 1601-01-01) to an aware UTC datetime."""
    if isinstance(v, datetime):
        # ldap3 decodes 0 as 1601-01-01
        if v.year <= 1601:
            return None
        return v if v.tzinfo else v.replace(tzinfo=timezone.utc)
    try:
        n = int(v)
    except (TypeError, ValueError):
        return None
    if n <= 0 or n >= FILETIME_NEVER:
        return None
    seconds = (n / 10_000_000) - _FILETIME_EPOCH_OFFSET_S
    if seconds <= 0:
        return None
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def datetime_to_filetime(dt: datetime) -> int:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(round((dt.timestamp() + _FILETIME_EPOCH_OFFSET_S) * 10_000_000))


def domain_to_base_dn(domain: str) -> str:
    domain = (domain or "").strip().strip(".")
    if not domain or "." not in domain:
        return ""
    parts = [p for p in domain.split(".") if p]
    return ",".join([f"DC={p}" for p in parts])


def dn_first_component_value(dn: str) -> str:
    """Return first RDN value from a DN (e.g. CN=Sales,OU=Groups,... -> Sales)."""
    s = (dn or "").strip()
    if not s:
        return ""

    first: list[str] = []
    esc = False
    for ch in s:
        if esc:
            first.append(ch)
            esc = False
            continue
        if ch == "\\":
            esc = True
            continue
        if ch == ",":
            break
        first.append(ch)
    rdn = "".join(first).strip()

    if "=" in rdn:
        _, val = rdn.split("=", 1)
        val = val.strip()
    else:
        val = rdn
    return val.strip()


def dn_parent(dn: str) -> str:
    """Everything after the first unescaped comma."""
    s = (dn or "").strip()
    esc = False
    for i, ch in enumerate(s):
        if esc:
            esc = False
        elif ch == "\\":
            esc = True
        elif ch == ",":
            return s[i + 1:].strip()
    return ""


def guid_from_bytes(raw: bytes) -> str:
    """objectGUID bytes (little-endian layout) to the canonical string form."""
    return str(uuid.UUID(bytes_le=bytes(raw)))


def guid_filter_value(guid: str) -> str:
    """Escaped byte string for matching objectGUID in a search filter."""
    raw = uuid.UUID((guid or "").strip("{} ")).bytes_le
    return "".join(f"\\{b:02x}" for b in raw)
