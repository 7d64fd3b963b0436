from __future__ import annotations

import logging
import re
import ssl
from typing import Any

from ldap3 import (
    ALL,
    ALL_ATTRIBUTES,
    ANONYMOUS,
    BASE,
    LEVEL,
    MODIFY_ADD,
    MODIFY_DELETE,
    MODIFY_REPLACE,
    NTLM,
    SIMPLE,
    SUBTREE,
    Connection,
    Server,
    ServerPool,
    Tls,
)
from ldap3.core.exceptions import LDAPException

from ..exceptions import AuthenticationError, NotSupportedError
from .models import LDAPConfig, LDAPEntry

log = logging.getLogger(__name__)

_SCOPES = {"BASE": BASE, "LEVEL": LEVEL, "ONELEVEL": LEVEL, "SUBTREE": SUBTREE}
_AUTH = {"ANONYMOUS": ANONYMOUS, "SIMPLE": SIMPLE, "NTLM": NTLM}

_PAGED_RESULTS_OID = "1.2.840.113556.1.4.319"
# success, noSuchObject
_SEARCH_OK = (0, 32)
_ATTRIBUTE_OR_VALUE_EXISTS = 20
_NO_SUCH_ATTRIBUTE = 16

_RANGE_RE = re.compile(r";range=(\d+)-(\d+|\*)$", re.IGNORECASE)


def _scope(scope: Any) -> Any:
    if scope in (BASE, LEVEL, SUBTREE):
        return scope
    key = str(scope or "SUBTREE").strip().upper()
    if key not in _SCOPES:
        raise ValueError(f"unknown search scope: {scope}")
    return _SCOPES[key]


class LDAPClient:
    """Bound LDAP v3 connection with paged search and simple modify helpers.

    The RootDSE is read on connect; the first naming context becomes the
    default search base.
    """

    LDAP_PORT = 389
    LDAP_SSL_PORT = 636
    DEFAULT_QUERY_PAGE_SIZE = 500

    def __init__(self, cfg: LDAPConfig, connection: Connection | None = None) -> None:
        self.cfg = cfg
        self.connection = connection if connection is not None else self._connect()
        self._read_root_dse()

    def _server(self, host: str) -> Server:
        tls = Tls(validate=ssl.CERT_REQUIRED if self.cfg.tls_validate else ssl.CERT_NONE)
        return Server(
            host=host,
            port=self.cfg.port,
            use_ssl=self.cfg.use_ssl,
            get_info=ALL,
            tls=tls,
            connect_timeout=float(self.cfg.connect_timeout_s),
        )

    def _connect(self) -> Connection:
        servers = [self._server(h) for h in self.cfg.servers]
        target: Server | ServerPool = servers[0] if len(servers) == 1 else ServerPool(servers, active=True, exhaust=True)
        auth = _AUTH[self.cfg.auth_type]
        kwargs: dict[str, Any] = {"authentication": auth, "auto_bind": False, "auto_referrals": True}
        if auth is not ANONYMOUS:
            kwargs["user"] = self.cfg.bind_principal
            kwargs["password"] = self.cfg.password
        conn = Connection(target, **kwargs)
        conn.open()
        if self.cfg.starttls:
            conn.start_tls()
        if not conn.bind():
            res = dict(conn.result or {})
            try:
                conn.unbind()
            except LDAPException as e:
                log.debug("unbind after failed bind: %s", e)
            raise AuthenticationError(f"LDAP bind failed: {res.get('description', 'unknown error')}")
        return conn

    def _read_root_dse(self) -> None:
        info = getattr(self.connection.server, "info", None)
        versions = [str(v).strip() for v in (getattr(info, "supported_ldap_versions", None) or [])]
        if "3" not in versions:
            raise NotSupportedError("LDAP server does not support protocol version 3")
        self.naming_contexts: list[str] = [str(x) for x in (info.naming_contexts or [])]
        self.alternate_servers: list[str] = [str(x) for x in (info.alt_servers or [])]
        self.search_base = self.naming_contexts[0] if self.naming_contexts else ""
        self.search_scope = SUBTREE

    def close(self) -> None:
        try:
            self.connection.unbind()
        except LDAPException as e:
            log.debug("unbind failed: %s", e)

    def __enter__(self) -> "LDAPClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _last_error(self) -> str:
        res = dict(self.connection.result or {})
        return f"{res.get('description', '')} {res.get('message', '')}".strip()

    def _result_code(self) -> int:
        try:
            return int((self.connection.result or {}).get("result", 0))
        except (TypeError, ValueError):
            return -1

    # Search

    def set_search_base_and_scope(self, dn: str, scope: Any = SUBTREE) -> bool:
        dn = (dn or "").strip()
        if not dn:
            return False
        try:
            self.search_scope = _scope(scope)
        except ValueError:
            return False
        self.search_base = dn
        return True

    def search(
        self,
        search_filter: str,
        attributes: list[str] | None = None,
        base_dn: str | None = None,
        scope: Any = None,
        page_size: int = DEFAULT_QUERY_PAGE_SIZE,
        chase_referrals: bool = True,
    ) -> list[LDAPEntry] | None:
        """Paged search. Returns None when the server reports an error."""
        if not (search_filter or "").strip():
            raise ValueError("search filter must not be empty")
        base = (base_dn or "").strip() or self.search_base
        sc = self.search_scope if scope is None else _scope(scope)
        attrs = list(attributes) if attributes else ALL_ATTRIBUTES
        page_size = max(1, int(page_size or self.DEFAULT_QUERY_PAGE_SIZE))

        entries: list[LDAPEntry] = []
        cookie: bytes | None = None
        try:
            self.connection.auto_referrals = chase_referrals
            while True:
                self.connection.search(
                    search_base=base,
                    search_filter=search_filter,
                    search_scope=sc,
                    attributes=attrs,
                    paged_size=page_size,
                    paged_cookie=cookie,
                )
                if self._result_code() not in _SEARCH_OK:
                    log.warning("LDAP search %s under %s failed: %s", search_filter, base, self._last_error())
                    return None
                for e in self.connection.response or []:
                    if e.get("type") != "searchResEntry":
                        continue
                    entries.append(
                        LDAPEntry(
                            dn=str(e.get("dn", "")),
                            attributes=dict(e.get("attributes") or {}),
                            raw_attributes=dict(e.get("raw_attributes") or {}),
                        )
                    )
                controls = (self.connection.result or {}).get("controls") or {}
                cookie = ((controls.get(_PAGED_RESULTS_OID) or {}).get("value") or {}).get("cookie")
                if not cookie:
                    break
        except LDAPException as e:
            log.warning("LDAP search %s under %s failed: %s", search_filter, base, e)
            return None
        return entries

    def get_entry_by_distinguished_name(self, dn: str, attributes: list[str] | None = None) -> LDAPEntry | None:
        dn = (dn or "").strip()
        if not dn:
            return None
        found = self.search("(objectClass=*)", attributes, base_dn=dn, scope=BASE)
        return found[0] if found else None

    def get_all_attribute_values(self, entry: LDAPEntry, name: str) -> list[Any]:
        """Values of a multi-valued attribute, following ranged retrieval when the server splits them."""
        values = entry.values(name)
        if values:
            return values
        ranged = [k for k in entry.attributes.keys() if k.lower().startswith(name.lower() + ";range=")]
        if not ranged:
            return []
        key = ranged[0]
        values = entry.values(key)
        while True:
            m = _RANGE_RE.search(key)
            if not m or m.group(2) == "*":
                return values
            start = int(m.group(2)) + 1
            found = self.search("(objectClass=*)", [f"{name};range={start}-*"], base_dn=entry.dn, scope=BASE)
            if not found:
                return values
            keys = [k for k in found[0].attributes.keys() if k.lower().startswith(name.lower() + ";range=")]
            if not keys:
                return values
            key = keys[0]
            values.extend(found[0].values(key))

    @staticmethod
    def get_string_attribute_values(entry: LDAPEntry | None, name: str) -> list[str]:
        if entry is None:
            return []
        out: list[str] = []
        for v in entry.values(name):
            if isinstance(v, (bytes, bytearray)):
                out.append(bytes(v).decode("utf-8", errors="replace"))
            else:
                out.append(str(v))
        return out

    @staticmethod
    def get_string_attribute_value(entry: LDAPEntry | None, name: str) -> str | None:
        values = LDAPClient.get_string_attribute_values(entry, name)
        return values[0] if values else None

    @staticmethod
    def get_byte_attribute_values(entry: LDAPEntry | None, name: str) -> list[bytes]:
        if entry is None:
            return []
        return entry.raw_values(name)

    @staticmethod
    def get_byte_attribute_value(entry: LDAPEntry | None, name: str) -> bytes | None:
        values = LDAPClient.get_byte_attribute_values(entry, name)
        return values[0] if values else None

    # Writes

    def add(self, dn: str, attributes: dict[str, Any]) -> bool:
        dn = (dn or "").strip()
        if not dn:
            raise ValueError("dn must not be empty")
        try:
            ok = bool(self.connection.add(dn, attributes=dict(attributes or {})))
        except LDAPException as e:
            log.warning("LDAP add %s failed: %s", dn, e)
            return False
        if not ok:
            log.warning("LDAP add %s failed: %s", dn, self._last_error())
        return ok

    def delete(self, dn: str) -> bool:
        dn = (dn or "").strip()
        if not dn:
            raise ValueError("dn must not be empty")
        try:
            ok = bool(self.connection.delete(dn))
        except LDAPException as e:
            log.warning("LDAP delete %s failed: %s", dn, e)
            return False
        if not ok:
            log.warning("LDAP delete %s failed: %s", dn, self._last_error())
        return ok

    def _modify(self, dn: str, name: str, op: str, values: list[Any]) -> bool:
        try:
            ok = bool(self.connection.modify(dn, {name: [(op, values)]}))
        except LDAPException as e:
            log.warning("LDAP modify %s (%s) failed: %s", dn, name, e)
            return False
        return ok

    def replace_attribute(self, dn: str, name: str, values: list[Any]) -> bool:
        ok = self._modify(dn, name, MODIFY_REPLACE, list(values))
        if not ok:
            log.warning("LDAP replace %s on %s failed: %s", name, dn, self._last_error())
        return ok

    def add_attribute_values(self, dn: str, name: str, values: list[Any]) -> bool:
        return self._modify(dn, name, MODIFY_ADD, list(values))

    def add_or_replace_attribute(self, dn: str, name: str, values: list[Any]) -> bool:
        """Add values; if the attribute already exists, replace it instead."""
        if not (dn or "").strip() or not (name or "").strip():
            raise ValueError("dn and name must not be empty")
        if self._modify(dn, name, MODIFY_ADD, list(values)):
            return True
        if self._result_code() != _ATTRIBUTE_OR_VALUE_EXISTS:
            log.warning("LDAP add %s on %s failed: %s", name, dn, self._last_error())
            return False
        return self.replace_attribute(dn, name, values)

    def delete_attribute(self, dn: str, name: str, values: list[Any] | None = None) -> bool:
        """Remove values (or the whole attribute). A missing attribute counts as success."""
        if not (dn or "").strip() or not (name or "").strip():
            raise ValueError("dn and name must not be empty")
        if self._modify(dn, name, MODIFY_DELETE, list(values or [])):
            return True
        if self._result_code() == _NO_SUCH_ATTRIBUTE:
            return True
        log.warning("LDAP delete attribute %s on %s failed: %s", name, dn, self._last_error())
        return False

    def move_rename_entry(self, dn: str, new_parent_dn: str, new_common_name: str) -> bool:
        dn = (dn or "").strip()
        new_common_name = (new_common_name or "").strip()
        if not dn or not new_common_name:
            raise ValueError("dn and new_common_name must not be empty")
        rdn = new_common_name if new_common_name.upper().startswith("CN=") else f"CN={new_common_name}"
        try:
            ok = bool(self.connection.modify_dn(dn, rdn, new_superior=(new_parent_dn or "").strip() or None))
        except LDAPException as e:
            log.warning("LDAP move %s failed: %s", dn, e)
            return False
        if not ok:
            log.warning("LDAP move %s failed: %s", dn, self._last_error())
        return ok

    def modify_password(self, dn: str, new_password: str) -> bool:
        """Set unicodePwd through the Microsoft extended operation."""
        try:
            return bool(self.connection.extend.microsoft.modify_password(dn, new_password))
        except LDAPException as e:
            log.warning("Password change for %s failed: %s", dn, e)
            return False
