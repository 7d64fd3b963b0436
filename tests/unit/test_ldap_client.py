"""
Unit tests for galactic.ldap: utilities, config and the paged LDAPClient.

ldap3 connections are replaced by MagicMock objects exposing
search/add/modify results the way ldap3 reports them.
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from ldap3 import BASE, MODIFY_ADD, MODIFY_DELETE, MODIFY_REPLACE
from ldap3.core.exceptions import LDAPSocketOpenError

from galactic.exceptions import NotSupportedError
from galactic.ldap import LDAPClient, LDAPConfig, LDAPEntry
from galactic.ldap.utils import (
    datetime_to_filetime,
    dn_first_component_value,
    dn_parent,
    domain_to_base_dn,
    escape_ldap_filter_value,
    filetime_to_datetime,
    guid_filter_value,
    guid_from_bytes,
)

GUID = "d5a8a3c1-7f0e-4b6a-9c2d-0123456789ab"


def make_connection(pages=None, versions=("3",)):
    conn = MagicMock()
    conn.server.info.supported_ldap_versions = list(versions)
    conn.server.info.naming_contexts = ["DC=example,DC=com", "CN=Configuration,DC=example,DC=com"]
    conn.server.info.alt_servers = ["ldap://alt.example.com"]
    conn.result = {"result": 0, "description": "success"}
    conn.response = []
    if pages is not None:
        state = {"i": 0}

        def search(**kwargs):
            page = pages[state["i"]]
            state["i"] += 1
            conn.response = [
                {"type": "searchResEntry", "dn": dn, "attributes": attrs, "raw_attributes": {}}
                for dn, attrs in page["entries"]
            ] + [{"type": "searchResRef", "uri": ["ldap://x"]}]
            controls = {}
            if page.get("cookie"):
                controls = {"1.2.840.113556.1.4.319": {"value": {"cookie": page["cookie"], "size": 0}}}
            conn.result = {"result": 0, "description": "success", "controls": controls}
            return True

        conn.search.side_effect = search
    return conn


@pytest.fixture
def cfg():
    return LDAPConfig(servers=["dc1.example.com"], port=389, auth_type="SIMPLE", user="svc", password="pw", domain="example.com")


class TestUtils:
    """Tests for ldap utility helpers."""

    def test_escape_filter_value(self):
        """RFC 4515 special characters are escaped."""
        assert escape_ldap_filter_value("a*(b)\\c\x00") == "a\\2a\\28b\\29\\5cc\\00"

    def test_domain_to_base_dn(self):
        """Dotted domains become DC components."""
        assert domain_to_base_dn("example.com.") == "DC=example,DC=com"
        assert domain_to_base_dn("localhost") == ""

    def test_dn_components(self):
        """First RDN value and parent DN are split on unescaped commas."""
        dn = "CN=Smith\\, John,OU=Staff,DC=example,DC=com"
        assert dn_first_component_value(dn) == "Smith, John"
        assert dn_parent(dn) == "OU=Staff,DC=example,DC=com"

    def test_filetime_conversion(self):
        """FILETIME converts to UTC datetimes and back."""
        dt = datetime(2020, 5, 17, 10, 30, tzinfo=timezone.utc)
        assert filetime_to_datetime(datetime_to_filetime(dt)) == dt
        assert filetime_to_datetime(0) is None
        assert filetime_to_datetime(0x7FFFFFFFFFFFFFFF) is None
        assert filetime_to_datetime("garbage") is None
        assert filetime_to_datetime(datetime(1601, 1, 1)) is None

    def test_guid_round_trip(self):
        """objectGUID bytes use the little-endian layout."""
        import uuid

        raw = uuid.UUID(GUID).bytes_le
        assert guid_from_bytes(raw) == GUID
        assert guid_filter_value(GUID) == "".join(f"\\{b:02x}" for b in raw)


class TestLDAPConfig:
    """Tests for connection settings validation."""

    def test_requires_servers(self):
        """At least one server is required."""
        with pytest.raises(ValueError):
            LDAPConfig(servers=[" "])

    def test_requires_positive_port(self):
        """Port must be positive."""
        with pytest.raises(ValueError):
            LDAPConfig(servers=["dc"], port=0)

    def test_authenticated_bind_needs_credentials(self):
        """SIMPLE and NTLM binds need a user and password."""
        with pytest.raises(ValueError):
            LDAPConfig(servers=["dc"], auth_type="simple")

    def test_bind_principal(self, cfg):
        """Bind principals are qualified with the domain."""
        assert cfg.bind_principal == "svc@example.com"
        ntlm = LDAPConfig(servers=["dc"], auth_type="NTLM", user="svc", password="pw", domain="example.com")
        assert ntlm.bind_principal == "EXAMPLE\\svc"


class TestLDAPClient:
    """Tests for LDAPClient over a mocked ldap3 connection."""

    def test_root_dse_sets_search_base(self, cfg):
        """The first naming context is the default search base."""
        client = LDAPClient(cfg, connection=make_connection())
        assert client.search_base == "DC=example,DC=com"
        assert client.alternate_servers == ["ldap://alt.example.com"]

    def test_requires_ldap_v3(self, cfg):
        """Servers without v3 support are rejected."""
        with pytest.raises(NotSupportedError):
            LDAPClient(cfg, connection=make_connection(versions=("2",)))

    def test_paged_search_follows_cookie(self, cfg):
        """All pages are collected until the cookie is empty."""
        pages = [
            {"entries": [("CN=a,DC=example,DC=com", {"cn": ["a"]})], "cookie": b"next"},
            {"entries": [("CN=b,DC=example,DC=com", {"cn": ["b"]})], "cookie": b""},
        ]
        conn = make_connection(pages)
        client = LDAPClient(cfg, connection=conn)
        entries = client.search("(objectClass=*)", ["cn"], page_size=1)
        assert [e.dn for e in entries] == ["CN=a,DC=example,DC=com", "CN=b,DC=example,DC=com"]
        assert conn.search.call_count == 2
        assert conn.search.call_args_list[1].kwargs["paged_cookie"] == b"next"

    def test_search_error_returns_none(self, cfg):
        """A failing server result yields None."""
        conn = make_connection()

        def search(**kwargs):
            conn.result = {"result": 50, "description": "insufficientAccessRights"}
            return False

        conn.search.side_effect = search
        client = LDAPClient(cfg, connection=conn)
        assert client.search("(cn=x)") is None

    def test_search_exception_returns_none(self, cfg):
        """ldap3 exceptions are converted to None."""
        conn = make_connection()
        conn.search.side_effect = LDAPSocketOpenError("down")
        assert LDAPClient(cfg, connection=conn).search("(cn=x)") is None

    def test_empty_filter_raises(self, cfg):
        """A filter is required."""
        client = LDAPClient(cfg, connection=make_connection())
        with pytest.raises(ValueError):
            client.search("")

    def test_get_entry_by_dn_uses_base_scope(self, cfg):
        """Entries are read with a BASE search at the DN."""
        conn = make_connection([{"entries": [("CN=a,DC=example,DC=com", {"cn": ["a"]})]}])
        client = LDAPClient(cfg, connection=conn)
        entry = client.get_entry_by_distinguished_name("CN=a,DC=example,DC=com")
        assert entry.dn == "CN=a,DC=example,DC=com"
        kwargs = conn.search.call_args.kwargs
        assert kwargs["search_base"] == "CN=a,DC=example,DC=com"
        assert kwargs["search_scope"] == BASE

    def test_set_search_base_and_scope(self, cfg):
        """A new base and scope apply to later searches."""
        client = LDAPClient(cfg, connection=make_connection())
        assert client.set_search_base_and_scope("OU=Staff,DC=example,DC=com", "LEVEL")
        assert client.search_base == "OU=Staff,DC=example,DC=com"
        assert not client.set_search_base_and_scope("", "LEVEL")
        assert not client.set_search_base_and_scope("OU=x", "SIDEWAYS")

    def test_add_or_replace_falls_back_to_replace(self, cfg):
        """When the attribute already exists it is replaced."""
        conn = make_connection()

        def modify(dn, changes):
            if conn.modify.call_count == 1:
                conn.result = {"result": 20, "description": "attributeOrValueExists"}
                return False
            conn.result = {"result": 0, "description": "success"}
            return True

        conn.modify.side_effect = modify
        client = LDAPClient(cfg, connection=conn)
        assert client.add_or_replace_attribute("CN=a", "title", ["Boss"])
        first, second = conn.modify.call_args_list
        assert first.args[1] == {"title": [(MODIFY_ADD, ["Boss"])]}
        assert second.args[1] == {"title": [(MODIFY_REPLACE, ["Boss"])]}

    def test_add_or_replace_keeps_other_add_failures(self, cfg):
        """An add that fails for any other reason is not retried as a replace."""
        conn = make_connection()

        def modify(dn, changes):
            conn.result = {"result": 32, "description": "noSuchObject"}
            return False

        conn.modify.side_effect = modify
        client = LDAPClient(cfg, connection=conn)
        assert not client.add_or_replace_attribute("CN=missing", "title", ["Boss"])
        assert conn.modify.call_count == 1
        assert conn.modify.call_args.args[1] == {"title": [(MODIFY_ADD, ["Boss"])]}

    def test_delete_attribute_is_permissive(self, cfg):
        """Removing a missing attribute counts as success."""
        conn = make_connection()

        def modify(dn, changes):
            conn.result = {"result": 16, "description": "noSuchAttribute"}
            return False

        conn.modify.side_effect = modify
        client = LDAPClient(cfg, connection=conn)
        assert client.delete_attribute("CN=a", "mobile")
        assert conn.modify.call_args.args[1] == {"mobile": [(MODIFY_DELETE, [])]}

    def test_move_rename_prefixes_cn(self, cfg):
        """A bare name becomes a CN= RDN."""
        conn = make_connection()
        conn.modify_dn.return_value = True
        client = LDAPClient(cfg, connection=conn)
        assert client.move_rename_entry("CN=a,OU=x", "OU=y", "b")
        conn.modify_dn.assert_called_once_with("CN=a,OU=x", "CN=b", new_superior="OU=y")

    def test_add_and_delete(self, cfg):
        """add/delete report the ldap3 result."""
        conn = make_connection()
        conn.add.return_value = True
        conn.delete.return_value = False
        client = LDAPClient(cfg, connection=conn)
        assert client.add("CN=a", {"objectClass": ["top"]})
        assert not client.delete("CN=a")

    def test_attribute_value_helpers(self):
        """String helpers decode bytes; byte helpers read raw values."""
        entry = LDAPEntry(
            dn="CN=a",
            attributes={"cn": ["a"], "thumb": [b"\xff"], "Mail": "a@example.com"},
            raw_attributes={"objectGUID": [b"\x01\x02"]},
        )
        assert LDAPClient.get_string_attribute_value(entry, "CN") == "a"
        assert LDAPClient.get_string_attribute_values(entry, "mail") == ["a@example.com"]
        assert LDAPClient.get_byte_attribute_value(entry, "objectguid") == b"\x01\x02"
        assert LDAPClient.get_string_attribute_value(entry, "missing") is None
        assert LDAPClient.get_string_attribute_values(None, "cn") == []

    def test_ranged_attribute_values(self, cfg):
        """Large multi-valued attributes are fetched range by range."""
        conn = make_connection([
            {"entries": [("CN=g", {"member;range=2-*": ["CN=c"]})]},
        ])
        client = LDAPClient(cfg, connection=conn)
        entry = LDAPEntry(dn="CN=g", attributes={"member;range=0-1": ["CN=a", "CN=b"]})
        assert client.get_all_attribute_values(entry, "member") == ["CN=a", "CN=b", "CN=c"]
        assert conn.search.call_args.kwargs["attributes"] == ["member;range=2-*"]
