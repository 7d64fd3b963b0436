"""Azure Active Directory through the Microsoft Graph v1.0 REST API.

Tokens come from MSAL (client credentials, secret or certificate); calls are
synchronous httpx requests. Failures are logged and reported as False, None
or an empty list.
"""
from __future__ import annotations

import logging
import secrets
from typing import Any, Callable
from urllib.parse import quote

import httpx
import msal

from ..env_settings import get_env
from ..exceptions import AuthenticationError
from ..identity import DirectorySystemClient, Group, IdentityAttribute, IdentityObject, User
from ..identity.client import split_wildcard
from .group import AzureGroup
from .user import AzureUser

log = logging.getLogger(__name__)

GRAPH_URL = "https://graph.microsoft.com/v1.0"
GRAPH_SCOPE = ["https://graph.microsoft.com/.default"]
AUTHORITY_URL = "https://login.microsoftonline.com/{tenant}"

_ODATA_USER = "#microsoft.graph.user"
_ODATA_GROUP = "#microsoft.graph.group"
_OK = (200, 201, 204)


def build_filter(name: str, value: Any) -> str:
    """OData filter for an attribute; a trailing '*' becomes startswith()."""
    name = (name or "").strip()
    if not name:
        raise ValueError("attribute name must not be empty")
    if isinstance(value, bool):
        return f"{name} eq {str(value).lower()}"
    s, prefix = split_wildcard(value)
    s = s.replace("'", "''")
    if prefix:
        return f"startswith({name}, '{s}')"
    return f"{name} eq '{s}'"


class AzureActiveDirectoryClient(DirectorySystemClient):
    def __init__(
        self,
        tenant_id: str,
        client_id: str,
        client_secret: str | None = None,
        certificate: dict | None = None,
        http_client: httpx.Client | None = None,
        token_provider: Callable[[], str] | None = None,
    ) -> None:
        tenant_id = (tenant_id or "").strip()
        client_id = (client_id or "").strip()
        if not tenant_id or not client_id:
            raise ValueError("tenant_id and client_id are required")
        if token_provider is None and not client_secret and not certificate:
            raise ValueError("a client secret or certificate is required")
        self.tenant_id = tenant_id
        self.client_id = client_id
        self._credential: str | dict | None = client_secret or certificate
        self._token_provider = token_provider
        self._app: msal.ConfidentialClientApplication | None = None
        self.http = http_client or httpx.Client(base_url=GRAPH_URL, timeout=get_env().http_timeout_s)

    def close(self) -> None:
        self.http.close()

    # Transport

    def _token(self) -> str:
        if self._token_provider is not None:
            return self._token_provider()
        if self._app is None:
            self._app = msal.ConfidentialClientApplication(
                self.client_id,
                authority=AUTHORITY_URL.format(tenant=self.tenant_id),
                client_credential=self._credential,
            )
        result = self._app.acquire_token_for_client(scopes=GRAPH_SCOPE)
        if "access_token" not in result:
            raise AuthenticationError(f"Graph token request failed: {result.get('error_description') or result.get('error')}")
        return result["access_token"]

    def _request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: dict | None = None,
    ) -> httpx.Response | None:
        headers = {
            "Authorization": f"Bearer {self._token()}",
            "ConsistencyLevel": "eventual",
        }
        try:
            return self.http.request(method, path, headers=headers, json=json, params=params)
        except httpx.HTTPError as e:
            log.warning("Graph %s %s failed: %s", method, path, e)
            return None

    def _ok(self, method: str, path: str, json: Any = None) -> bool:
        r = self._request(method, path, json=json)
        if r is None:
            return False
        if r.status_code not in _OK:
            log.warning("Graph %s %s returned %s: %s", method, path, r.status_code, r.text[:500])
            return False
        return True

    def _get_json(self, path: str, params: dict | None = None) -> dict | None:
        r = self._request("GET", path, params=params)
        if r is None:
            return None
        if r.status_code != 200:
            if r.status_code != 404:
                log.warning("Graph GET %s returned %s: %s", path, r.status_code, r.text[:500])
            return None
        return r.json()

    def _get_all(self, path: str, params: dict | None = None) -> list[dict] | None:
        """Every page of a collection, or None if any page fails."""
        items: list[dict] = []
        data = self._get_json(path, params)
        while data is not None:
            items.extend(data.get("value") or [])
            next_link = data.get("@odata.nextLink")
            if not next_link:
                return items
            data = self._get_json(next_link)
        if items:
            log.warning("Graph paging of %s failed after %d item(s)", path, len(items))
        return None

    @staticmethod
    def _select(base: list[str], extra: list[str] | None) -> str:
        fields = list(base)
        for f in extra or []:
            if f and f not in fields:
                fields.append(f)
        return ",".join(fields)

    def _wrap(self, record: dict) -> IdentityObject | None:
        kind = record.get("@odata.type")
        if kind == _ODATA_USER:
            return AzureUser(self, record)
        if kind == _ODATA_GROUP:
            return AzureGroup(self, record)
        return None

    # Organization

    def get_organization_details(self) -> dict | None:
        data = self._get_json("/organization")
        values = (data or {}).get("value") or []
        return values[0] if values else None

    @property
    def default_domain(self) -> str | None:
        org = self.get_organization_details() or {}
        for d in org.get("verifiedDomains") or []:
            if d.get("isDefault"):
                return d.get("name")
        return None

    # Users

    def get_graph_user(self, unique_id: str, select: list[str] | None = None) -> dict | None:
        unique_id = (unique_id or "").strip()
        if not unique_id:
            return None
        return self._get_json(f"/users/{quote(unique_id)}", {"$select": self._select(AzureUser.SELECT, select)})

    def get_user(self, unique_id: str) -> AzureUser | None:
        record = self.get_graph_user(unique_id)
        return AzureUser(self, record) if record is not None else None

    def get_user_by_login(self, login: str) -> AzureUser | None:
        login = (login or "").strip()
        if not login:
            return None
        found = self._get_all("/users", {"$filter": build_filter("userPrincipalName", login), "$select": ",".join(AzureUser.SELECT)}) or []
        return AzureUser(self, found[0]) if len(found) == 1 else None

    def get_all_users(self) -> list[User]:
        return [AzureUser(self, r) for r in self._get_all("/users", {"$select": ",".join(AzureUser.SELECT)}) or []]

    def get_users_by_attribute(
        self,
        attribute: IdentityAttribute,
        returned_attributes: list[str] | None = None,
    ) -> list[User]:
        if attribute is None:
            raise TypeError("attribute must not be None")
        params = {
            "$filter": build_filter(attribute.name, attribute.value),
            "$select": self._select(AzureUser.SELECT, returned_attributes),
            "$count": "true",
        }
        return [AzureUser(self, r) for r in self._get_all("/users", params) or []]

    def create_graph_user(
        self,
        user_principal_name: str,
        display_name: str,
        mail_nickname: str,
        password: str,
        account_enabled: bool = True,
        force_change_password: bool = True,
        extra: dict | None = None,
    ) -> dict | None:
        if not (user_principal_name and display_name and mail_nickname and password):
            raise ValueError("userPrincipalName, displayName, mailNickname and password are required")
        body: dict[str, Any] = {
            "accountEnabled": bool(account_enabled),
            "displayName": display_name,
            "mailNickname": mail_nickname,
            "userPrincipalName": user_principal_name,
            "passwordProfile": {
                "password": password,
                "forceChangePasswordNextSignIn": bool(force_change_password),
            },
        }
        body.update(extra or {})
        r = self._request("POST", "/users", json=body)
        if r is None or r.status_code != 201:
            log.warning("Graph user create %s failed: %s", user_principal_name, r.text[:500] if r is not None else "no response")
            return None
        return r.json()

    def create_user(
        self,
        login: str,
        parent_unique_id: str | None = None,
        additional_attributes: list[IdentityAttribute] | None = None,
    ) -> User | None:
        """Create a user from a UPN; `password`, `displayName` and `mailNickname` may come in the attributes.

        Without a password a random one is generated and a change is forced at first sign-in.
        """
        login = (login or "").strip()
        if not login:
            raise ValueError("login must not be empty")
        extra = {a.name: a.value for a in additional_attributes or [] if a is not None and a.name}
        password = extra.pop("password", None) or secrets.token_urlsafe(16)
        display_name = extra.pop("displayName", None) or login.split("@", 1)[0]
        nickname = extra.pop("mailNickname", None) or login.split("@", 1)[0]
        enabled = extra.pop("accountEnabled", True)
        record = self.create_graph_user(login, display_name, nickname, password, enabled, extra=extra)
        return AzureUser(self, record) if record is not None else None

    def update_user(self, unique_id: str, changes: dict) -> bool:
        if not unique_id or not changes:
            return False
        return self._ok("PATCH", f"/users/{quote(unique_id)}", json=changes)

    def delete_user(self, unique_id: str) -> bool:
        if not unique_id:
            return False
        return self._ok("DELETE", f"/users/{quote(unique_id)}")

    def get_user_manager(self, unique_id: str) -> dict | None:
        if not unique_id:
            return None
        return self._get_json(f"/users/{quote(unique_id)}/manager")

    def set_user_manager(self, unique_id: str, manager_id: str | None) -> bool:
        if not unique_id:
            return False
        if not manager_id:
            return self._ok("DELETE", f"/users/{quote(unique_id)}/manager/$ref")
        return self._ok(
            "PUT",
            f"/users/{quote(unique_id)}/manager/$ref",
            json={"@odata.id": f"{GRAPH_URL}/users/{manager_id}"},
        )

    # Groups

    def get_graph_group(self, unique_id: str, select: list[str] | None = None) -> dict | None:
        unique_id = (unique_id or "").strip()
        if not unique_id:
            return None
        return self._get_json(f"/groups/{quote(unique_id)}", {"$select": self._select(AzureGroup.SELECT, select)})

    def get_group(self, unique_id: str) -> AzureGroup | None:
        record = self.get_graph_group(unique_id)
        return AzureGroup(self, record) if record is not None else None

    def get_groups_by_filter(self, odata_filter: str, select: list[str] | None = None) -> list[AzureGroup]:
        params = {"$filter": odata_filter, "$select": self._select(AzureGroup.SELECT, select), "$count": "true"}
        return [AzureGroup(self, r) for r in self._get_all("/groups", params) or []]

    def get_group_by_name(self, name: str) -> AzureGroup | None:
        name = (name or "").strip()
        if not name:
            return None
        found = self.get_groups_by_filter(build_filter("displayName", name))
        return found[0] if len(found) == 1 else None

    def get_all_groups(self) -> list[Group]:
        return [AzureGroup(self, r) for r in self._get_all("/groups", {"$select": ",".join(AzureGroup.SELECT)}) or []]

    def get_groups_by_attribute(
        self,
        attribute: IdentityAttribute,
        returned_attributes: list[str] | None = None,
    ) -> list[Group]:
        if attribute is None:
            raise TypeError("attribute must not be None")
        return list(self.get_groups_by_filter(build_filter(attribute.name, attribute.value), returned_attributes))

    def get_group_types(self) -> list[str]:
        return []

    def create_graph_group(
        self,
        display_name: str,
        mail_nickname: str,
        description: str = "",
        mail_enabled: bool = True,
        security_enabled: bool = False,
        group_types: list[str] | None = None,
        extra: dict | None = None,
    ) -> dict | None:
        if not display_name or not mail_nickname:
            raise ValueError("displayName and mailNickname are required")
        body: dict[str, Any] = {
            "displayName": display_name,
            "mailNickname": mail_nickname,
            "mailEnabled": bool(mail_enabled),
            "securityEnabled": bool(security_enabled),
            "groupTypes": list(group_types if group_types is not None else ["Unified"]),
        }
        if description:
            body["description"] = description
        body.update(extra or {})
        r = self._request("POST", "/groups", json=body)
        if r is None or r.status_code != 201:
            log.warning("Graph group create %s failed: %s", display_name, r.text[:500] if r is not None else "no response")
            return None
        return r.json()

    def create_group(
        self,
        name: str,
        type: str = "",
        parent_unique_id: str | None = None,
        additional_attributes: list[IdentityAttribute] | None = None,
    ) -> Group | None:
        """Create a Microsoft 365 (Unified) group, or a security group when type is 'Security'."""
        name = (name or "").strip()
        if not name:
            raise ValueError("name must not be empty")
        extra = {a.name: a.value for a in additional_attributes or [] if a is not None and a.name}
        nickname = extra.pop("mailNickname", None) or "".join(ch for ch in name if ch.isalnum()) or name
        description = extra.pop("description", "") or ""
        if (type or "").strip().lower() == "security":
            record = self.create_graph_group(name, nickname, description, False, True, [], extra)
        else:
            record = self.create_graph_group(name, nickname, description, True, False, ["Unified"], extra)
        return AzureGroup(self, record) if record is not None else None

    def update_group(self, unique_id: str, changes: dict) -> bool:
        if not unique_id or not changes:
            return False
        return self._ok("PATCH", f"/groups/{quote(unique_id)}", json=changes)

    def delete_group(self, unique_id: str) -> bool:
        if not unique_id:
            return False
        return self._ok("DELETE", f"/groups/{quote(unique_id)}")

    # Membership

    def get_group_membership(self, object_id: str, recursive: bool = False) -> list[Group]:
        if not object_id:
            return []
        rel = "transitiveMemberOf" if recursive else "memberOf"
        records = self._get_all(f"/directoryObjects/{quote(object_id)}/{rel}") or []
        return [AzureGroup(self, r) for r in records if r.get("@odata.type") == _ODATA_GROUP]

    def get_members(self, group_id: str, recursive: bool = False) -> list[IdentityObject]:
        if not group_id:
            return []
        rel = "transitiveMembers" if recursive else "members"
        out: list[IdentityObject] = []
        for r in self._get_all(f"/groups/{quote(group_id)}/{rel}") or []:
            obj = self._wrap(r)
            if obj is not None:
                out.append(obj)
        return out

    def get_user_members(self, group_id: str, recursive: bool = False) -> list[User]:
        return [m for m in self.get_members(group_id, recursive) if isinstance(m, AzureUser)]

    def get_group_members(self, group_id: str, recursive: bool = False) -> list[Group]:
        return [m for m in self.get_members(group_id, recursive) if isinstance(m, AzureGroup)]

    def check_group_membership(self, object_id: str, group_ids: list[str]) -> list[str]:
        """Subset of group_ids the object belongs to, directly or transitively."""
        ids = [g for g in group_ids or [] if g]
        if not object_id or not ids:
            return []
        r = self._request("POST", f"/directoryObjects/{quote(object_id)}/checkMemberGroups", json={"groupIds": ids})
        if r is None or r.status_code != 200:
            return []
        return [str(x) for x in r.json().get("value") or []]

    def add_object_to_group(self, object_id: str, group_id: str) -> bool:
        if not object_id or not group_id:
            return False
        return self._ok(
            "POST",
            f"/groups/{quote(group_id)}/members/$ref",
            json={"@odata.id": f"{GRAPH_URL}/directoryObjects/{object_id}"},
        )

    def delete_object_from_group(self, object_id: str, group_id: str) -> bool:
        if not object_id or not group_id:
            return False
        return self._ok("DELETE", f"/groups/{quote(group_id)}/members/{quote(object_id)}/$ref")
