from __future__ import annotations

import logging
import time
from typing import Any, Callable, TypeVar

import httpx

from ..env_settings import get_env
from .responses import EmptyRestResponse, JsonRestResponse, RestResponse

log = logging.getLogger(__name__)

DEFAULT_STANDOFF_TIME_IN_SECS = 60
DEFAULT_MAX_RETRIES = 10
_RETRY_STATUS = (429, 503)

R = TypeVar("R", bound=RestResponse)


class RestClient:
    """HTTP client for a single base URI.

    429 and 503 responses are retried after Retry-After (or the standoff time).
    Transport errors return None.
    """

    def __init__(
        self,
        base_uri: str,
        authorization_scheme: str = "",
        authorization_credentials: str = "",
        standoff_time_s: float = DEFAULT_STANDOFF_TIME_IN_SECS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        http_client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        base_uri = (base_uri or "").strip()
        if not base_uri:
            raise ValueError("base_uri must not be empty")
        self.base_uri = base_uri
        headers: dict[str, str] = {"Accept": "application/json"}
        if authorization_scheme and authorization_credentials:
            headers["Authorization"] = f"{authorization_scheme} {authorization_credentials}"
        self.http = http_client or httpx.Client(base_url=base_uri, timeout=get_env().http_timeout_s)
        self.http.headers.update(headers)
        self.standoff_time_s = max(0.0, float(standoff_time_s))
        self.max_retries = max(0, int(max_retries))
        self._sleep = sleep

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "RestClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _wait_time(self, r: httpx.Response) -> float:
        retry_after = r.headers.get("Retry-After", "")
        try:
            return max(0.0, float(retry_after))
        except ValueError:
            return self.standoff_time_s

    def _send(self, method: str, path: str, json: Any = None) -> httpx.Response | None:
        attempt = 0
        while True:
            try:
                r = self.http.request(method, path, json=json)
            except httpx.HTTPError as e:
                log.warning("%s %s failed: %s", method, path, e)
                return None
            if r.status_code not in _RETRY_STATUS or attempt >= self.max_retries:
                return r
            attempt += 1
            wait = self._wait_time(r)
            log.info("%s %s returned %s; retry %d/%d in %.1fs", method, path, r.status_code, attempt, self.max_retries, wait)
            self._sleep(wait)

    def _call(self, kind: type[R], method: str, path: str, json: Any = None) -> R | None:
        r = self._send(method, path, json)
        return kind.from_response(r) if r is not None else None

    def get_from_json(self, path: str) -> JsonRestResponse | None:
        return self._call(JsonRestResponse, "GET", path)

    def post_as_json(self, path: str, content: Any) -> JsonRestResponse | None:
        return self._call(JsonRestResponse, "POST", path, content)

    def put_as_json(self, path: str, content: Any) -> JsonRestResponse | None:
        return self._call(JsonRestResponse, "PUT", path, content)

    def delete(self, path: str) -> EmptyRestResponse | None:
        return self._call(EmptyRestResponse, "DELETE", path)

    def post(self, path: str) -> EmptyRestResponse | None:
        return self._call(EmptyRestResponse, "POST", path)

    def put(self, path: str) -> EmptyRestResponse | None:
        return self._call(EmptyRestResponse, "PUT", path)
