from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

import httpx


@dataclass
class RestResponse:
    status_code: int
    message: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @classmethod
    def from_response(cls, r: httpx.Response) -> "RestResponse":
        return cls(r.status_code, r.text)


@dataclass
class EmptyRestResponse(RestResponse):
    """A response whose body is not needed."""

    @classmethod
    def from_response(cls, r: httpx.Response) -> "EmptyRestResponse":
        return cls(r.status_code, r.reason_phrase)


@dataclass
class JsonRestResponse(RestResponse):
    value: Any = None

    @classmethod
    def from_response(cls, r: httpx.Response) -> "JsonRestResponse":
        value = None
        if r.content:
            try:
                value = r.json()
            except json.JSONDecodeError:
                value = None
        return cls(r.status_code, r.text, value)
