from __future__ import annotations

from .client import RestClient
from .responses import EmptyRestResponse, JsonRestResponse, RestResponse

__all__ = ["EmptyRestResponse", "JsonRestResponse", "RestClient", "RestResponse"]
