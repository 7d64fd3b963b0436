from __future__ import annotations

from .mssql import MSSqlUtility
from .oracle import OracleUtility
from .row import SqlRow
from .utility import SqlUtility

__all__ = ["MSSqlUtility", "OracleUtility", "SqlRow", "SqlUtility"]
