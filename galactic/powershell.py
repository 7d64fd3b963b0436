"""PowerShell remoting over WinRM."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any

import winrm
from requests.exceptions import RequestException
from winrm.exceptions import WinRMError, WinRMTransportError

from .eventlog import EventLog, log_exception

log = logging.getLogger(__name__)

DEFAULT_APP_NAME = "/wsman"
DEFAULT_PORT = 5985
DEFAULT_SSL_PORT = 5986
DEFAULT_OPERATION_TIMEOUT_S = 300


def decode_output(raw: bytes) -> str:
    """Decode WinRM output: UTF-8 (BOM stripped), falling back to cp1252."""
    if not raw:
        return ""
    if raw.startswith(b"\xef\xbb\xbf"):
        raw = raw[3:]
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("cp1252", errors="replace")


def ps_literal(value: Any) -> str:
    if value is None:
        return "$null"
    if isinstance(value, bool):
        return "$true" if value else "$false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, (list, tuple)):
        return "@(" + ", ".join(ps_literal(v) for v in value) + ")"
    return "'" + str(value).replace("'", "''") + "'"


@dataclass
class PowerShellResult:
    status_code: int
    output: list[str] = field(default_factory=list)
    errors: str = ""

    @property
    def ok(self) -> bool:
        return self.status_code == 0


class PowerShell:
    def __init__(
        self,
        host: str,
        username: str,
        password: str,
        use_ssl: bool = False,
        port: int | None = None,
        transport: str = "ntlm",
        validate_certificate: bool = True,
        operation_timeout_s: int = DEFAULT_OPERATION_TIMEOUT_S,
        event_log: EventLog | None = None,
        session: winrm.Session | None = None,
    ) -> None:
        host = (host or "").strip()
        if not host:
            raise ValueError("host must not be empty")
        if session is None and not (username and password):
            raise ValueError("username and password are required")
        scheme = "https" if use_ssl else "http"
        port = port or (DEFAULT_SSL_PORT if use_ssl else DEFAULT_PORT)
        self.endpoint = f"{scheme}://{host}:{port}{DEFAULT_APP_NAME}"
        self.event_log = event_log
        self.session = session or winrm.Session(
            self.endpoint,
            auth=(username, password),
            transport=transport,
            server_cert_validation="validate" if validate_certificate else "ignore",
            read_timeout_sec=operation_timeout_s + 30,
            operation_timeout_sec=operation_timeout_s,
        )

    @staticmethod
    def build_script(script: str, parameters: dict[str, Any] | None = None) -> str:
        lines = [f"${name} = {ps_literal(value)}" for name, value in (parameters or {}).items()]
        lines.append(script)
        return "\n".join(lines)

    def run_synchronously(self, script: str, parameters: dict[str, Any] | None = None) -> PowerShellResult | None:
        if not (script or "").strip():
            raise ValueError("script must not be empty")
        try:
            r = self.session.run_ps(self.build_script(script, parameters))
        except (WinRMError, WinRMTransportError, RequestException) as e:
            log.warning("PowerShell on %s failed: %s", self.endpoint, e)
            log_exception(e, self.event_log, __name__)
            return None
        out = decode_output(r.std_out)
        return PowerShellResult(
            status_code=int(r.status_code),
            output=[line.rstrip("\r") for line in out.splitlines() if line.strip()],
            errors=decode_output(r.std_err).strip(),
        )


class PowerShellScript:
    """A script loaded from a .ps1 file (or given as text) and run with parameters."""

    def __init__(self, path_or_text: str) -> None:
        if not (path_or_text or "").strip():
            raise ValueError("script must not be empty")
        if os.path.isfile(path_or_text):
            with open(path_or_text, "r", encoding="utf-8-sig") as f:
                self.text = f.read()
        else:
            self.text = path_or_text

    def run(self, shell: PowerShell, parameters: dict[str, Any] | None = None) -> PowerShellResult | None:
        return shell.run_synchronously(self.text, parameters)
