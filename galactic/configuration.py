"""Configuration items: single text files, optionally AES-256 encrypted."""
from __future__ import annotations

import logging
import os

from .crypto import create_consolidated_string, decrypt_consolidated_string
from .env_settings import get_env
from .eventlog import EventLog, log_exception

log = logging.getLogger(__name__)

FILE_EXTENSION = ".config"


class ConfigurationItem:
    def __init__(
        self,
        folder_path: str | None,
        name: str,
        encrypted: bool = False,
        value: str | None = None,
        event_log: EventLog | None = None,
        read_only: bool = False,
    ) -> None:
        folder = (folder_path or "").strip() or get_env().config_dir
        name = (name or "").strip()
        if not name:
            raise ValueError("name must not be empty")
        if not os.path.isdir(folder):
            raise FileNotFoundError(folder)
        self.folder_path = folder
        self.name = name
        self.encrypted = bool(encrypted)
        self.event_log = event_log
        self.read_only = bool(read_only)
        if value is not None:
            self.write(value)

    @property
    def file_path(self) -> str:
        return os.path.join(self.folder_path, self.name + FILE_EXTENSION)

    @property
    def value(self) -> str | None:
        return self.read()

    @value.setter
    def value(self, value: str | None) -> None:
        self.write(value)

    def read(self) -> str | None:
        try:
            with open(self.file_path, "r", encoding="utf-8") as f:
                text = f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            log.warning("Unable to read configuration item %s: %s", self.file_path, e)
            log_exception(e, self.event_log, __name__)
            return None
        if not self.encrypted:
            return text
        first = text.splitlines()[0] if text else ""
        if not first.strip():
            return ""
        plain = decrypt_consolidated_string(first)
        if plain is None:
            log.warning("Unable to decrypt configuration item %s", self.file_path)
        return plain

    def write(self, value: str | None) -> bool:
        if self.read_only:
            log.warning("Refusing to write read-only configuration item %s", self.file_path)
            return False
        text = value or ""
        if self.encrypted and text:
            text = create_consolidated_string(text)
        try:
            with open(self.file_path, "w", encoding="utf-8") as f:
                f.write(text)
            return True
        except OSError as e:
            log.warning("Unable to write configuration item %s: %s", self.file_path, e)
            log_exception(e, self.event_log, __name__)
            return False

    def delete(self) -> bool:
        if self.read_only:
            return False
        try:
            os.remove(self.file_path)
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            log.warning("Unable to delete configuration item %s: %s", self.file_path, e)
            log_exception(e, self.event_log, __name__)
            return False

    @staticmethod
    def create(folder_path: str, name: str) -> bool:
        """Create an empty item file unless one already exists."""
        folder = (folder_path or "").strip()
        name = (name or "").strip()
        if not folder or not name:
            raise ValueError("folder_path and name must not be empty")
        path = os.path.join(folder, name + FILE_EXTENSION)
        if os.path.exists(path):
            return True
        try:
            with open(path, "x", encoding="utf-8"):
                pass
            return True
        except FileExistsError:
            return True
        except OSError as e:
            log.warning("Unable to create configuration item %s: %s", path, e)
            return False
