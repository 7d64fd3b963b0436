"""Galactic: thin adapters over directory, calendar, storage and remoting back-ends."""
from __future__ import annotations

__version__ = "0.1.0"
