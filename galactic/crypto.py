"""AES-256 consolidated strings used for encrypted configuration items.

A consolidated string is the URL-safe base64 encoding of a 12 byte nonce
followed by the AES-256-GCM ciphertext and tag, so it fits on one line.
"""
from __future__ import annotations

import base64
import binascii
import hashlib
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .env_settings import get_env

_NONCE_SIZE = 12


def _aes(secret: str | None) -> AESGCM:
    s = get_env().secret_key if secret is None else secret
    if not s:
        raise ValueError("GALACTIC_SECRET_KEY is not set")
    key = hashlib.sha256(s.encode("utf-8")).digest()
    return AESGCM(key)


def create_consolidated_string(value: str, secret: str | None = None) -> str:
    if value is None:
        raise TypeError("value must not be None")
    nonce = os.urandom(_NONCE_SIZE)
    data = _aes(secret).encrypt(nonce, value.encode("utf-8"), None)
    return base64.urlsafe_b64encode(nonce + data).decode("ascii")


def decrypt_consolidated_string(token: str, secret: str | None = None) -> str | None:
    """Return the plain text, or None when the token is malformed or the key is wrong."""
    token = (token or "").strip()
    if not token:
        return None
    aes = _aes(secret)
    try:
        raw = base64.urlsafe_b64decode(token.encode("ascii"))
    except (binascii.Error, ValueError):
        return None
    if len(raw) <= _NONCE_SIZE:
        return None
    try:
        return aes.decrypt(raw[:_NONCE_SIZE], raw[_NONCE_SIZE:], None).decode("utf-8")
    except InvalidTag:
        return None
