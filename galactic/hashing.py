from __future__ import annotations

import hashlib
import secrets

DEFAULT_ALGORITHM = "sha256"


def get_hash(value: str, algorithm: str = DEFAULT_ALGORITHM) -> str:
    """Lower-case hex digest of the UTF-8 encoded value."""
    if value is None:
        raise TypeError("value must not be None")
    try:
        h = hashlib.new((algorithm or "").strip().lower())
    except ValueError:
        raise ValueError(f"unsupported hash algorithm: {algorithm!r}") from None
    h.update(value.encode("utf-8"))
    return h.hexdigest()


def verify_hash(value: str, hash_value: str, algorithm: str = DEFAULT_ALGORITHM) -> bool:
    if hash_value is None:
        raise TypeError("hash_value must not be None")
    return get_hash(value, algorithm).casefold() == hash_value.strip().casefold()


def sha256_hash(value: str) -> str:
    return get_hash(value, "sha256")


def verify_sha256_hash(value: str, hash_value: str) -> bool:
    return verify_hash(value, hash_value, "sha256")


def generate_salt() -> int:
    """Random signed 32-bit salt."""
    return secrets.randbits(32) - 2**31


def generate_salted_hash(data: str) -> tuple[str, int]:
    if not data:
        raise ValueError("data must not be empty")
    salt = generate_salt()
    return sha256_hash(f"{salt}{data}"), salt


def verify_salted_hash(data: str, salt: int, hash_value: str) -> bool:
    if not data or not hash_value:
        return False
    return verify_sha256_hash(f"{salt}{data}", hash_value)
