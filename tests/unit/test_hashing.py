"""
Unit tests for galactic.hashing and galactic.crypto.
"""

import pytest

from galactic.crypto import create_consolidated_string, decrypt_consolidated_string
from galactic.hashing import (
    generate_salted_hash,
    get_hash,
    sha256_hash,
    verify_hash,
    verify_salted_hash,
    verify_sha256_hash,
)


class TestHash:
    """Tests for hex digests."""

    def test_sha256_known_value(self):
        """SHA-256 of 'abc' matches the published test vector."""
        assert sha256_hash("abc") == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"

    def test_md5_known_value(self):
        """Other hashlib algorithms are selectable by name."""
        assert get_hash("abc", "MD5") == "900150983cd24fb0d6963f7d28e17f72"

    def test_verify_is_case_insensitive(self):
        """Verification ignores hex case."""
        h = sha256_hash("hello").upper()
        assert verify_sha256_hash("hello", h)
        assert verify_hash("hello", h, "sha256")
        assert not verify_hash("hellO", h)

    def test_none_input_raises(self):
        """None input is a TypeError."""
        with pytest.raises(TypeError):
            get_hash(None)

    def test_unknown_algorithm_raises(self):
        """Unknown algorithm names are rejected."""
        with pytest.raises(ValueError):
            get_hash("abc", "not-a-hash")


class TestSaltedHash:
    """Tests for salted hashes."""

    def test_salted_hash_verifies(self):
        """A salted hash verifies with its own salt."""
        h, salt = generate_salted_hash("secret")
        assert -(2**31) <= salt < 2**31
        assert h == sha256_hash(f"{salt}secret")
        assert verify_salted_hash("secret", salt, h)
        assert not verify_salted_hash("other", salt, h)

    def test_blank_inputs_do_not_verify(self):
        """Blank data or hash never verifies."""
        assert not verify_salted_hash("", 1, "abc")
        assert not verify_salted_hash("x", 1, "")


class TestConsolidatedString:
    """Tests for AES-256 consolidated strings."""

    def test_round_trip_with_env_secret(self, env):
        """Encrypted text decrypts with the configured secret."""
        token = create_consolidated_string("hello world")
        assert "\n" not in token
        assert token != "hello world"
        assert decrypt_consolidated_string(token) == "hello world"

    def test_wrong_secret_returns_none(self, env):
        """A different secret cannot decrypt."""
        token = create_consolidated_string("hello", secret="one")
        assert decrypt_consolidated_string(token, secret="two") is None

    def test_garbage_returns_none(self, env):
        """Malformed tokens decrypt to None."""
        assert decrypt_consolidated_string("not base64 !!") is None
        assert decrypt_consolidated_string("") is None

    def test_empty_secret_raises(self, env):
        """Encrypting without a secret is an error."""
        with pytest.raises(ValueError):
            create_consolidated_string("x", secret="")
