"""Tests for hashing utilities."""

from __future__ import annotations

from tiptune_plays.utils import hash as hash_utils

DIGEST_LENGTH = 32


def test_blake3_digest_length() -> None:
    """Ensure the digest produces 32 bytes."""
    digest = hash_utils.blake3_digest(b"default")
    assert isinstance(digest, bytes)
    assert len(digest) == DIGEST_LENGTH


def test_blake3_hexdigest() -> None:
    """Ensure hex digests return 64-character strings."""
    hexdigest = hash_utils.blake3_hexdigest(b"hex")
    assert isinstance(hexdigest, str)
    assert len(hexdigest) == hash_utils.IP_HASH_HEX_LENGTH


def test_hash_ip_is_stable_and_normalized() -> None:
    """The same address always maps to the same key."""
    first = hash_utils.hash_ip("10.0.0.1", "salt")
    assert first == hash_utils.hash_ip(" 10.0.0.1 ", "salt")
    assert len(first) == hash_utils.IP_HASH_HEX_LENGTH
    assert "10.0.0.1" not in first


def test_hash_ip_depends_on_salt_and_address() -> None:
    """Different salts or addresses give different hashes."""
    base = hash_utils.hash_ip("10.0.0.1", "salt")
    assert base != hash_utils.hash_ip("10.0.0.1", "pepper")
    assert base != hash_utils.hash_ip("10.0.0.2", "salt")
    assert base != hash_utils.blake3_hexdigest(b"10.0.0.1")
