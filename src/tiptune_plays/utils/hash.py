# src/tiptune_plays/utils/hash.py
"""Hashing helpers built on BLAKE3."""

from __future__ import annotations

from functools import lru_cache

from blake3 import blake3

IP_HASH_HEX_LENGTH = 64


def blake3_digest(data: bytes) -> bytes:
    """Return the byte digest of the supplied data."""
    return blake3(data).digest()


def blake3_hexdigest(data: bytes) -> str:
    """Return the hexadecimal digest of the supplied data."""
    return blake3(data).hexdigest()


@lru_cache(maxsize=8)
def _ip_hash_key(salt: str) -> bytes:
    # BLAKE3 keyed mode requires exactly 32 bytes of key material.
    return blake3_digest(salt.encode("utf-8"))


def hash_ip(ip: str, salt: str) -> str:
    """Return a one-way keyed hash of a network address.

    The address is stripped before hashing so ``"10.0.0.1"`` and
    ``" 10.0.0.1"`` map to the same dedup key.

    Args:
        ip: Raw caller address as reported by the transport layer.
        salt: Deployment secret mixed into the hash.

    Returns:
        A 64 character lowercase hex string.
    """
    normalized = ip.strip().lower()
    return blake3(normalized.encode("utf-8"), key=_ip_hash_key(salt)).hexdigest()
