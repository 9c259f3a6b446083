"""
Hashing Utilities
Hash primitives used for code leaves, Merkle parents and record digests.

This module provides:
- Keccak-256 and SHA-256 hashing for raw bytes
- Hash function lookup by configured algorithm name
- Sorted-pair hashing used by the Merkle commitment
- Canonical hashing for objects (via dumps_canonical)
- Hex encoding/decoding with 0x prefix

Determinism Notes:
- Always hash raw bytes exactly as given
- Code strings are encoded as UTF-8 with no normalization
"""
from __future__ import annotations

import hashlib
from typing import Any, Callable

from eth_utils import keccak

from core.schemas.canonical import dumps_canonical


HashFunction = Callable[[bytes], bytes]

DEFAULT_HASH_ALGORITHM = "keccak256"

# Size in bytes of every supported digest
DIGEST_SIZE = 32


def keccak256(data: bytes) -> bytes:
    """
    Compute the Keccak-256 digest of raw bytes.

    This is the original Keccak padding (as used by Ethereum tooling),
    not NIST SHA3-256.

    Example:
        >>> keccak256(b"").hex()
        'c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470'
    """
    return keccak(primitive=data)


def sha256(data: bytes) -> bytes:
    """
    Compute SHA-256 hash of raw bytes.

    Example:
        >>> sha256(b"hello").hex()
        '2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824'
    """
    return hashlib.sha256(data).digest()


HASH_FUNCTIONS: dict[str, HashFunction] = {
    "keccak256": keccak256,
    "sha256": sha256,
}


def get_hash_function(name: str = DEFAULT_HASH_ALGORITHM) -> HashFunction:
    """
    Look up a hash function by algorithm name.

    Args:
        name: "keccak256" or "sha256" (case-insensitive)

    Raises:
        ValueError: If the algorithm is not supported
    """
    try:
        return HASH_FUNCTIONS[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unsupported hash algorithm: {name!r}. "
            f"Supported: {sorted(HASH_FUNCTIONS)}"
        ) from None


def hash_sorted_pair(a: bytes, b: bytes, hash_fn: HashFunction = keccak256) -> bytes:
    """
    Hash two nodes in byte-wise sorted order.

    parent = H(min(a, b) || max(a, b))

    Because the pair is sorted before hashing, a proof does not need to
    record whether each sibling sits on the left or the right.
    """
    if a <= b:
        return hash_fn(a + b)
    return hash_fn(b + a)


def hash_canonical(obj: Any, hash_fn: HashFunction = sha256) -> bytes:
    """
    Hash an object using canonical JSON serialization.

    Rule: digest = H(dumps_canonical(obj).encode("utf-8"))

    Raises:
        CanonicalizationException: If object cannot be canonically serialized
    """
    canonical_json = dumps_canonical(obj)
    return hash_fn(canonical_json.encode("utf-8"))


def to_hex(data: bytes) -> str:
    """
    Convert bytes to hexadecimal string with 0x prefix.

    Example:
        >>> to_hex(bytes.fromhex("deadbeef"))
        '0xdeadbeef'
    """
    return "0x" + data.hex()


def from_hex(hex_string: str) -> bytes:
    """
    Convert hexadecimal string (with 0x prefix) to bytes.

    Raises:
        ValueError: If string doesn't start with 0x, has odd length,
                   or contains invalid hex characters

    Example:
        >>> from_hex("0xdeadbeef").hex()
        'deadbeef'
    """
    if not hex_string.startswith("0x"):
        raise ValueError(
            f"Hex string must start with '0x' prefix, got: {hex_string[:10]}..."
        )

    hex_content = hex_string[2:]

    if len(hex_content) % 2 != 0:
        raise ValueError(
            f"Hex string must have even length after 0x prefix, "
            f"got length {len(hex_content)}"
        )

    try:
        return bytes.fromhex(hex_content)
    except ValueError as e:
        raise ValueError(f"Invalid hex characters in string: {e}") from e


__all__ = [
    "HashFunction",
    "DEFAULT_HASH_ALGORITHM",
    "DIGEST_SIZE",
    "HASH_FUNCTIONS",
    "keccak256",
    "sha256",
    "get_hash_function",
    "hash_sorted_pair",
    "hash_canonical",
    "to_hex",
    "from_hex",
]
