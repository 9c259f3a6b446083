"""
Core cryptographic utilities.

Hash primitives for code leaves, sorted-pair Merkle parents and record
digests.
"""
from .hashing import (
    DEFAULT_HASH_ALGORITHM,
    DIGEST_SIZE,
    HASH_FUNCTIONS,
    HashFunction,
    keccak256,
    sha256,
    get_hash_function,
    hash_sorted_pair,
    hash_canonical,
    to_hex,
    from_hex,
)

__all__ = [
    "DEFAULT_HASH_ALGORITHM",
    "DIGEST_SIZE",
    "HASH_FUNCTIONS",
    "HashFunction",
    "keccak256",
    "sha256",
    "get_hash_function",
    "hash_sorted_pair",
    "hash_canonical",
    "to_hex",
    "from_hex",
]
