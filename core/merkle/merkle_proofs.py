"""
Merkle Proofs Convenience Wrappers
Class-based interfaces bound to one hash function.

- MerkleProver: commit to codes and generate proofs
- MerkleVerifier: verify (root, leaf, path) triples and codes

These are thin wrappers around the functions in merkle_tree.py.
"""
from __future__ import annotations

from typing import Sequence

from core.crypto.hashing import DEFAULT_HASH_ALGORITHM, HashFunction, get_hash_function
from core.merkle.merkle_tree import (
    CodeBatch,
    MerkleProof,
    build_code_tree,
    build_merkle_proof,
    build_merkle_root,
    code_leaf,
    verify,
)


class MerkleProver:
    """
    Generates roots and proofs with a fixed hash function.

    Example:
        >>> prover = MerkleProver()
        >>> batch = prover.commit(["1", "2", "3"])
        >>> MerkleVerifier().verify_code(batch.root, "2", batch.proof_for("2"))
        True
    """

    def __init__(self, hash_fn: HashFunction | None = None) -> None:
        self.hash_fn = hash_fn or get_hash_function(DEFAULT_HASH_ALGORITHM)

    @classmethod
    def for_algorithm(cls, name: str) -> "MerkleProver":
        return cls(get_hash_function(name))

    def prove(self, leaves: Sequence[bytes], index: int) -> MerkleProof:
        """
        Generate a Merkle proof for the leaf at the given index.

        Raises:
            IndexError: If index is out of range
            ValueError: If leaves is empty
        """
        return build_merkle_proof(leaves, index, self.hash_fn)

    def compute_root(self, leaves: Sequence[bytes]) -> bytes:
        return build_merkle_root(leaves, self.hash_fn)

    def commit(self, codes: Sequence[str]) -> CodeBatch:
        """Commit to a batch of codes; see build_code_tree."""
        return build_code_tree(codes, self.hash_fn)


class MerkleVerifier:
    """Verifies Merkle membership with a fixed hash function."""

    def __init__(self, hash_fn: HashFunction | None = None) -> None:
        self.hash_fn = hash_fn or get_hash_function(DEFAULT_HASH_ALGORITHM)

    @classmethod
    def for_algorithm(cls, name: str) -> "MerkleVerifier":
        return cls(get_hash_function(name))

    def leaf(self, code: str) -> bytes:
        return code_leaf(code, self.hash_fn)

    def verify(self, root: bytes, leaf: bytes, path: Sequence[bytes]) -> bool:
        """True iff the path folds the leaf into ``root``. Never raises."""
        return verify(root, leaf, path, self.hash_fn)

    def verify_code(self, root: bytes, code: str, path: Sequence[bytes]) -> bool:
        """Verify a code string by hashing it into its leaf first."""
        if not isinstance(code, str):
            return False
        return self.verify(root, self.leaf(code), path)

    def verify_proof(self, proof: MerkleProof) -> bool:
        return self.verify(proof.root, proof.leaf, proof.siblings)
