"""
Merkle Tree and Commitments
Sorted-pair Merkle tree construction + proof generation/verification.

This module provides:
- verify: Check (root, leaf, path) membership; total, never raises
- build_merkle_root / build_merkle_proof: Commitment tooling
- build_code_tree: Commit to a device's batch of codes
- MerkleProver / MerkleVerifier: Classes bound to one hash function

Canonical Commitment Rules:
1. Leaf hashing: H(code.encode("utf-8"))
2. Parent hashing: H(min(a, b) || max(a, b))
3. Odd node: promoted unchanged
4. Empty tree: H(b"")
5. Single leaf: root = leaf

Usage:
    from core.merkle import build_code_tree, verify, code_leaf

    batch = build_code_tree(["1", "2", "3"])
    assert verify(batch.root, code_leaf("2"), batch.proof_for("2"))
"""
from .merkle_tree import (
    CodeBatch,
    MerkleProof,
    merkle_parent,
    build_merkle_root,
    build_merkle_proof,
    compute_root_from_path,
    verify,
    verify_merkle_proof,
    compute_tree_depth,
    code_leaf,
    build_code_tree,
)

from .merkle_proofs import (
    MerkleProver,
    MerkleVerifier,
)


__all__ = [
    # Core types
    "MerkleProof",
    "CodeBatch",
    # Core functions
    "merkle_parent",
    "build_merkle_root",
    "build_merkle_proof",
    "compute_root_from_path",
    "verify",
    "verify_merkle_proof",
    "compute_tree_depth",
    "code_leaf",
    "build_code_tree",
    # Convenience classes
    "MerkleProver",
    "MerkleVerifier",
]
