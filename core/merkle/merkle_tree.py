"""
Merkle Tree Implementation
Sorted-pair Merkle tree construction, proof generation, and verification.

The commitment a device owner installs at mint time is the root of a tree
whose leaves are the hashes of the device's pre-generated codes. A code is
later presented together with its sibling path; the verifier folds the path
into the leaf and compares the result against the committed root.

Canonical Commitment Rules (Hard Contracts):
1. Leaf hashing: leaf = H(code.encode("utf-8"))
2. Parent hashing: parent = H(min(a, b) || max(a, b)), byte-wise order
3. Odd node: an unpaired last node is promoted to the next level unchanged
4. Empty leaves: build_merkle_root([]) returns H(b"")
5. Single leaf: root = leaf

Because parents are computed over sorted pairs, a proof is only the list of
sibling hashes; the leaf's position never enters verification. Roots built
here match sorted-pair trees built by common Ethereum Merkle tooling when H
is Keccak-256.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from core.crypto.hashing import HashFunction, hash_sorted_pair, keccak256


@dataclass(frozen=True)
class MerkleProof:
    """
    A Merkle inclusion proof for a single leaf.

    Attributes:
        leaf: The leaf hash being proven
        siblings: Sibling hashes from bottom to top of tree
        root: The Merkle root this proof is against
        index: The 0-based index of the leaf in the original leaf list
            (informational only; sorted pairs make it irrelevant to verification)
    """
    leaf: bytes
    siblings: list[bytes]
    root: bytes
    index: int = 0

    def __post_init__(self) -> None:
        if self.index < 0:
            raise ValueError(f"Leaf index must be non-negative, got {self.index}")


def merkle_parent(left: bytes, right: bytes, hash_fn: HashFunction = keccak256) -> bytes:
    """Compute the parent hash of two child nodes (sorted-pair rule)."""
    return hash_sorted_pair(left, right, hash_fn)


def _next_level(level: list[bytes], hash_fn: HashFunction) -> list[bytes]:
    next_level: list[bytes] = []
    for i in range(0, len(level) - 1, 2):
        next_level.append(merkle_parent(level[i], level[i + 1], hash_fn))
    if len(level) % 2 == 1:
        next_level.append(level[-1])
    return next_level


def build_merkle_root(leaves: Sequence[bytes], hash_fn: HashFunction = keccak256) -> bytes:
    """
    Build a Merkle root from a sequence of leaf hashes.

    Example: [a, b, c] -> [parent(a, b), c] -> [parent(parent(a, b), c)]

    Args:
        leaves: Sequence of leaf hashes. Order is preserved.
        hash_fn: Hash function used for parents and the empty root

    Returns:
        Merkle root
    """
    if len(leaves) == 0:
        return hash_fn(b"")

    current_level: list[bytes] = list(leaves)
    while len(current_level) > 1:
        current_level = _next_level(current_level, hash_fn)

    return current_level[0]


def build_merkle_proof(
    leaves: Sequence[bytes],
    index: int,
    hash_fn: HashFunction = keccak256,
) -> MerkleProof:
    """
    Generate a Merkle proof for the leaf at the given index.

    At each level the sibling (index XOR 1) is recorded when it exists; a
    promoted odd node contributes nothing to the path.

    Raises:
        IndexError: If index is out of range
        ValueError: If leaves is empty
    """
    if len(leaves) == 0:
        raise ValueError("Cannot generate proof for empty leaf list")

    if index < 0 or index >= len(leaves):
        raise IndexError(
            f"Leaf index {index} out of range for {len(leaves)} leaves"
        )

    siblings: list[bytes] = []
    current_level: list[bytes] = list(leaves)
    current_index = index

    while len(current_level) > 1:
        sibling_index = current_index ^ 1
        if sibling_index < len(current_level):
            siblings.append(current_level[sibling_index])

        current_level = _next_level(current_level, hash_fn)
        current_index = current_index // 2

    return MerkleProof(
        leaf=leaves[index],
        siblings=siblings,
        root=current_level[0],
        index=index,
    )


def compute_root_from_path(
    leaf: bytes,
    path: Sequence[bytes],
    hash_fn: HashFunction = keccak256,
) -> bytes:
    """Fold a sibling path into a leaf and return the candidate root."""
    current_hash = leaf
    for sibling in path:
        current_hash = merkle_parent(current_hash, sibling, hash_fn)
    return current_hash


def verify(
    root: bytes,
    leaf: bytes,
    path: Sequence[bytes],
    hash_fn: HashFunction = keccak256,
) -> bool:
    """
    Check that ``leaf`` is a member of the set committed to by ``root``.

    Total: any malformed input (non-bytes leaf, root or path element)
    yields False instead of raising.
    """
    if not isinstance(root, (bytes, bytearray)) or not isinstance(leaf, (bytes, bytearray)):
        return False
    if isinstance(path, (bytes, bytearray, str)):
        return False
    try:
        elements = list(path)
    except TypeError:
        return False
    if not all(isinstance(e, (bytes, bytearray)) for e in elements):
        return False

    candidate = compute_root_from_path(bytes(leaf), [bytes(e) for e in elements], hash_fn)
    return candidate == bytes(root)


def verify_merkle_proof(proof: MerkleProof, hash_fn: HashFunction = keccak256) -> bool:
    """Verify a MerkleProof against the root it carries."""
    return verify(proof.root, proof.leaf, proof.siblings, hash_fn)


def compute_tree_depth(num_leaves: int) -> int:
    """
    Compute the depth of a Merkle tree with given number of leaves.

    Depth is the number of levels from leaves to root (inclusive).
    A single leaf has depth 1, two leaves have depth 2, etc.
    """
    if num_leaves == 0:
        return 0

    depth = 1
    n = num_leaves
    while n > 1:
        n = (n + 1) // 2
        depth += 1

    return depth


# =============================================================================
# Code batches
# =============================================================================

def code_leaf(code: str, hash_fn: HashFunction = keccak256) -> bytes:
    """Leaf hash of an authorization code: H(utf8(code))."""
    return hash_fn(code.encode("utf-8"))


@dataclass
class CodeBatch:
    """
    A device's batch of codes together with their commitment.

    Attributes:
        codes: Codes in commitment order
        root: Merkle root over the code leaves
        proofs: Inclusion proof per code
    """
    codes: list[str]
    root: bytes
    proofs: dict[str, MerkleProof] = field(default_factory=dict)

    def proof_for(self, code: str) -> list[bytes]:
        """Sibling path for a code in this batch."""
        try:
            return list(self.proofs[code].siblings)
        except KeyError:
            raise KeyError(f"Code {code!r} is not part of this batch") from None

    def to_dict(self) -> dict[str, Any]:
        return {
            "root": "0x" + self.root.hex(),
            "codes": list(self.codes),
            "proofs": {
                code: ["0x" + s.hex() for s in proof.siblings]
                for code, proof in self.proofs.items()
            },
        }


def build_code_tree(codes: Sequence[str], hash_fn: HashFunction = keccak256) -> CodeBatch:
    """
    Commit to a batch of codes and produce a proof for each one.

    Raises:
        ValueError: If the batch is empty or contains duplicate codes
    """
    if len(codes) == 0:
        raise ValueError("Cannot commit to an empty code batch")

    seen: set[str] = set()
    for code in codes:
        if code in seen:
            raise ValueError(f"Duplicate code in batch: {code!r}")
        seen.add(code)

    leaves = [code_leaf(code, hash_fn) for code in codes]
    root = build_merkle_root(leaves, hash_fn)
    proofs = {
        code: build_merkle_proof(leaves, i, hash_fn)
        for i, code in enumerate(codes)
    }
    return CodeBatch(codes=list(codes), root=root, proofs=proofs)


__all__ = [
    "MerkleProof",
    "CodeBatch",
    "merkle_parent",
    "build_merkle_root",
    "build_merkle_proof",
    "compute_root_from_path",
    "verify",
    "verify_merkle_proof",
    "compute_tree_depth",
    "code_leaf",
    "build_code_tree",
]
