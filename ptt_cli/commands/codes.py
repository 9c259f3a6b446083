"""
CLI Codes Commands

Work with a device's code batch offline:
- root: commitment root of a batch
- prove: inclusion proof of one code
- verify: check a code and proof against a root

Usage:
    ptt codes root codes.json
    ptt codes prove codes.json 2
    ptt codes verify --root 0x... --code 2 --proof 0x... 0x...
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from pathlib import Path
from typing import Any

from core.crypto.hashing import from_hex, to_hex
from core.merkle import CodeBatch, MerkleProver, MerkleVerifier


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def read_codes(path: str | Path) -> list[str]:
    """
    Read a code batch file.

    The file holds either a JSON array of codes or an object with a
    ``codes`` array. Codes are kept as strings; JSON integers are accepted
    and converted.

    Raises:
        ValueError: If the file is not a code batch
    """
    data: Any = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("codes")
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON array of codes")
    codes = []
    for item in data:
        if isinstance(item, bool) or not isinstance(item, (str, int)):
            raise ValueError(f"{path}: codes must be strings, got {item!r}")
        codes.append(str(item))
    return codes


def load_batch(path: str | Path, hash_algorithm: str) -> CodeBatch:
    codes = read_codes(path)
    batch = MerkleProver.for_algorithm(hash_algorithm).commit(codes)
    logger.debug("Committed %d code(s) from %s", len(codes), path)
    return batch


def _hash_algorithm(args: Namespace) -> str:
    return args.cli_config.runtime.ledger.hash_algorithm


def root_cmd(args: Namespace) -> int:
    """Print the root of a code batch."""
    batch = load_batch(args.codes_file, _hash_algorithm(args))
    if args.json:
        print(json.dumps({
            "root": to_hex(batch.root),
            "count": len(batch.codes),
            "hash_algorithm": _hash_algorithm(args),
        }, indent=2))
    else:
        print(to_hex(batch.root))
    return EXIT_SUCCESS


def prove_cmd(args: Namespace) -> int:
    """Print the inclusion proof of one code as JSON."""
    batch = load_batch(args.codes_file, _hash_algorithm(args))
    proof = batch.proofs.get(args.code)
    if proof is None:
        print(f"Error: code {args.code!r} is not in {args.codes_file}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    print(json.dumps({
        "code": args.code,
        "leaf": to_hex(proof.leaf),
        "root": to_hex(batch.root),
        "proof": [to_hex(s) for s in proof.siblings],
    }, indent=2))
    return EXIT_SUCCESS


def verify_cmd(args: Namespace) -> int:
    """Check a code and proof against a root; exit 2 when it does not hold."""
    verifier = MerkleVerifier.for_algorithm(_hash_algorithm(args))
    root = from_hex(args.root)
    path = [from_hex(p) for p in args.proof or []]
    ok = verifier.verify_code(root, args.code, path)

    if args.json:
        print(json.dumps({"ok": ok, "code": args.code, "root": to_hex(root)}, indent=2))
    else:
        print(f"valid: {str(ok).lower()}")
    return EXIT_SUCCESS if ok else EXIT_VERIFICATION_FAILED
