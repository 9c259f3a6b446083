"""
Code Authority

Decides whether a device code may authorize the next transfer of a token.

A code is accepted only if
1. its numeric value is strictly greater than the last value processed for
   the token, and
2. its leaf hash, folded with the supplied sibling path, reconstructs the
   root committed at mint time, and
3. (with leaf tracking on) its leaf was never processed for the token.

Strict monotonicity lets a disconnected device release an ordered batch of
codes without learning which one was last consumed; the Merkle commitment
proves membership of one code without revealing the others.

``advance`` is the only code path that writes ``last_processed``.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from core.crypto.hashing import DIGEST_SIZE, get_hash_function, from_hex
from core.merkle import code_leaf, verify
from core.schemas.errors import (
    InvalidInputException,
    InvalidProofException,
    LedgerException,
    ReplayedCodeException,
)

from orchestrator.state import LedgerState

logger = logging.getLogger(__name__)

# Largest value a code may encode (256-bit unsigned range)
MAX_CODE_VALUE = 2**256 - 1

_DIGITS = frozenset("0123456789")

# Longest significant digit run that can still fit MAX_CODE_VALUE
_MAX_DIGITS = len(str(MAX_CODE_VALUE))


def _parse(code: Any) -> int | None:
    if not isinstance(code, str) or not code:
        return None
    if not all(ch in _DIGITS for ch in code):
        return None
    significant = code.lstrip("0")
    if len(significant) > _MAX_DIGITS:
        return None
    value = int(significant or "0")
    if value > MAX_CODE_VALUE:
        return None
    return value


def numeric_value(code: Any) -> int:
    """
    Parse a code as a base-10 unsigned integer.

    Any non-digit character (signs, whitespace, non-ASCII digits), the empty
    string, a non-string argument, or a value above MAX_CODE_VALUE makes the
    code invalid and yields 0. Leading zeros are ignored.

    Example:
        >>> numeric_value("0042")
        42
        >>> numeric_value("4a2")
        0
    """
    value = _parse(code)
    return 0 if value is None else value


def is_well_formed(code: Any) -> bool:
    """True if the code parses to a value without hitting the invalid sentinel."""
    return _parse(code) is not None


def parse_path(path: Sequence[Any]) -> list[bytes]:
    """
    Normalize a sibling path to a list of bytes.

    Elements may be bytes or 0x-prefixed hex strings.

    Raises:
        ValueError: If the path or any element is malformed
    """
    if isinstance(path, (str, bytes, bytearray)):
        raise ValueError("Path must be a sequence of hashes, not a single value")
    elements: list[bytes] = []
    for i, element in enumerate(path):
        if isinstance(element, (bytes, bytearray)):
            elements.append(bytes(element))
        elif isinstance(element, str):
            try:
                elements.append(from_hex(element))
            except ValueError as e:
                raise ValueError(f"Path element {i}: {e}") from e
        else:
            raise ValueError(f"Path element {i} has unsupported type {type(element).__name__}")
    return elements


def parse_root(root: Any) -> bytes:
    """
    Normalize a committed root (bytes or 0x hex) to DIGEST_SIZE bytes.

    Raises:
        InvalidInputException: If the root is malformed
    """
    if isinstance(root, str):
        try:
            root = from_hex(root)
        except ValueError as e:
            raise InvalidInputException(str(e), field_path="root") from e
    if not isinstance(root, (bytes, bytearray)) or len(root) != DIGEST_SIZE:
        raise InvalidInputException(
            f"Root must be {DIGEST_SIZE} bytes",
            field_path="root",
        )
    return bytes(root)


class CodeAuthority:
    """
    Per-token committed roots and code counters.

    Reads and writes the shared LedgerState; callers are expected to run
    ``register`` and ``advance`` inside a ledger transaction.
    """

    def __init__(
        self,
        state: LedgerState,
        hash_algorithm: str = "keccak256",
        track_leaf_hashes: bool = True,
    ) -> None:
        self._state = state
        self.hash_algorithm = hash_algorithm
        self.hash_fn = get_hash_function(hash_algorithm)
        self.track_leaf_hashes = track_leaf_hashes

    def leaf(self, code: str) -> bytes:
        return code_leaf(code, self.hash_fn)

    def root_of(self, token_id: int) -> bytes:
        return self._state.token(token_id).root

    def last_processed_of(self, token_id: int) -> int:
        return self._state.token(token_id).last_processed

    def _check(self, token_id: int, code: Any, path: Sequence[Any]) -> tuple[int, bytes]:
        """
        Validate a code without side effects.

        Returns:
            (numeric value, leaf hash) of the accepted code

        Raises:
            TokenNotFoundException, ReplayedCodeException, InvalidProofException
        """
        token = self._state.token(token_id)

        value = numeric_value(code)
        if value <= token.last_processed:
            raise ReplayedCodeException(
                "Code is malformed" if not is_well_formed(code)
                else "Code is not greater than the last processed code",
                token_id=token_id,
                value=value,
                last_processed=token.last_processed,
                details={"malformed": not is_well_formed(code)},
            )

        leaf = self.leaf(code)
        if self.track_leaf_hashes and leaf in token.processed_leaves:
            raise ReplayedCodeException(
                "Code leaf was already processed",
                token_id=token_id,
                value=value,
                last_processed=token.last_processed,
            )

        try:
            siblings = parse_path(path)
        except (TypeError, ValueError) as e:
            raise InvalidProofException(f"Malformed proof: {e}", token_id=token_id) from e

        if not verify(token.root, leaf, siblings, self.hash_fn):
            raise InvalidProofException(
                "Proof does not reconstruct the committed root",
                token_id=token_id,
                details={"path_length": len(siblings)},
            )

        return value, leaf

    def is_authorized(self, token_id: int, code: Any, path: Sequence[Any]) -> bool:
        """True iff ``advance`` would accept this code right now. Never raises."""
        try:
            self._check(token_id, code, path)
        except LedgerException:
            return False
        return True

    def register(self, token_id: int, root: Any) -> None:
        """Install the committed root of a freshly minted token."""
        token = self._state.token(token_id)
        root_bytes = parse_root(root)
        if token.root:
            raise InvalidInputException(
                f"Token {token_id} already has a committed root",
                field_path="root",
            )
        token.root = root_bytes

    def advance(self, token_id: int, code: Any, path: Sequence[Any]) -> int:
        """
        Consume a code: re-validate and move the token's counter forward.

        Returns:
            The new last-processed value
        """
        value, leaf = self._check(token_id, code, path)
        token = self._state.token(token_id)
        token.last_processed = value
        if self.track_leaf_hashes:
            token.processed_leaves.add(leaf)
        logger.debug("Token %d advanced to code value %d", token_id, value)
        return value
