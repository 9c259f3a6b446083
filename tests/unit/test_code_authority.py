"""
Code Authority Unit Tests
Tests for orchestrator/code_authority.py

1. Numeric parsing of codes (invalid -> 0)
2. Authorization = strictly increasing value AND Merkle membership
3. advance moves the counter; replays and smaller codes are rejected
4. Processed-leaf tracking
5. Root registration
"""

import pytest

from core.schemas.errors import (
    ErrorCodes,
    InvalidInputException,
    InvalidProofException,
    ReplayedCodeException,
    TokenNotFoundException,
)
from orchestrator.code_authority import (
    MAX_CODE_VALUE,
    CodeAuthority,
    is_well_formed,
    numeric_value,
    parse_path,
    parse_root,
)
from orchestrator.state import LedgerState, TokenRecord

from fixtures import make_code_batch


def _authority(codes=("1", "2", "3", "10"), hash_algorithm="keccak256", track_leaf_hashes=True):
    batch = make_code_batch(codes, hash_algorithm)
    state = LedgerState()
    state.tokens[1] = TokenRecord(token_id=1, owner="0xA", root=b"")
    authority = CodeAuthority(state, hash_algorithm=hash_algorithm, track_leaf_hashes=track_leaf_hashes)
    authority.register(1, batch.root)
    return authority, batch, state


class TestNumericValue:

    @pytest.mark.parametrize("code,value", [
        ("1", 1),
        ("0042", 42),
        ("0", 0),
        (str(MAX_CODE_VALUE), MAX_CODE_VALUE),
    ])
    def test_valid(self, code, value):
        assert numeric_value(code) == value
        assert is_well_formed(code)

    @pytest.mark.parametrize("code", [
        "",
        "4a2",
        "-1",
        "+1",
        " 1",
        "1 ",
        "1.0",
        "١",  # ARABIC-INDIC DIGIT ONE
        str(MAX_CODE_VALUE + 1),
    ])
    def test_invalid_is_zero(self, code):
        assert numeric_value(code) == 0
        assert not is_well_formed(code)

    @pytest.mark.parametrize("code", [None, 5, b"1"])
    def test_non_string_is_zero(self, code):
        assert numeric_value(code) == 0
        assert not is_well_formed(code)

    @pytest.mark.parametrize("code", [
        "9" * 5000,
        "1" + "0" * 78,
    ])
    def test_too_many_digits_is_zero(self, code):
        assert numeric_value(code) == 0
        assert not is_well_formed(code)

    def test_leading_zeros_do_not_count_toward_length(self):
        code = "0" * 5000 + "42"
        assert numeric_value(code) == 42
        assert is_well_formed(code)


class TestParsing:

    def test_path_accepts_hex_and_bytes(self):
        assert parse_path(["0x01", b"\x02"]) == [b"\x01", b"\x02"]

    def test_path_rejects_single_string(self):
        with pytest.raises(ValueError):
            parse_path("0x01")

    def test_path_rejects_bad_element(self):
        with pytest.raises(ValueError, match="Path element 1"):
            parse_path(["0x01", "zz"])
        with pytest.raises(ValueError, match="unsupported type"):
            parse_path([1])

    def test_root_hex_and_bytes(self):
        raw = b"\x11" * 32
        assert parse_root(raw) == raw
        assert parse_root("0x" + raw.hex()) == raw

    @pytest.mark.parametrize("root", [b"\x11" * 31, "0x1234", "not-hex", 7])
    def test_root_rejected(self, root):
        with pytest.raises(InvalidInputException):
            parse_root(root)


class TestAuthorization:

    def test_fresh_token_accepts_any_member(self):
        authority, batch, _ = _authority()
        for code in ("1", "2", "3", "10"):
            assert authority.is_authorized(1, code, batch.proof_for(code))

    def test_zero_never_authorized(self):
        authority, batch, _ = _authority(codes=("0", "1"))
        assert not authority.is_authorized(1, "0", batch.proof_for("0"))

    def test_wrong_proof(self):
        authority, batch, _ = _authority()
        assert not authority.is_authorized(1, "2", batch.proof_for("3"))
        with pytest.raises(InvalidProofException):
            authority.advance(1, "2", batch.proof_for("3"))

    def test_code_outside_batch(self):
        authority, batch, _ = _authority()
        with pytest.raises(InvalidProofException) as exc_info:
            authority.advance(1, "4", batch.proof_for("3"))
        assert exc_info.value.code == ErrorCodes.INVALID_PROOF

    def test_malformed_proof_element(self):
        authority, _, _ = _authority()
        with pytest.raises(InvalidProofException, match="Malformed proof"):
            authority.advance(1, "2", ["not-hex"])

    def test_hex_proof_accepted(self):
        authority, batch, _ = _authority()
        hex_path = ["0x" + s.hex() for s in batch.proof_for("2")]
        assert authority.advance(1, "2", hex_path) == 2

    def test_malformed_code_reports_replay(self):
        authority, batch, _ = _authority()
        with pytest.raises(ReplayedCodeException) as exc_info:
            authority.advance(1, "x1", batch.proof_for("1"))
        assert exc_info.value.details["malformed"] is True

    def test_unknown_token(self):
        authority, batch, _ = _authority()
        assert not authority.is_authorized(99, "1", batch.proof_for("1"))
        with pytest.raises(TokenNotFoundException):
            authority.advance(99, "1", batch.proof_for("1"))


class TestAdvance:

    def test_advance_sets_counter(self):
        authority, batch, _ = _authority()
        assert authority.advance(1, "2", batch.proof_for("2")) == 2
        assert authority.last_processed_of(1) == 2

    def test_replay_rejected(self):
        authority, batch, _ = _authority()
        authority.advance(1, "2", batch.proof_for("2"))
        with pytest.raises(ReplayedCodeException) as exc_info:
            authority.advance(1, "2", batch.proof_for("2"))
        assert exc_info.value.details["last_processed"] == 2
        assert exc_info.value.details["malformed"] is False

    def test_smaller_code_rejected(self):
        authority, batch, _ = _authority()
        authority.advance(1, "3", batch.proof_for("3"))
        assert not authority.is_authorized(1, "1", batch.proof_for("1"))
        assert not authority.is_authorized(1, "2", batch.proof_for("2"))
        assert authority.is_authorized(1, "10", batch.proof_for("10"))

    def test_numeric_not_lexicographic(self):
        authority, batch, _ = _authority()
        authority.advance(1, "3", batch.proof_for("3"))
        assert authority.advance(1, "10", batch.proof_for("10")) == 10

    def test_failed_advance_changes_nothing(self):
        authority, batch, state = _authority()
        with pytest.raises(InvalidProofException):
            authority.advance(1, "2", batch.proof_for("1"))
        assert state.tokens[1].last_processed == 0
        assert state.tokens[1].processed_leaves == set()

    def test_is_authorized_has_no_side_effects(self):
        authority, batch, _ = _authority()
        authority.is_authorized(1, "2", batch.proof_for("2"))
        assert authority.last_processed_of(1) == 0


class TestLeafTracking:

    def test_processed_leaf_rejected(self):
        authority, batch, state = _authority()
        authority.advance(1, "2", batch.proof_for("2"))
        # Counter rolled back out of band: the leaf set still blocks the code
        state.tokens[1].last_processed = 0
        with pytest.raises(ReplayedCodeException, match="already processed"):
            authority.advance(1, "2", batch.proof_for("2"))

    def test_tracking_off(self):
        authority, batch, state = _authority(track_leaf_hashes=False)
        authority.advance(1, "2", batch.proof_for("2"))
        assert state.tokens[1].processed_leaves == set()
        state.tokens[1].last_processed = 0
        assert authority.advance(1, "2", batch.proof_for("2")) == 2


class TestRegistration:

    def test_root_is_stored(self):
        authority, batch, _ = _authority()
        assert authority.root_of(1) == batch.root

    def test_register_twice_rejected(self):
        authority, batch, _ = _authority()
        with pytest.raises(InvalidInputException, match="already has a committed root"):
            authority.register(1, batch.root)

    def test_sha256_authority(self):
        authority, batch, _ = _authority(hash_algorithm="sha256")
        assert authority.advance(1, "1", batch.proof_for("1")) == 1
