"""
CLI Tests

Tests for ptt_cli:
1. codes root / prove / verify (exit 2 on a failed verification)
2. ledger commands sharing a state file across invocations
3. Ledger errors reported with their code and exit status 1
4. demo and config commands
"""

import json

import pytest

from ptt_cli.commands.codes import read_codes
from ptt_cli.commands.demo import BUYER as DEMO_BUYER, SELLER as DEMO_SELLER, run_demo
from ptt_cli.main import EXIT_RUNTIME_ERROR, EXIT_SUCCESS, EXIT_VERIFICATION_FAILED, main

from fixtures import make_code_batch


@pytest.fixture(autouse=True)
def _isolated(tmp_path, monkeypatch):
    """Run from an empty directory with no PTT_* environment."""
    monkeypatch.chdir(tmp_path)
    for name in ("PTT_HASH_ALGORITHM", "PTT_TRACK_LEAF_HASHES", "PTT_STATE_PATH", "PTT_LOG_LEVEL", "PTT_LOG_FILE"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def codes_file(tmp_path):
    path = tmp_path / "codes.json"
    path.write_text(json.dumps(["1", "2", "3"]))
    return path


def _run_json(capsys, *argv):
    # Drop output left by earlier plain-text invocations
    capsys.readouterr()
    code = main(["--json", *argv])
    out = capsys.readouterr().out
    return code, json.loads(out) if out.strip() else None


class TestReadCodes:

    def test_array_and_object(self, tmp_path):
        a = tmp_path / "a.json"
        a.write_text("[1, \"2\"]")
        b = tmp_path / "b.json"
        b.write_text('{"codes": ["x"]}')
        assert read_codes(a) == ["1", "2"]
        assert read_codes(b) == ["x"]

    def test_rejects_other_shapes(self, tmp_path):
        path = tmp_path / "c.json"
        path.write_text('{"codes": [true]}')
        with pytest.raises(ValueError):
            read_codes(path)
        path.write_text('"1"')
        with pytest.raises(ValueError):
            read_codes(path)


class TestCodesCommands:

    def test_root(self, capsys, codes_file):
        assert main(["codes", "root", str(codes_file)]) == EXIT_SUCCESS
        assert capsys.readouterr().out.strip() == "0x" + make_code_batch().root.hex()

    def test_prove_then_verify(self, capsys, codes_file):
        code, proof = _run_json(capsys, "codes", "prove", str(codes_file), "2")
        assert code == EXIT_SUCCESS

        argv = ["codes", "verify", "--root", proof["root"], "--code", "2", "--proof", *proof["proof"]]
        assert main(argv) == EXIT_SUCCESS
        assert "valid: true" in capsys.readouterr().out

    def test_verify_failure_exit_code(self, capsys, codes_file):
        _, proof = _run_json(capsys, "codes", "prove", str(codes_file), "2")
        argv = ["codes", "verify", "--root", proof["root"], "--code", "3", "--proof", *proof["proof"]]
        assert main(argv) == EXIT_VERIFICATION_FAILED

    def test_prove_unknown_code(self, capsys, codes_file):
        assert main(["codes", "prove", str(codes_file), "9"]) == EXIT_RUNTIME_ERROR
        assert "not in" in capsys.readouterr().err

    def test_sha256_config(self, capsys, codes_file, monkeypatch):
        monkeypatch.setenv("PTT_HASH_ALGORITHM", "sha256")
        main(["codes", "root", str(codes_file)])
        expected = make_code_batch(hash_algorithm="sha256").root.hex()
        assert capsys.readouterr().out.strip() == "0x" + expected


class TestLedgerCommands:

    def test_sale_across_invocations(self, capsys, tmp_path, codes_file):
        state = str(tmp_path / "ledger.json")
        root = "0x" + make_code_batch().root.hex()

        assert main(["ledger", "deposit", "--state", state, "--account", "0xB", "--amount", "50000"]) == 0
        code, minted = _run_json(capsys, "ledger", "mint", "--state", state, "--caller", "0xA", "--root", root)
        assert code == 0
        token = str(minted["token_id"])

        assert main(["ledger", "offer", "--state", state, "--caller", "0xB", "--token", token, "--amount", "21000"]) == 0
        assert main(["ledger", "accept", "--state", state, "--caller", "0xA", "--token", token, "--to", "0xB"]) == 0
        capsys.readouterr()

        code, result = _run_json(
            capsys,
            "ledger", "transfer", "--state", state, "--caller", "0xB", "--token", token,
            "--to", "0xB", "--code", "1", "--codes", str(codes_file),
        )
        assert code == 0
        assert result == {"token_id": 1, "owner": "0xB", "last_processed": 1, "settled": 21000}

        _, shown = _run_json(capsys, "ledger", "show", "--state", state)
        assert shown["balances"] == {"0xA": 21000, "0xB": 29000}
        assert shown["escrow_balance"] == 0
        assert shown["tokens"][0]["owner"] == "0xB"
        assert shown["records"] == 5

    def test_replay_reports_error(self, capsys, tmp_path, codes_file):
        state = str(tmp_path / "ledger.json")
        root = "0x" + make_code_batch().root.hex()
        main(["ledger", "mint", "--state", state, "--caller", "0xA", "--root", root])
        transfer = ["ledger", "transfer", "--state", state, "--caller", "0xA", "--token", "1",
                    "--to", "0xB", "--code", "1", "--codes", str(codes_file)]
        assert main(transfer) == EXIT_SUCCESS
        capsys.readouterr()

        assert main(transfer) == EXIT_RUNTIME_ERROR
        assert "REPLAYED_CODE" in capsys.readouterr().err

    def test_failed_command_keeps_state(self, capsys, tmp_path):
        state = tmp_path / "ledger.json"
        root = "0x" + make_code_batch().root.hex()
        main(["ledger", "mint", "--state", str(state), "--caller", "0xA", "--root", root])
        before = state.read_text()

        code, error = _run_json(
            capsys, "ledger", "offer", "--state", str(state), "--caller", "0xB", "--token", "1", "--amount", "5",
        )
        assert code == EXIT_RUNTIME_ERROR
        assert error["error"]["code"] == "SETTLEMENT_FAILURE"
        assert state.read_text() == before

    def test_state_from_environment(self, capsys, tmp_path, monkeypatch):
        monkeypatch.setenv("PTT_STATE_PATH", str(tmp_path / "env.json"))
        assert main(["ledger", "deposit", "--account", "0xB", "--amount", "7"]) == EXIT_SUCCESS
        assert (tmp_path / "env.json").exists()

    def test_missing_state_path(self, capsys):
        assert main(["ledger", "show"]) == EXIT_RUNTIME_ERROR
        assert "INVALID_INPUT" in capsys.readouterr().err

    def test_missing_caller(self, capsys, tmp_path):
        state = str(tmp_path / "ledger.json")
        assert main(["ledger", "mint", "--state", state, "--root", "0x" + "00" * 32]) == EXIT_RUNTIME_ERROR


class TestDemoAndConfig:

    def test_run_demo(self):
        report = run_demo()
        assert report["owner"] == DEMO_BUYER
        assert report["settled"] == 21_000
        assert report["authorized"] == {"1": False, "2": True, "3": True}
        assert report["balances"] == {DEMO_SELLER: 21_000, DEMO_BUYER: 29_000}
        assert [r["kind"] for r in report["records"]][-1] == "Transfer"

    def test_demo_command(self, capsys):
        assert main(["demo"]) == EXIT_SUCCESS
        assert "OfferSettled" in capsys.readouterr().out

    def test_config_init_and_show(self, capsys, tmp_path):
        path = tmp_path / "ptt.yaml"
        assert main(["config", "--init", "--path", str(path)]) == EXIT_SUCCESS
        assert main(["config", "--init", "--path", str(path)]) == EXIT_RUNTIME_ERROR
        capsys.readouterr()

        assert main(["--config", str(path), "config", "--show"]) == EXIT_SUCCESS
        shown = json.loads(capsys.readouterr().out)
        assert shown["storage"]["state_path"] == "ledger.json"

    def test_no_command(self, capsys):
        assert main([]) == EXIT_RUNTIME_ERROR
