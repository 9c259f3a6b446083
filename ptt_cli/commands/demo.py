"""
CLI Demo Command

Runs the end-to-end sale of one token in memory:
mint -> offer -> accept -> transfer with the first device code.

Usage:
    ptt demo [--json]
"""

from __future__ import annotations

import json
import logging
from argparse import Namespace
from typing import Any

from core.config.runtime import LedgerConfig
from core.crypto.hashing import to_hex
from core.merkle import MerkleProver
from orchestrator.ledger import TokenLedger
from orchestrator.payments import InMemoryPaymentGateway

from ptt_cli.commands.codes import EXIT_SUCCESS


logger = logging.getLogger(__name__)

SELLER = "0x00000000000000000000000000000000000000a1"
BUYER = "0x00000000000000000000000000000000000000b2"
DEVICE_CODES = ["1", "2", "3"]
PRICE = 21_000


def run_demo(hash_algorithm: str = "keccak256") -> dict[str, Any]:
    """Run the scenario and return a JSON-serializable report."""
    batch = MerkleProver.for_algorithm(hash_algorithm).commit(DEVICE_CODES)
    bank = InMemoryPaymentGateway({BUYER: 50_000})
    ledger = TokenLedger(payments=bank, config=LedgerConfig(hash_algorithm=hash_algorithm))

    token_id = ledger.mint(SELLER, batch.root)
    ledger.initialize_offer(BUYER, token_id, BUYER, PRICE)
    ledger.accept_offer(SELLER, SELLER, BUYER, token_id)
    settled = ledger.transfer(BUYER, SELLER, BUYER, token_id, "1", batch.proof_for("1"))
    logger.info("Demo sale of token %d settled %s", token_id, settled)

    return {
        "token_id": token_id,
        "root": to_hex(batch.root),
        "owner": ledger.owner_of(token_id),
        "settled": settled,
        "last_processed": ledger.last_processed_of(token_id),
        "authorized": {
            code: ledger.is_authorized(token_id, code, batch.proof_for(code))
            for code in DEVICE_CODES
        },
        "balances": bank.balances(),
        "records": ledger.journal.to_dict_list(),
    }


def demo_cmd(args: Namespace) -> int:
    report = run_demo(args.cli_config.runtime.ledger.hash_algorithm)
    if args.json:
        print(json.dumps(report, indent=2))
        return EXIT_SUCCESS

    print(f"token {report['token_id']} committed to {report['root']}")
    for record in report["records"]:
        parties = (
            f"{record['from_account']} -> {record['to_account']}"
            if record["kind"] == "Transfer"
            else f"owner={record['owner']} transferee={record['transferee']} amount={record['amount']}"
        )
        print(f"  #{record['sequence']} {record['kind']}: {parties}")
    print(f"owner: {report['owner']} (settled {report['settled']})")
    for code, ok in report["authorized"].items():
        print(f"  code {code}: {'authorized' if ok else 'spent'}")
    for account, amount in sorted(report["balances"].items()):
        print(f"  {account}: {amount}")
    return EXIT_SUCCESS
