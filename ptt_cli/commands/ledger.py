"""
CLI Ledger Commands

Run ledger operations against a JSON state file. Every mutating command
loads the file, performs one atomic ledger operation and writes the file
back only if the operation succeeded.

Usage:
    ptt ledger deposit  --state S --account 0xB --amount 50000
    ptt ledger mint     --state S --caller 0xA --root 0x...
    ptt ledger offer    --state S --caller 0xB --token 1 --amount 21000
    ptt ledger accept   --state S --caller 0xA --token 1 --to 0xB
    ptt ledger transfer --state S --caller 0xB --token 1 --from 0xA --to 0xB --code 1 --codes codes.json
    ptt ledger show     --state S [--token 1]
"""

from __future__ import annotations

import json
import logging
from argparse import Namespace
from typing import Any

from core.crypto.hashing import from_hex
from core.schemas.errors import InvalidInputException
from orchestrator.artifacts import load_or_create, save_state
from orchestrator.ledger import TokenLedger
from orchestrator.payments import InMemoryPaymentGateway

from ptt_cli.commands.codes import EXIT_SUCCESS, load_batch


logger = logging.getLogger(__name__)


def _state_path(args: Namespace) -> str:
    path = args.state or args.cli_config.state_path
    if not path:
        raise InvalidInputException(
            "No state file: pass --state or set storage.state_path / PTT_STATE_PATH",
            field_path="state",
        )
    return path


def _open(args: Namespace) -> tuple[TokenLedger, str]:
    path = _state_path(args)
    return load_or_create(path, config=args.cli_config.runtime.ledger), path


def _require_caller(args: Namespace) -> str:
    if not args.caller:
        raise InvalidInputException("--caller is required for this command", field_path="caller")
    return args.caller


def _output(args: Namespace, data: dict[str, Any], text: str) -> None:
    if args.json:
        print(json.dumps(data, indent=2))
    else:
        print(text)


def deposit_cmd(args: Namespace) -> int:
    """Fund an account in the state file's in-memory gateway."""
    ledger, path = _open(args)
    if not isinstance(ledger.payments, InMemoryPaymentGateway):
        raise InvalidInputException("Deposits need the in-memory payment gateway", field_path="account")
    ledger.payments.deposit(args.account, args.amount)
    save_state(ledger, path)
    funds = ledger.payments.balance_of(args.account)
    _output(args, {"account": args.account, "funds": funds}, f"{args.account}: {funds}")
    return EXIT_SUCCESS


def mint_cmd(args: Namespace) -> int:
    ledger, path = _open(args)
    caller = _require_caller(args)
    token_id = ledger.mint(caller, args.root)
    save_state(ledger, path)
    _output(args, {"token_id": token_id, "owner": caller}, f"minted token {token_id} for {caller}")
    return EXIT_SUCCESS


def offer_cmd(args: Namespace) -> int:
    ledger, path = _open(args)
    caller = _require_caller(args)
    transferee = args.transferee or caller
    pending = ledger.initialize_offer(caller, args.token, transferee, args.amount)
    save_state(ledger, path)
    _output(
        args,
        {"token_id": args.token, "transferee": transferee, "pending": pending},
        f"offer on token {args.token} for {transferee}: {pending} pending",
    )
    return EXIT_SUCCESS


def revert_cmd(args: Namespace) -> int:
    ledger, path = _open(args)
    caller = _require_caller(args)
    returned = ledger.revert_offer(caller, args.token)
    save_state(ledger, path)
    _output(
        args,
        {"token_id": args.token, "transferee": caller, "returned": returned},
        f"reverted offer on token {args.token}: {returned} returned to {caller}",
    )
    return EXIT_SUCCESS


def accept_cmd(args: Namespace) -> int:
    ledger, path = _open(args)
    caller = _require_caller(args)
    from_account = args.from_account or caller
    ledger.accept_offer(caller, from_account, args.to_account, args.token)
    save_state(ledger, path)
    amount = ledger.offer_amount_of(args.to_account, args.token)
    _output(
        args,
        {"token_id": args.token, "accepted": args.to_account, "amount": amount},
        f"token {args.token}: accepted {args.to_account} ({amount} escrowed)",
    )
    return EXIT_SUCCESS


def refund_cmd(args: Namespace) -> int:
    ledger, path = _open(args)
    caller = _require_caller(args)
    returned = ledger.refund_offer(caller, args.transferee, args.token)
    save_state(ledger, path)
    _output(
        args,
        {"token_id": args.token, "transferee": args.transferee, "returned": returned},
        f"refunded {returned} to {args.transferee} on token {args.token}",
    )
    return EXIT_SUCCESS


def _transfer_path(args: Namespace) -> list[bytes]:
    if args.codes_file:
        batch = load_batch(args.codes_file, args.cli_config.runtime.ledger.hash_algorithm)
        try:
            return batch.proof_for(args.code)
        except KeyError as e:
            raise InvalidInputException(str(e.args[0]), field_path="code") from e
    try:
        return [from_hex(p) for p in args.proof or []]
    except ValueError as e:
        raise InvalidInputException(f"Malformed proof element: {e}", field_path="proof") from e


def transfer_cmd(args: Namespace) -> int:
    ledger, path = _open(args)
    caller = _require_caller(args)
    from_account = args.from_account or ledger.owner_of(args.token)
    settled = ledger.transfer(
        caller,
        from_account,
        args.to_account,
        args.token,
        args.code,
        _transfer_path(args),
    )
    save_state(ledger, path)
    _output(
        args,
        {
            "token_id": args.token,
            "owner": args.to_account,
            "last_processed": ledger.last_processed_of(args.token),
            "settled": settled,
        },
        f"token {args.token}: {from_account} -> {args.to_account}"
        + (f", settled {settled} to {from_account}" if settled is not None else ", unpaid"),
    )
    return EXIT_SUCCESS


def show_cmd(args: Namespace) -> int:
    """Print one token, or the whole ledger."""
    ledger, _ = _open(args)
    if args.token is not None:
        info = ledger.token_info(args.token).model_dump(mode="json")
        _output(args, info, "\n".join(f"{k}: {v}" for k, v in info.items()))
        return EXIT_SUCCESS

    tokens = [ledger.token_info(t).model_dump(mode="json") for t in ledger.token_ids()]
    data: dict[str, Any] = {
        "tokens": tokens,
        "escrow_balance": ledger.escrow_balance(),
        "records": len(ledger.records()),
    }
    if isinstance(ledger.payments, InMemoryPaymentGateway):
        data["balances"] = ledger.payments.balances()

    if args.json:
        print(json.dumps(data, indent=2))
        return EXIT_SUCCESS

    print(f"tokens: {len(tokens)}")
    for t in tokens:
        counterparty = t["accepted_counterparty"] or "-"
        print(
            f"  #{t['token_id']} owner={t['owner']} last={t['last_processed']} "
            f"escrow={t['escrow_status']} accepted={counterparty}"
        )
    print(f"escrow_balance: {data['escrow_balance']}")
    for account, amount in sorted(data.get("balances", {}).items()):
        print(f"  {account}: {amount}")
    return EXIT_SUCCESS
