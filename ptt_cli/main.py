"""
CLI Main Entry Point

Parses command-line arguments and dispatches to subcommands.

Usage:
    ptt codes root <codes.json>
    ptt codes prove <codes.json> <code>
    ptt codes verify --root R --code C --proof P [P ...]
    ptt ledger {deposit,mint,offer,revert,accept,refund,transfer,show} --state PATH ...
    ptt demo
    ptt config --init | --show

Global options (before the subcommand):
    --config PATH      YAML configuration file
    --log-level LEVEL  Overrides the configured log level
    --json             Machine-readable output

Environment Variables:
    PTT_HASH_ALGORITHM      keccak256 (default) or sha256
    PTT_TRACK_LEAF_HASHES   Reject previously processed code leaves (default: true)
    PTT_STATE_PATH          Ledger state file for `ptt ledger`
    PTT_LOG_LEVEL           Log level (default: INFO)
    PTT_LOG_FILE            Also log to this file
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Sequence

from core.schemas.errors import LedgerException
from ptt_cli.commands import codes, demo, ledger
from ptt_cli.config import get_default_config_template, load_config


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Configure logging for the CLI."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
        force=True,
    )


def _add_state_options(parser: argparse.ArgumentParser, caller: bool = True) -> None:
    parser.add_argument(
        "--state", "-s",
        type=str,
        default=None,
        help="Ledger state file (default: storage.state_path from config)",
    )
    if caller:
        parser.add_argument(
            "--caller",
            type=str,
            default=None,
            help="Account performing the operation",
        )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="ptt",
        description="PTT CLI - Commit device code batches and run physical-token ledger operations.",
    )
    parser.add_argument(
        "--version", action="version", version="%(prog)s 0.1.0"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Path to configuration file (default: ./ptt.yaml or ~/.config/ptt/config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output machine-readable JSON",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- codes command ---
    codes_parser = subparsers.add_parser(
        "codes",
        help="Commit, prove and verify device code batches",
    )
    codes_sub = codes_parser.add_subparsers(dest="codes_command", required=True)

    root_parser = codes_sub.add_parser("root", help="Print the root of a code batch")
    root_parser.add_argument("codes_file", type=str, help="JSON array of codes")
    root_parser.set_defaults(func=codes.root_cmd)

    prove_parser = codes_sub.add_parser("prove", help="Print a code's inclusion proof")
    prove_parser.add_argument("codes_file", type=str, help="JSON array of codes")
    prove_parser.add_argument("code", type=str, help="Code to prove")
    prove_parser.set_defaults(func=codes.prove_cmd)

    verify_parser = codes_sub.add_parser(
        "verify",
        help="Verify a code against a root (exit 2 when invalid)",
    )
    verify_parser.add_argument("--root", required=True, help="Committed root (0x-prefixed)")
    verify_parser.add_argument("--code", required=True, help="Device code")
    verify_parser.add_argument("--proof", nargs="*", default=[], help="Sibling hashes, leaf to root")
    verify_parser.set_defaults(func=codes.verify_cmd)

    # --- ledger command ---
    ledger_parser = subparsers.add_parser(
        "ledger",
        help="Run ledger operations on a JSON state file",
    )
    ledger_sub = ledger_parser.add_subparsers(dest="ledger_command", required=True)

    deposit_parser = ledger_sub.add_parser("deposit", help="Fund an account")
    _add_state_options(deposit_parser, caller=False)
    deposit_parser.add_argument("--account", required=True)
    deposit_parser.add_argument("--amount", type=int, required=True)
    deposit_parser.set_defaults(func=ledger.deposit_cmd)

    mint_parser = ledger_sub.add_parser("mint", help="Mint a token owned by the caller")
    _add_state_options(mint_parser)
    mint_parser.add_argument("--root", required=True, help="Committed root (0x-prefixed)")
    mint_parser.set_defaults(func=ledger.mint_cmd)

    offer_parser = ledger_sub.add_parser("offer", help="Escrow an offer for a token")
    _add_state_options(offer_parser)
    offer_parser.add_argument("--token", type=int, required=True)
    offer_parser.add_argument("--amount", type=int, required=True)
    offer_parser.add_argument("--transferee", default=None, help="Offer holder (default: caller)")
    offer_parser.set_defaults(func=ledger.offer_cmd)

    revert_parser = ledger_sub.add_parser("revert", help="Withdraw the caller's pending offer")
    _add_state_options(revert_parser)
    revert_parser.add_argument("--token", type=int, required=True)
    revert_parser.set_defaults(func=ledger.revert_cmd)

    accept_parser = ledger_sub.add_parser("accept", help="Owner accepts a counterparty")
    _add_state_options(accept_parser)
    accept_parser.add_argument("--token", type=int, required=True)
    accept_parser.add_argument("--from", dest="from_account", default=None, help="Owner (default: caller)")
    accept_parser.add_argument("--to", dest="to_account", required=True, help="Counterparty")
    accept_parser.set_defaults(func=ledger.accept_cmd)

    refund_parser = ledger_sub.add_parser("refund", help="Owner backs out of an accepted offer")
    _add_state_options(refund_parser)
    refund_parser.add_argument("--token", type=int, required=True)
    refund_parser.add_argument("--transferee", required=True)
    refund_parser.set_defaults(func=ledger.refund_cmd)

    transfer_parser = ledger_sub.add_parser("transfer", help="Transfer a token with its next code")
    _add_state_options(transfer_parser)
    transfer_parser.add_argument("--token", type=int, required=True)
    transfer_parser.add_argument("--from", dest="from_account", default=None, help="Owner (default: current owner)")
    transfer_parser.add_argument("--to", dest="to_account", required=True)
    transfer_parser.add_argument("--code", required=True)
    proof_group = transfer_parser.add_mutually_exclusive_group()
    proof_group.add_argument("--proof", nargs="*", default=None, help="Sibling hashes, leaf to root")
    proof_group.add_argument("--codes", dest="codes_file", default=None, help="Derive the proof from this batch")
    transfer_parser.set_defaults(func=ledger.transfer_cmd)

    show_parser = ledger_sub.add_parser("show", help="Show the ledger or one token")
    _add_state_options(show_parser, caller=False)
    show_parser.add_argument("--token", type=int, default=None)
    show_parser.set_defaults(func=ledger.show_cmd)

    # --- demo command ---
    demo_parser = subparsers.add_parser(
        "demo",
        help="Run the offer/accept/transfer scenario in memory",
    )
    demo_parser.set_defaults(func=demo.demo_cmd)

    # --- config command ---
    config_parser = subparsers.add_parser(
        "config",
        help="Manage configuration",
    )
    config_parser.add_argument(
        "--init",
        action="store_true",
        help="Create a template configuration file",
    )
    config_parser.add_argument(
        "--show",
        action="store_true",
        help="Show current configuration",
    )
    config_parser.add_argument(
        "--path",
        type=str,
        default="ptt.yaml",
        help="Path for config file (default: ./ptt.yaml)",
    )
    config_parser.set_defaults(func=config_cmd)

    return parser


def config_cmd(args: argparse.Namespace) -> int:
    """Handle config command."""
    if args.init:
        config_path = Path(args.path)
        if config_path.exists():
            print(f"Error: Config file already exists: {config_path}", file=sys.stderr)
            return EXIT_RUNTIME_ERROR
        config_path.write_text(get_default_config_template())
        print(f"Created configuration file: {config_path}")
        print("You can also use environment variables (PTT_* prefix).")
        return EXIT_SUCCESS

    if args.show:
        print(json.dumps(args.cli_config.runtime.to_dict(), indent=2))
        return EXIT_SUCCESS

    print("Usage: ptt config [--init|--show]")
    print("  --init  Create a template configuration file")
    print("  --show  Show current configuration")
    return EXIT_SUCCESS


def _report_error(args: argparse.Namespace, exc: LedgerException) -> None:
    if getattr(args, "json", False):
        print(json.dumps({"ok": False, "error": exc.to_error_model().model_dump()}, indent=2))
    else:
        print(f"Error [{exc.code}]: {exc.message}", file=sys.stderr)


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0=success, 1=error, 2=verification failed)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_RUNTIME_ERROR

    # Load configuration
    try:
        config = load_config(args.config)
    except Exception as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    # Setup logging
    log_level = args.log_level or config.log_level
    setup_logging(level=log_level, log_file=config.log_file)

    # Attach config to args for commands to use
    args.cli_config = config

    try:
        return args.func(args)
    except LedgerException as e:
        _report_error(args, e)
        return EXIT_RUNTIME_ERROR
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
