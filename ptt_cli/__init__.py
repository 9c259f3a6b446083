"""
PTT CLI

Command-line interface for the physical-token ledger.

Usage:
    python -m ptt_cli codes root codes.json
    python -m ptt_cli codes prove codes.json 2
    python -m ptt_cli ledger mint --state ledger.json --caller 0xA --root 0x...
    python -m ptt_cli ledger transfer --state ledger.json --caller 0xB --token 1 ...
    python -m ptt_cli demo
"""

__version__ = "0.1.0"
