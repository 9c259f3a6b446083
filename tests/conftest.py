"""
Pytest configuration and shared fixtures for ledger tests.

This conftest.py:
1. Adds project root to sys.path for imports
2. Provides commonly-used fixtures via pytest's autodiscovery
3. Configures pytest markers and settings
"""

import sys
from pathlib import Path

import pytest

# =============================================================================
# Path Setup - Must happen before any local imports
# =============================================================================

# Get the project root (parent of tests/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_TESTS_ROOT = Path(__file__).resolve().parent

# Add both project root and tests root to sys.path
for _path in [str(_PROJECT_ROOT), str(_TESTS_ROOT)]:
    if _path not in sys.path:
        sys.path.insert(0, _path)

# =============================================================================
# Import fixtures using importlib (more robust for pytest loading)
# =============================================================================

import importlib

_common = importlib.import_module("fixtures.common")

make_code_batch = _common.make_code_batch
make_bank = _common.make_bank
make_ledger = _common.make_ledger
make_minted_ledger = _common.make_minted_ledger
make_accepted_ledger = _common.make_accepted_ledger


# =============================================================================
# Pytest Fixtures (autodiscovered by pytest)
# =============================================================================

@pytest.fixture
def code_batch():
    """Commitment to the codes "1", "2", "3"."""
    return make_code_batch()


@pytest.fixture
def bank():
    """Funded in-memory payment gateway."""
    return make_bank()


@pytest.fixture
def ledger(bank):
    """Empty ledger paying through ``bank``."""
    return make_ledger(bank)


@pytest.fixture
def minted(bank):
    """(ledger, batch, token_id) with one token owned by the seller."""
    return make_minted_ledger(bank=bank)


@pytest.fixture(autouse=True)
def _reset_default_config():
    """Keep the process-wide RuntimeConfig from leaking between tests."""
    from core.config.runtime import set_default_config
    set_default_config(None)
    yield
    set_default_config(None)


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )


# =============================================================================
# Test Helpers (available to all tests via fixtures)
# =============================================================================

@pytest.fixture
def assert_record_kinds():
    """Helper to assert the kinds of a ledger's published records, in order."""
    def _assert(ledger, expected: list[str], token_id=None):
        kinds = [r.kind for r in ledger.records(token_id=token_id)]
        assert kinds == expected, f"Expected records {expected}, got {kinds}"
    return _assert
