"""
Schemas
File: __init__.py

Purpose: Export the public API for the schemas module: error taxonomy,
canonical serialization, versioning and ledger read/persistence models.
"""

# Version constants
from .versioning import (
    SCHEMA_VERSION,
    SUPPORTED_SCHEMA_VERSIONS,
    SchemaVersion,
    UnsupportedSchemaVersionError,
    assert_supported_schema_version,
)

# Canonical serialization API
from .canonical import (
    CANONICAL_JSON_SEPARATORS,
    canonical_equals,
    canonicalize_value,
    dumps_canonical,
    ensure_utc,
    format_datetime_canonical,
    loads_canonical,
)

# Error models and exceptions
from .errors import (
    HTTP_STATUS_BY_CODE,
    CanonicalizationException,
    ConflictingOfferException,
    ErrorCodes,
    InvalidInputException,
    InvalidProofException,
    LedgerError,
    LedgerException,
    ReplayedCodeException,
    SettlementFailureException,
    StalePermissionException,
    StateCorruptException,
    TokenNotFoundException,
    UnauthorizedCallerException,
)

# Ledger read models and persisted snapshot
from .ledger import (
    ZERO_ACCOUNT,
    EscrowStatus,
    LedgerSnapshot,
    OfferOutcome,
    OfferState,
    TokenInfo,
    TokenState,
)

__all__ = [
    # Versioning
    "SCHEMA_VERSION",
    "SUPPORTED_SCHEMA_VERSIONS",
    "SchemaVersion",
    "UnsupportedSchemaVersionError",
    "assert_supported_schema_version",
    # Canonical
    "CANONICAL_JSON_SEPARATORS",
    "canonical_equals",
    "canonicalize_value",
    "dumps_canonical",
    "ensure_utc",
    "format_datetime_canonical",
    "loads_canonical",
    # Errors
    "HTTP_STATUS_BY_CODE",
    "CanonicalizationException",
    "ConflictingOfferException",
    "ErrorCodes",
    "InvalidInputException",
    "InvalidProofException",
    "LedgerError",
    "LedgerException",
    "ReplayedCodeException",
    "SettlementFailureException",
    "StalePermissionException",
    "StateCorruptException",
    "TokenNotFoundException",
    "UnauthorizedCallerException",
    # Ledger
    "ZERO_ACCOUNT",
    "EscrowStatus",
    "LedgerSnapshot",
    "OfferOutcome",
    "OfferState",
    "TokenInfo",
    "TokenState",
]
