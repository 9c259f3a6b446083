"""
Schemas
File: errors.py

Purpose: Standard error taxonomy for the ledger.
Defines both Pydantic models for structured error communication
and Python exceptions for control flow.

Every exception aborts the whole enclosing ledger operation. None of them
is retryable as-is: the caller must correct the input (next code in the
sequence, correct counterparty, sufficient attached value) and resubmit.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Error Codes (Machine-Readable Constants)
# =============================================================================

class ErrorCodes:
    """Stable machine-readable error codes used across the ledger."""

    # Code authorization
    INVALID_PROOF = "INVALID_PROOF"
    REPLAYED_CODE = "REPLAYED_CODE"

    # Permissions
    UNAUTHORIZED_CALLER = "UNAUTHORIZED_CALLER"

    # Escrow state machine
    CONFLICTING_OFFER = "CONFLICTING_OFFER"
    STALE_PERMISSION = "STALE_PERMISSION"

    # Funds movement
    SETTLEMENT_FAILURE = "SETTLEMENT_FAILURE"

    # Lookup & input
    TOKEN_NOT_FOUND = "TOKEN_NOT_FOUND"
    INVALID_INPUT = "INVALID_INPUT"

    # Serialization & persistence
    CANONICALIZATION_ERROR = "CANONICALIZATION_ERROR"
    STATE_CORRUPT = "STATE_CORRUPT"


# =============================================================================
# Pydantic Error Models (Structured Communication)
# =============================================================================

class LedgerError(BaseModel):
    """
    Base error model for structured error communication.

    Used when errors cross a process boundary (HTTP responses, CLI JSON
    output) instead of being raised.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=False,
        validate_assignment=True,
    )

    code: str = Field(
        ...,
        description="Stable machine-readable error code",
        examples=[ErrorCodes.REPLAYED_CODE],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional structured details about the error",
    )
    retryable: bool = Field(
        default=False,
        description="Whether the operation can be retried unchanged",
    )

    def to_exception(self) -> "LedgerException":
        """Convert this error model to a raised exception."""
        return LedgerException(
            message=self.message,
            code=self.code,
            details=self.details,
            retryable=self.retryable,
        )


# =============================================================================
# Python Exceptions (Control Flow)
# =============================================================================

class LedgerException(Exception):
    """
    Base exception for all ledger errors.

    Carries structured error information and can be converted to a
    LedgerError model.
    """

    def __init__(
        self,
        message: str,
        code: str = "LEDGER_ERROR",
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.retryable = retryable

    def to_error_model(self) -> LedgerError:
        """Convert this exception to a LedgerError model."""
        return LedgerError(
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


def _with_token(details: dict[str, Any] | None, token_id: int | None) -> dict[str, Any]:
    full_details = dict(details or {})
    if token_id is not None:
        full_details["token_id"] = token_id
    return full_details


class InvalidProofException(LedgerException):
    """The Merkle path does not reconstruct the token's committed root."""

    def __init__(
        self,
        message: str,
        token_id: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.INVALID_PROOF,
            details=_with_token(details, token_id),
        )


class ReplayedCodeException(LedgerException):
    """The code is not strictly greater than the last processed one."""

    def __init__(
        self,
        message: str,
        token_id: int | None = None,
        value: int | None = None,
        last_processed: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = _with_token(details, token_id)
        if value is not None:
            full_details["value"] = value
        if last_processed is not None:
            full_details["last_processed"] = last_processed
        super().__init__(
            message=message,
            code=ErrorCodes.REPLAYED_CODE,
            details=full_details,
        )


class UnauthorizedCallerException(LedgerException):
    """The caller is not the owner or offerer the operation requires."""

    def __init__(
        self,
        message: str,
        caller: str | None = None,
        token_id: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = _with_token(details, token_id)
        if caller:
            full_details["caller"] = caller
        super().__init__(
            message=message,
            code=ErrorCodes.UNAUTHORIZED_CALLER,
            details=full_details,
        )


class ConflictingOfferException(LedgerException):
    """An offer is created or accepted while a counterparty is already accepted."""

    def __init__(
        self,
        message: str,
        token_id: int | None = None,
        accepted: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = _with_token(details, token_id)
        if accepted:
            full_details["accepted_counterparty"] = accepted
        super().__init__(
            message=message,
            code=ErrorCodes.CONFLICTING_OFFER,
            details=full_details,
        )


class StalePermissionException(LedgerException):
    """Revert after accept, or refund without a matching accept."""

    def __init__(
        self,
        message: str,
        token_id: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.STALE_PERMISSION,
            details=_with_token(details, token_id),
        )


class SettlementFailureException(LedgerException):
    """An inbound collection or outbound payment did not complete."""

    def __init__(
        self,
        message: str,
        account: str | None = None,
        amount: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = dict(details or {})
        if account:
            full_details["account"] = account
        if amount is not None:
            full_details["amount"] = amount
        super().__init__(
            message=message,
            code=ErrorCodes.SETTLEMENT_FAILURE,
            details=full_details,
        )


class TokenNotFoundException(LedgerException):
    """The token id was never minted."""

    def __init__(self, token_id: int) -> None:
        super().__init__(
            message=f"Token {token_id} does not exist",
            code=ErrorCodes.TOKEN_NOT_FOUND,
            details={"token_id": token_id},
        )


class InvalidInputException(LedgerException):
    """Malformed arguments (negative amount, empty account, bad root)."""

    def __init__(
        self,
        message: str,
        field_path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = dict(details or {})
        if field_path:
            full_details["field_path"] = field_path
        super().__init__(
            message=message,
            code=ErrorCodes.INVALID_INPUT,
            details=full_details,
        )


class CanonicalizationException(LedgerException):
    """Exception raised when canonical serialization fails."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.CANONICALIZATION_ERROR,
            details=details,
        )


class StateCorruptException(LedgerException):
    """A persisted ledger state could not be loaded."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = dict(details or {})
        if path:
            full_details["path"] = path
        super().__init__(
            message=message,
            code=ErrorCodes.STATE_CORRUPT,
            details=full_details,
        )


HTTP_STATUS_BY_CODE: dict[str, int] = {
    ErrorCodes.INVALID_PROOF: 422,
    ErrorCodes.REPLAYED_CODE: 409,
    ErrorCodes.UNAUTHORIZED_CALLER: 403,
    ErrorCodes.CONFLICTING_OFFER: 409,
    ErrorCodes.STALE_PERMISSION: 409,
    ErrorCodes.SETTLEMENT_FAILURE: 502,
    ErrorCodes.TOKEN_NOT_FOUND: 404,
    ErrorCodes.INVALID_INPUT: 422,
    ErrorCodes.CANONICALIZATION_ERROR: 500,
    ErrorCodes.STATE_CORRUPT: 500,
}
