"""
API Response Models

Pydantic models for API response serialization.
"""

from typing import Any

from pydantic import BaseModel, Field

from core.schemas.ledger import EscrowStatus, TokenInfo


class HealthResponse(BaseModel):
    """Response for GET /health endpoint."""

    ok: bool = True
    service: str = "ptt-ledger-api"
    version: str = "v1"
    tokens: int = Field(default=0, description="Number of minted tokens")


class MintResponse(BaseModel):
    """Response for POST /tokens."""

    ok: bool = True
    token_id: int
    owner: str


class TokenResponse(BaseModel):
    """Response for GET /tokens/{id}."""

    ok: bool = True
    token: TokenInfo


class AccountResponse(BaseModel):
    """Response for GET /accounts/{account}."""

    ok: bool = True
    account: str
    token_balance: int = Field(..., description="Number of tokens owned")
    funds: int | None = Field(
        default=None,
        description="Balance held by the in-memory payment gateway, if one is used",
    )


class OfferResponse(BaseModel):
    """Response for the offer routes."""

    ok: bool = True
    token_id: int
    transferee: str
    amount: int = Field(..., description="Pending amount, or the amount returned")
    escrow_status: EscrowStatus


class AuthorizeResponse(BaseModel):
    """Response for POST /tokens/{id}/authorize."""

    ok: bool = True
    token_id: int
    authorized: bool
    last_processed: int | None = Field(default=None, description="None for an unknown token")


class TransferResponse(BaseModel):
    """Response for POST /tokens/{id}/transfer."""

    ok: bool = True
    token_id: int
    owner: str
    last_processed: int
    settled: int | None = Field(
        default=None,
        description="Escrowed amount paid to the previous owner (None if unpaid)",
    )


class EventsResponse(BaseModel):
    """Response for GET /events."""

    ok: bool = True
    records: list[dict[str, Any]] = Field(default_factory=list)


class ErrorDetail(BaseModel):
    """Detailed error information."""

    code: str = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Standard error response."""

    ok: bool = False
    error: ErrorDetail = Field(..., description="Error details")
