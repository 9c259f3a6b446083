"""
API Request Models

Pydantic models for API request validation. The calling account is never
part of a body; it comes from the ``X-Account`` header.
"""

from pydantic import BaseModel, ConfigDict, Field


class MintRequest(BaseModel):
    """Request body for POST /tokens."""

    root: str = Field(
        ...,
        min_length=66,
        max_length=66,
        description="Committed Merkle root of the device's code batch (0x-prefixed)",
    )


class OfferRequest(BaseModel):
    """Request body for POST /tokens/{id}/offers."""

    amount: int = Field(..., ge=0, description="Value attached to the offer")
    transferee: str | None = Field(
        default=None,
        min_length=1,
        description="Account the offer is held for (defaults to the caller)",
    )


class AcceptRequest(BaseModel):
    """Request body for POST /tokens/{id}/offers/accept."""

    model_config = ConfigDict(populate_by_name=True)

    from_account: str = Field(..., alias="from", min_length=1, description="Current owner")
    to_account: str = Field(..., alias="to", min_length=1, description="Counterparty to accept")


class RefundRequest(BaseModel):
    """Request body for POST /tokens/{id}/offers/refund."""

    transferee: str = Field(..., min_length=1, description="Accepted counterparty to refund")


class AuthorizeRequest(BaseModel):
    """Request body for POST /tokens/{id}/authorize."""

    code: str = Field(..., description="Device code (base-10 digits)")
    proof: list[str] = Field(
        default_factory=list,
        description="Sibling hashes from leaf to root (0x-prefixed)",
    )


class TransferRequest(AuthorizeRequest):
    """Request body for POST /tokens/{id}/transfer."""

    model_config = ConfigDict(populate_by_name=True)

    from_account: str = Field(..., alias="from", min_length=1, description="Current owner")
    to_account: str = Field(..., alias="to", min_length=1, description="New owner")


class DepositRequest(BaseModel):
    """Request body for POST /accounts/{account}/deposit."""

    amount: int = Field(..., gt=0)
