"""API request and response models."""

from api.models.requests import (
    AcceptRequest,
    AuthorizeRequest,
    DepositRequest,
    MintRequest,
    OfferRequest,
    RefundRequest,
    TransferRequest,
)
from api.models.responses import (
    AccountResponse,
    AuthorizeResponse,
    ErrorDetail,
    ErrorResponse,
    EventsResponse,
    HealthResponse,
    MintResponse,
    OfferResponse,
    TokenResponse,
    TransferResponse,
)

__all__ = [
    "MintRequest",
    "OfferRequest",
    "AcceptRequest",
    "RefundRequest",
    "AuthorizeRequest",
    "TransferRequest",
    "DepositRequest",
    "HealthResponse",
    "MintResponse",
    "TokenResponse",
    "AccountResponse",
    "OfferResponse",
    "AuthorizeResponse",
    "TransferResponse",
    "EventsResponse",
    "ErrorDetail",
    "ErrorResponse",
]
