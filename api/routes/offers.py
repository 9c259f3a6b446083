"""
Offer Routes

Escrow operations on a token: initialize, revert, accept, refund.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from api.deps import LedgerService, get_caller, get_ledger_service
from api.models.requests import AcceptRequest, OfferRequest, RefundRequest
from api.models.responses import OfferResponse


router = APIRouter(prefix="/tokens/{token_id}/offers", tags=["offers"])


@router.post("", response_model=OfferResponse, status_code=201)
def initialize_offer(
    token_id: int,
    request: OfferRequest,
    caller: str = Depends(get_caller),
    service: LedgerService = Depends(get_ledger_service),
) -> OfferResponse:
    """Escrow ``amount`` from the caller, held for ``transferee``."""
    transferee = request.transferee or caller
    with service.mutation() as ledger:
        pending = ledger.initialize_offer(caller, token_id, transferee, request.amount)
    return OfferResponse(
        token_id=token_id,
        transferee=transferee,
        amount=pending,
        escrow_status=ledger.escrow_status(token_id),
    )


@router.delete("", response_model=OfferResponse)
def revert_offer(
    token_id: int,
    caller: str = Depends(get_caller),
    service: LedgerService = Depends(get_ledger_service),
) -> OfferResponse:
    """Withdraw the caller's pending offer (only before acceptance)."""
    with service.mutation() as ledger:
        returned = ledger.revert_offer(caller, token_id)
    return OfferResponse(
        token_id=token_id,
        transferee=caller,
        amount=returned,
        escrow_status=ledger.escrow_status(token_id),
    )


@router.post("/accept", response_model=OfferResponse)
def accept_offer(
    token_id: int,
    request: AcceptRequest,
    caller: str = Depends(get_caller),
    service: LedgerService = Depends(get_ledger_service),
) -> OfferResponse:
    with service.mutation() as ledger:
        ledger.accept_offer(caller, request.from_account, request.to_account, token_id)
    return OfferResponse(
        token_id=token_id,
        transferee=request.to_account,
        amount=ledger.offer_amount_of(request.to_account, token_id),
        escrow_status=ledger.escrow_status(token_id),
    )


@router.post("/refund", response_model=OfferResponse)
def refund_offer(
    token_id: int,
    request: RefundRequest,
    caller: str = Depends(get_caller),
    service: LedgerService = Depends(get_ledger_service),
) -> OfferResponse:
    with service.mutation() as ledger:
        returned = ledger.refund_offer(caller, request.transferee, token_id)
    return OfferResponse(
        token_id=token_id,
        transferee=request.transferee,
        amount=returned,
        escrow_status=ledger.escrow_status(token_id),
    )


@router.get("/{account}", response_model=OfferResponse)
def get_offer(
    token_id: int,
    account: str,
    service: LedgerService = Depends(get_ledger_service),
) -> OfferResponse:
    ledger = service.ledger
    return OfferResponse(
        token_id=token_id,
        transferee=account,
        amount=ledger.offer_amount_of(account, token_id),
        escrow_status=ledger.escrow_status(token_id),
    )
