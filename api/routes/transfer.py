"""
Transfer Routes

Code-authorized ownership transfer and the read-only authorization check.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from api.deps import LedgerService, get_caller, get_ledger_service
from api.models.requests import AuthorizeRequest, TransferRequest
from api.models.responses import AuthorizeResponse, TransferResponse


router = APIRouter(prefix="/tokens/{token_id}", tags=["transfer"])


@router.post("/transfer", response_model=TransferResponse)
def transfer_token(
    token_id: int,
    request: TransferRequest,
    caller: str = Depends(get_caller),
    service: LedgerService = Depends(get_ledger_service),
) -> TransferResponse:
    """
    Transfer a token on presentation of its next device code and proof.

    Settles the escrowed offer when ``to`` is the accepted counterparty.
    """
    with service.mutation() as ledger:
        settled = ledger.transfer(
            caller,
            request.from_account,
            request.to_account,
            token_id,
            request.code,
            request.proof,
        )
    return TransferResponse(
        token_id=token_id,
        owner=ledger.owner_of(token_id),
        last_processed=ledger.last_processed_of(token_id),
        settled=settled,
    )


@router.post("/authorize", response_model=AuthorizeResponse)
def authorize_code(
    token_id: int,
    request: AuthorizeRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> AuthorizeResponse:
    """Check a code without consuming it. Unknown tokens are simply unauthorized."""
    ledger = service.ledger
    authorized = ledger.is_authorized(token_id, request.code, request.proof)
    known = token_id in ledger.token_ids()
    last_processed = ledger.last_processed_of(token_id) if known else None
    return AuthorizeResponse(
        token_id=token_id,
        authorized=authorized,
        last_processed=last_processed,
    )
