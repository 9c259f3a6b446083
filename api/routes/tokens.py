"""
Token Routes

Minting, token read models and account queries.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from api.deps import LedgerService, get_caller, get_ledger_service
from api.errors import InvalidRequestError
from api.models.requests import DepositRequest, MintRequest
from api.models.responses import AccountResponse, MintResponse, TokenResponse
from orchestrator.payments import InMemoryPaymentGateway


logger = logging.getLogger(__name__)

router = APIRouter(tags=["tokens"])


@router.post("/tokens", response_model=MintResponse, status_code=201)
def mint_token(
    request: MintRequest,
    caller: str = Depends(get_caller),
    service: LedgerService = Depends(get_ledger_service),
) -> MintResponse:
    """Mint a token owned by the caller, committing to a code batch root."""
    with service.mutation() as ledger:
        token_id = ledger.mint(caller, request.root)
    return MintResponse(token_id=token_id, owner=caller)


@router.get("/tokens/{token_id}", response_model=TokenResponse)
def get_token(
    token_id: int,
    service: LedgerService = Depends(get_ledger_service),
) -> TokenResponse:
    return TokenResponse(token=service.ledger.token_info(token_id))


@router.get("/accounts/{account}", response_model=AccountResponse)
def get_account(
    account: str,
    service: LedgerService = Depends(get_ledger_service),
) -> AccountResponse:
    ledger = service.ledger
    funds = None
    if isinstance(ledger.payments, InMemoryPaymentGateway):
        funds = ledger.payments.balance_of(account)
    return AccountResponse(
        account=account,
        token_balance=ledger.balance_of(account),
        funds=funds,
    )


@router.post("/accounts/{account}/deposit", response_model=AccountResponse)
def deposit(
    account: str,
    request: DepositRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> AccountResponse:
    """Fund an account held by the in-memory payment gateway."""
    with service.mutation() as ledger:
        if not isinstance(ledger.payments, InMemoryPaymentGateway):
            raise InvalidRequestError("Deposits need the in-memory payment gateway")
        ledger.payments.deposit(account, request.amount)
        logger.info("Deposited %d to %s", request.amount, account)
    return AccountResponse(
        account=account,
        token_balance=ledger.balance_of(account),
        funds=ledger.payments.balance_of(account),
    )
