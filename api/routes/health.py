"""
Health Check Route

Simple health check endpoint for liveness checks.
"""

from fastapi import APIRouter, Depends

from api.deps import LedgerService, get_ledger_service
from api.models.responses import HealthResponse


router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(service: LedgerService = Depends(get_ledger_service)) -> HealthResponse:
    """
    Health check endpoint.

    Returns service status and the number of minted tokens.
    """
    return HealthResponse(tokens=service.ledger.total_supply())


@router.get("/", response_model=HealthResponse)
async def root(service: LedgerService = Depends(get_ledger_service)) -> HealthResponse:
    """
    Root endpoint - same as health check.
    """
    return HealthResponse(tokens=service.ledger.total_supply())
