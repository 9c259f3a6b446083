"""
Events Route

The published record stream (ownership changes and escrow activity).
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.deps import LedgerService, get_ledger_service
from api.models.responses import EventsResponse


router = APIRouter(tags=["events"])


@router.get("/events", response_model=EventsResponse)
def list_events(
    kind: Optional[str] = Query(default=None, description="Record kind, e.g. Transfer"),
    token_id: Optional[int] = Query(default=None, ge=1),
    service: LedgerService = Depends(get_ledger_service),
) -> EventsResponse:
    records = service.ledger.records(kind=kind, token_id=token_id)
    return EventsResponse(
        records=[r.model_dump(mode="json", exclude_none=True) for r in records],
    )
