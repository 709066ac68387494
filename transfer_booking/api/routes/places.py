"""
Place & handoff endpoints
=========================

GET  /api/v1/places/search -- biased place suggestions
POST /api/v1/handoff       -- store a quick-form payload for the wizard
"""

import uuid
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request

from transfer_booking.api.dependencies import get_mailbox, get_place_search, get_registry
from transfer_booking.api.middleware import limiter
from transfer_booking.api.schemas import HandoffResponse, PlaceSearchResponse
from transfer_booking.config import settings
from transfer_booking.domain.enums import LocationField
from transfer_booking.domain.errors import HydrationFailure, LookupFailed
from transfer_booking.infrastructure.mailbox import SingleSlotMailbox
from transfer_booking.infrastructure.sessions import SessionRegistry
from transfer_booking.services.handoff import DraftHandoff
from transfer_booking.services.places import PlaceSearch

router = APIRouter(tags=["places"])


@router.get(
    "/places/search",
    response_model=PlaceSearchResponse,
    summary="Search places",
    description=(
        "Dropoff searches are biased around the pickup of ``session_id`` "
        "when it has coordinates."
    ),
)
@limiter.limit(settings.rate_limit)
async def search_places(
    request: Request,
    q: str = Query(..., max_length=200),
    field: LocationField = LocationField.PICKUP,
    session_id: Optional[str] = None,
    places: PlaceSearch = Depends(get_place_search),
    registry: SessionRegistry = Depends(get_registry),
):
    pickup = None
    if session_id:
        session = registry.get(session_id)
        if session is None:
            raise HTTPException(status_code=404, detail="Draft session not found")
        pickup = session.draft.pickup
    try:
        result = await places.search(q, field, pickup)
    except LookupFailed as exc:
        raise HTTPException(status_code=502, detail=str(exc))
    return PlaceSearchResponse.model_validate(result)


@router.post(
    "/handoff",
    status_code=201,
    response_model=HandoffResponse,
    summary="Hand a quick-form draft to the wizard",
)
@limiter.limit(settings.rate_limit)
async def create_handoff(
    request: Request,
    payload: dict[str, Any] = Body(...),
    mailbox: SingleSlotMailbox = Depends(get_mailbox),
):
    slot = uuid.uuid4().hex
    try:
        await DraftHandoff(mailbox).send_payload(slot, payload)
    except HydrationFailure as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return HandoffResponse(slot=slot)
