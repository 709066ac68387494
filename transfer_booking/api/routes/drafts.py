"""
Draft session endpoints
=======================

POST /api/v1/drafts                         -- start a session (``?handoff=<slot>``)
GET  /api/v1/drafts/{id}                    -- current draft, step and gate
PATCH /api/v1/drafts/{id}                   -- partial update
POST /api/v1/drafts/{id}/category           -- switch distance / hourly
POST /api/v1/drafts/{id}/transfer-type      -- switch one-way / return
GET  /api/v1/drafts/{id}/vehicles           -- vehicles fitting the passengers
PUT  /api/v1/drafts/{id}/vehicle            -- select a vehicle
PUT  /api/v1/drafts/{id}/places/{field}     -- commit a place suggestion
POST /api/v1/drafts/{id}/route/retry        -- re-run a failed route lookup
POST /api/v1/drafts/{id}/steps/next         -- advance through the gate
POST /api/v1/drafts/{id}/steps/previous     -- go back one step
POST /api/v1/drafts/{id}/steps              -- jump to a step
POST /api/v1/drafts/{id}/submit             -- hand a complete draft over, end session
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request

from transfer_booking.api.dependencies import (
    get_mailbox,
    get_registry,
    get_session,
    get_submitter,
    new_session,
)
from transfer_booking.api.middleware import limiter
from transfer_booking.api.schemas import (
    CategoryRequest,
    DraftPatchRequest,
    DraftResponse,
    PlaceSelectRequest,
    StepRequest,
    SubmitResponse,
    TransferTypeRequest,
    VehicleOut,
    VehicleSelectRequest,
)
from transfer_booking.config import settings
from transfer_booking.domain.enums import LocationField
from transfer_booking.domain.wizard import InvalidStepTransition
from transfer_booking.infrastructure.mailbox import SingleSlotMailbox
from transfer_booking.infrastructure.sessions import SessionRegistry
from transfer_booking.services.handoff import DraftHandoff
from transfer_booking.services.session import BookingSession

router = APIRouter(prefix="/drafts", tags=["drafts"])


@router.post(
    "",
    status_code=201,
    response_model=DraftResponse,
    summary="Start a booking session",
    description=(
        "Starts from defaults, or from a landing-page handoff when "
        "``handoff`` names a mailbox slot.  The slot is consumed; an "
        "unusable payload falls back to defaults."
    ),
)
@limiter.limit(settings.rate_limit)
async def create_draft(
    request: Request,
    handoff: Optional[str] = None,
    session: BookingSession = Depends(new_session),
    registry: SessionRegistry = Depends(get_registry),
    mailbox: SingleSlotMailbox = Depends(get_mailbox),
):
    if handoff:
        hydration = await DraftHandoff(mailbox).receive(handoff)
        if hydration is not None:
            session.hydrate(hydration)
    registry.add(session)
    return DraftResponse.from_session(session)


@router.get("/{session_id}", response_model=DraftResponse, summary="Get a draft")
@limiter.limit(settings.rate_limit)
async def get_draft(request: Request, session: BookingSession = Depends(get_session)):
    return DraftResponse.from_session(session)


@router.patch("/{session_id}", response_model=DraftResponse, summary="Update a draft")
@limiter.limit(settings.rate_limit)
async def patch_draft(
    request: Request,
    body: DraftPatchRequest,
    session: BookingSession = Depends(get_session),
):
    session.store.apply_patch(body.to_patch())
    return DraftResponse.from_session(session)


@router.post(
    "/{session_id}/category",
    response_model=DraftResponse,
    summary="Switch between distance and hourly service",
)
@limiter.limit(settings.rate_limit)
async def switch_category(
    request: Request,
    body: CategoryRequest,
    session: BookingSession = Depends(get_session),
):
    session.store.switch_category(body.service_category)
    return DraftResponse.from_session(session)


@router.post(
    "/{session_id}/transfer-type",
    response_model=DraftResponse,
    summary="Switch between one-way and return",
)
@limiter.limit(settings.rate_limit)
async def switch_transfer_type(
    request: Request,
    body: TransferTypeRequest,
    session: BookingSession = Depends(get_session),
):
    session.store.switch_transfer_type(body.transfer_type)
    return DraftResponse.from_session(session)


@router.get(
    "/{session_id}/vehicles",
    response_model=list[VehicleOut],
    summary="Vehicles that seat the draft's passengers, in catalog order",
)
@limiter.limit(settings.rate_limit)
async def list_vehicles(request: Request, session: BookingSession = Depends(get_session)):
    return [VehicleOut.model_validate(v) for v in session.store.available_vehicles()]


@router.put(
    "/{session_id}/vehicle",
    response_model=DraftResponse,
    summary="Select a vehicle",
    responses={422: {"description": "Unknown vehicle, or too few seats."}},
)
@limiter.limit(settings.rate_limit)
async def select_vehicle(
    request: Request,
    body: VehicleSelectRequest,
    session: BookingSession = Depends(get_session),
):
    if not session.store.select_vehicle(body.vehicle_id):
        raise HTTPException(
            status_code=422,
            detail=f"Vehicle {body.vehicle_id} is unknown or too small",
        )
    return DraftResponse.from_session(session)


@router.put(
    "/{session_id}/places/{field_name}",
    response_model=DraftResponse,
    summary="Commit a place suggestion as pickup or dropoff",
)
@limiter.limit(settings.rate_limit)
async def select_place(
    request: Request,
    field_name: LocationField,
    body: PlaceSelectRequest,
    session: BookingSession = Depends(get_session),
):
    if field_name == LocationField.DROPOFF and session.draft.is_hourly:
        raise HTTPException(status_code=409, detail="Hourly bookings have no dropoff")
    await session.select_place(field_name, body.to_suggestion())
    return DraftResponse.from_session(session)


@router.post(
    "/{session_id}/route/retry",
    response_model=DraftResponse,
    summary="Retry the route lookup",
)
@limiter.limit(settings.rate_limit)
async def retry_route(request: Request, session: BookingSession = Depends(get_session)):
    if not session.store.retry_route():
        raise HTTPException(status_code=409, detail="Both endpoints must be resolved")
    return DraftResponse.from_session(session)


@router.post(
    "/{session_id}/steps/next",
    response_model=DraftResponse,
    summary="Advance to the next step",
    description="Moves only when the current step's gate is open; see ``gate_failures``.",
)
@limiter.limit(settings.rate_limit)
async def next_step(request: Request, session: BookingSession = Depends(get_session)):
    session.advance()
    return DraftResponse.from_session(session)


@router.post(
    "/{session_id}/steps/previous",
    response_model=DraftResponse,
    summary="Go back one step",
)
@limiter.limit(settings.rate_limit)
async def previous_step(request: Request, session: BookingSession = Depends(get_session)):
    session.back()
    return DraftResponse.from_session(session)


@router.post(
    "/{session_id}/steps",
    response_model=DraftResponse,
    summary="Jump to a step",
    responses={409: {"description": "Target skips ahead of the next step."}},
)
@limiter.limit(settings.rate_limit)
async def go_to_step(
    request: Request,
    body: StepRequest,
    session: BookingSession = Depends(get_session),
):
    try:
        session.go_to(body.step)
    except InvalidStepTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return DraftResponse.from_session(session)


@router.post(
    "/{session_id}/submit",
    response_model=SubmitResponse,
    summary="Submit a complete draft",
    responses={409: {"description": "Not on the summary step, or gates closed."}},
)
@limiter.limit(settings.rate_limit)
async def submit_draft(
    request: Request,
    session: BookingSession = Depends(get_session),
    submitter=Depends(get_submitter),
    registry: SessionRegistry = Depends(get_registry),
):
    if not await session.submit(submitter):
        raise HTTPException(
            status_code=409,
            detail="Draft is not complete: " + "; ".join(session.gate_failures or ["not on summary step"]),
        )
    registry.remove(session.id)
    return SubmitResponse(submitted=True, id=session.id)
