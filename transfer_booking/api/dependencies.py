"""FastAPI dependency injection helpers."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, HTTPException

from transfer_booking.config import settings
from transfer_booking.infrastructure.mailbox import RedisMailbox, SingleSlotMailbox
from transfer_booking.infrastructure.maps_client import GoogleMapsClient
from transfer_booking.infrastructure.redis_client import get_redis
from transfer_booking.infrastructure.sessions import SessionRegistry
from transfer_booking.services.places import PlaceSearch
from transfer_booking.services.resolver import DistanceResolver
from transfer_booking.services.session import BookingSession
from transfer_booking.services.store import DraftStore

logger = logging.getLogger(__name__)

_registry = SessionRegistry(idle_ttl_seconds=settings.session_idle_ttl_seconds)
_maps: Optional[GoogleMapsClient] = None


def get_registry() -> SessionRegistry:
    return _registry


async def get_mailbox() -> SingleSlotMailbox:
    return RedisMailbox(get_redis())


def get_maps_client() -> GoogleMapsClient:
    global _maps
    if _maps is None:
        _maps = GoogleMapsClient()
    return _maps


async def close_maps_client() -> None:
    global _maps
    if _maps is not None:
        await _maps.aclose()
        _maps = None


def get_place_search(maps=Depends(get_maps_client)) -> PlaceSearch:
    return PlaceSearch(maps)


def new_session(maps=Depends(get_maps_client)) -> BookingSession:
    """A fresh, unregistered session wired to the maps provider."""
    store = DraftStore(
        resolver=DistanceResolver(maps, timeout_seconds=settings.maps_timeout_seconds)
    )
    return BookingSession(store, places=PlaceSearch(maps))


def get_session(
    session_id: str, registry: SessionRegistry = Depends(get_registry)
) -> BookingSession:
    session = registry.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Draft session not found")
    return session


async def _log_submission(draft) -> None:
    logger.info(
        "Booking submitted: %s %s, vehicle %s, total %s",
        draft.service_category.value,
        draft.pickup.address,
        draft.selected_vehicle.id if draft.selected_vehicle else None,
        draft.pricing.total if draft.pricing else None,
    )


def get_submitter():
    """Where completed drafts go; the booking backend overrides this."""
    return _log_submission
