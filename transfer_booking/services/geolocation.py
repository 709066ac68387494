"""Current-position lookup with reverse geocoding."""

from __future__ import annotations

import asyncio
import logging

import httpx

from transfer_booking.config import settings
from transfer_booking.domain.contracts import (
    PositionSource,
    ProviderError,
    ReverseGeocoder,
)
from transfer_booking.domain.entities import Location
from transfer_booking.domain.errors import LookupFailed

logger = logging.getLogger(__name__)


def coordinate_location(lat: float, lng: float) -> Location:
    """A location labelled with its own coordinates."""
    return Location(address=f"{lat:.6f}, {lng:.6f}", lat=lat, lng=lng)


async def locate(
    position_source: PositionSource,
    geocoder: ReverseGeocoder,
    timeout: float = settings.geolocation_timeout_seconds,
) -> Location:
    """Resolve the visitor's position into a pickup ``Location``.

    Raises ``LookupFailed`` when no position is available in *timeout*
    seconds or the source refuses (permission denied).  A reverse-geocoding
    failure is not fatal: the coordinates are used as the address.
    """
    try:
        position = await asyncio.wait_for(
            position_source.current_position(), timeout=timeout
        )
    except asyncio.TimeoutError as exc:
        raise LookupFailed("position lookup timed out") from exc
    except (PermissionError, ProviderError) as exc:
        raise LookupFailed(str(exc) or "position unavailable") from exc

    try:
        location = await geocoder.reverse_geocode(position.lat, position.lng)
    except (ProviderError, httpx.HTTPError) as exc:
        logger.warning(
            "Reverse geocoding %.6f,%.6f failed: %s", position.lat, position.lng, exc
        )
        return coordinate_location(position.lat, position.lng)

    if location.lat is None or location.lng is None:
        location = Location(
            address=location.address or coordinate_location(position.lat, position.lng).address,
            place_id=location.place_id,
            lat=position.lat,
            lng=position.lng,
            category=location.category,
        )
    return location
