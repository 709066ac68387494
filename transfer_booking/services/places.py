"""
Place search with regional bias.

Pickup searches are biased to a fixed regional box; dropoff searches are
biased to a radius around the pickup when the pickup has coordinates.
Zero results is a normal answer, distinct from a provider failure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

import httpx

from transfer_booking.config import Settings, settings
from transfer_booking.domain.contracts import (
    BoundingBox,
    PlaceProvider,
    PlaceSuggestion,
    ProviderError,
)
from transfer_booking.domain.distance import bounding_box_around
from transfer_booking.domain.entities import Location
from transfer_booking.domain.enums import LocationField, SearchStatus
from transfer_booking.domain.errors import LookupFailed

from .scheduler import CoalescingScheduler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlaceSearchResult:
    status: SearchStatus
    suggestions: list[PlaceSuggestion] = field(default_factory=list)


EMPTY_RESULT = PlaceSearchResult(status=SearchStatus.ZERO_RESULTS)


def pickup_bias(cfg: Settings = settings) -> BoundingBox:
    return BoundingBox(
        south=cfg.pickup_bias_south,
        west=cfg.pickup_bias_west,
        north=cfg.pickup_bias_north,
        east=cfg.pickup_bias_east,
    )


def search_bias(
    field_name: LocationField,
    pickup: Optional[Location] = None,
    cfg: Settings = settings,
) -> BoundingBox:
    """Bias area for a search on *field_name*."""
    if (
        LocationField(field_name) == LocationField.DROPOFF
        and pickup is not None
        and pickup.lat is not None
        and pickup.lng is not None
    ):
        return bounding_box_around(pickup.lat, pickup.lng, cfg.dropoff_bias_radius_km)
    return pickup_bias(cfg)


class PlaceSearch:
    def __init__(
        self,
        provider: PlaceProvider,
        scheduler: Optional[CoalescingScheduler] = None,
        cfg: Settings = settings,
    ):
        self.provider = provider
        self.cfg = cfg
        self.scheduler = scheduler or CoalescingScheduler(cfg.search_debounce_seconds)

    async def search(
        self,
        query: str,
        field_name: LocationField,
        pickup: Optional[Location] = None,
    ) -> PlaceSearchResult:
        query = query.strip()
        if len(query) < self.cfg.search_min_chars:
            return EMPTY_RESULT

        bias = search_bias(field_name, pickup, self.cfg)
        try:
            suggestions = await self.provider.suggest(query, bias)
        except (ProviderError, httpx.HTTPError) as exc:
            logger.warning("Place search for %r failed: %s", query, exc)
            raise LookupFailed(str(exc) or type(exc).__name__) from exc

        if not suggestions:
            return EMPTY_RESULT
        return PlaceSearchResult(status=SearchStatus.OK, suggestions=list(suggestions))

    def search_debounced(
        self,
        query: str,
        field_name: LocationField,
        on_result: Callable[[PlaceSearchResult], None],
        pickup: Optional[Location] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
    ):
        """Coalesce keystrokes per field; only the latest query reports."""
        return self.scheduler.submit(
            ("search", LocationField(field_name)),
            lambda: self.search(query, field_name, pickup),
            on_result,
            on_error,
        )

    async def details(self, place_id: str) -> Location:
        try:
            return await self.provider.place_details(place_id)
        except (ProviderError, httpx.HTTPError) as exc:
            logger.warning("Place details for %s failed: %s", place_id, exc)
            raise LookupFailed(str(exc) or type(exc).__name__) from exc
