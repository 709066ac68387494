"""
Distance/duration resolver.

Wraps a ``RouteProvider`` and translates its answers into the units the
draft stores (km, minutes) and its failures into the lookup taxonomy:

* ``NoRoute``                     -> ``RouteUnavailable``
* ``ProviderError``, httpx errors,
  timeouts                        -> ``LookupFailed``

Staleness (last-input-wins) is enforced by the caller, which knows the
current draft; see ``DraftStore``.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

import httpx

from transfer_booking.domain.contracts import NoRoute, ProviderError, RouteProvider
from transfer_booking.domain.entities import Location
from transfer_booking.domain.errors import LookupFailed, RouteUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RouteResult:
    distance_km: float
    duration_min: float


class DistanceResolver:
    def __init__(self, provider: RouteProvider, timeout_seconds: float | None = None):
        self.provider = provider
        self.timeout_seconds = timeout_seconds

    async def resolve(self, pickup: Location, dropoff: Location) -> RouteResult:
        origin, destination = pickup.route_key, dropoff.route_key
        if origin is None or destination is None:
            raise LookupFailed("both endpoints need a place id or coordinates")
        return await self.resolve_keys(origin, destination)

    async def resolve_keys(self, origin: str, destination: str) -> RouteResult:
        try:
            estimate = await asyncio.wait_for(
                self.provider.route(origin, destination), timeout=self.timeout_seconds
            )
        except NoRoute as exc:
            raise RouteUnavailable(str(exc) or "no route between locations") from exc
        except (ProviderError, httpx.HTTPError) as exc:
            raise LookupFailed(str(exc) or type(exc).__name__) from exc
        except asyncio.TimeoutError as exc:
            raise LookupFailed("route lookup timed out") from exc

        result = RouteResult(
            distance_km=estimate.distance_meters / 1000,
            duration_min=estimate.duration_seconds / 60,
        )
        logger.debug(
            "Route %s -> %s: %.1f km / %.0f min",
            origin,
            destination,
            result.distance_km,
            result.duration_min,
        )
        return result
