"""
Collaborator contracts.

The core depends only on the shapes declared here, never on a specific
provider's request/response structures.  ``infrastructure.maps_client``
is one implementation; tests use in-process fakes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from .entities import Location
from .enums import LocationCategory


# ── Typed provider failures ───────────────────────────────────────────


class NoRoute(Exception):
    """Provider answered, but found no route between the identifiers."""


class ProviderError(Exception):
    """Provider could not answer (transport, quota, bad status)."""


# ── Shapes ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class RouteEstimate:
    distance_meters: float
    duration_seconds: float


@dataclass(frozen=True)
class BoundingBox:
    south: float
    west: float
    north: float
    east: float


@dataclass(frozen=True)
class PlaceSuggestion:
    id: str
    label: str
    category: LocationCategory = LocationCategory.ADDRESS


@dataclass(frozen=True)
class Position:
    lat: float
    lng: float
    accuracy_m: float | None = None


# ── Protocols ─────────────────────────────────────────────────────────


class RouteProvider(Protocol):
    async def route(self, origin: str, destination: str) -> RouteEstimate: ...


class PlaceProvider(Protocol):
    async def suggest(
        self, query: str, bias: BoundingBox
    ) -> list[PlaceSuggestion]: ...

    async def place_details(self, place_id: str) -> Location: ...


class ReverseGeocoder(Protocol):
    async def reverse_geocode(self, lat: float, lng: float) -> Location: ...


class PositionSource(Protocol):
    async def current_position(self) -> Position: ...
