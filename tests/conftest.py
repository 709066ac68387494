"""
Shared test fixtures.

Collaborators (route, place, geocoding providers) are in-process fakes so
tests run without network access or Redis.  Fakes can *hold* a call on an
``asyncio.Event`` to make in-flight ordering explicit in race tests.
"""

import asyncio
from datetime import datetime
from typing import Optional

import pytest

from transfer_booking.config import Settings
from transfer_booking.domain.contracts import (
    BoundingBox,
    PlaceSuggestion,
    Position,
    RouteEstimate,
)
from transfer_booking.domain.entities import ContactDetails, Location
from transfer_booking.domain.enums import LocationCategory
from transfer_booking.services.resolver import DistanceResolver
from transfer_booking.services.store import DraftStore

# Fixed local wall clock; earliest bookable pickup is 14:00 the same day.
NOW = datetime(2025, 6, 10, 12, 0)

AIRPORT = Location(
    address="Barcelona Airport (BCN), El Prat de Llobregat",
    place_id="bcn-t1",
    lat=41.2974,
    lng=2.0833,
    category=LocationCategory.AIRPORT,
)
HOTEL = Location(
    address="Hotel Arts Barcelona",
    place_id="hotel-arts",
    lat=41.3868,
    lng=2.1963,
    category=LocationCategory.HOTEL,
)
SAGRADA = Location(
    address="Sagrada Familia, Barcelona",
    place_id="sagrada",
    lat=41.4036,
    lng=2.1744,
)
PORT = Location(
    address="Port de Barcelona Cruise Terminal",
    place_id="port",
    lat=41.3712,
    lng=2.1830,
    category=LocationCategory.CRUISE,
)

CONTACT = ContactDetails(
    first_name="Ana",
    last_name="Puig",
    email="ana.puig@example.com",
    phone="612 345 678",
    flight_number="VY1234",
)


def route_keys(a: Location, b: Location) -> tuple[str, str]:
    return a.route_key, b.route_key


class FakeRouteProvider:
    """Answers from a table; unknown pairs get ``default``."""

    def __init__(self, routes: Optional[dict] = None, default=RouteEstimate(15_000, 1_200)):
        self.routes = routes or {}
        self.default = default
        self.calls: list[tuple[str, str]] = []
        self.gates: dict[tuple[str, str], asyncio.Event] = {}

    def hold(self, origin: str, destination: str) -> asyncio.Event:
        """Block lookups of this pair until the returned event is set."""
        event = asyncio.Event()
        self.gates[(origin, destination)] = event
        return event

    async def route(self, origin: str, destination: str) -> RouteEstimate:
        self.calls.append((origin, destination))
        gate = self.gates.get((origin, destination))
        if gate is not None:
            await gate.wait()
        answer = self.routes.get((origin, destination), self.default)
        if isinstance(answer, Exception):
            raise answer
        return answer


class FakePlaceProvider:
    def __init__(
        self,
        suggestions: Optional[dict[str, list[PlaceSuggestion]]] = None,
        details: Optional[dict[str, Location]] = None,
    ):
        self.suggestions = suggestions or {}
        self.details = details or {}
        self.error: Optional[Exception] = None
        self.calls: list[tuple[str, BoundingBox]] = []
        self.detail_gates: dict[str, asyncio.Event] = {}

    async def suggest(self, query: str, bias: BoundingBox) -> list[PlaceSuggestion]:
        self.calls.append((query, bias))
        if self.error is not None:
            raise self.error
        return self.suggestions.get(query, [])

    async def place_details(self, place_id: str) -> Location:
        gate = self.detail_gates.get(place_id)
        if gate is not None:
            await gate.wait()
        if self.error is not None:
            raise self.error
        return self.details[place_id]


class FakePositionSource:
    def __init__(self, position: Optional[Position] = None, error: Optional[Exception] = None, delay: float = 0.0):
        self.position = position
        self.error = error
        self.delay = delay

    async def current_position(self) -> Position:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.position


class FakeGeocoder:
    def __init__(self, location: Optional[Location] = None, error: Optional[Exception] = None):
        self.location = location
        self.error = error

    async def reverse_geocode(self, lat: float, lng: float) -> Location:
        if self.error is not None:
            raise self.error
        return self.location


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest.fixture
def cfg() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def route_provider() -> FakeRouteProvider:
    return FakeRouteProvider()


@pytest.fixture
def make_store(cfg, clock):
    def _make(provider: Optional[FakeRouteProvider] = None, **kwargs) -> DraftStore:
        resolver = DistanceResolver(provider) if provider is not None else None
        return DraftStore(resolver=resolver, clock=clock, cfg=cfg, **kwargs)

    return _make
