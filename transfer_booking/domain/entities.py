"""
Domain value objects and the booking draft aggregate.

Every type here is a frozen dataclass.  The draft is never edited in
place: the store builds a new ``BookingDraft`` per patch and swaps it in,
so a reader always sees one consistent snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Optional

from .enums import LocationCategory, ServiceCategory, TransferType

_AIRPORT_HINTS = ("airport", "bcn", "el prat")


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Location:
    address: str = ""
    place_id: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    category: LocationCategory = LocationCategory.ADDRESS

    @property
    def route_key(self) -> Optional[str]:
        """Identifier the route provider can resolve, or None for free text."""
        if self.place_id:
            return f"place_id:{self.place_id}"
        if self.lat is not None and self.lng is not None:
            return f"{self.lat},{self.lng}"
        return None

    @property
    def is_resolved(self) -> bool:
        return self.route_key is not None

    @property
    def is_airport(self) -> bool:
        if self.category == LocationCategory.AIRPORT:
            return True
        addr = self.address.lower()
        return any(hint in addr for hint in _AIRPORT_HINTS)


@dataclass(frozen=True)
class Schedule:
    date: date
    time: time
    return_date: Optional[date] = None
    return_time: Optional[time] = None

    @property
    def pickup_at(self) -> datetime:
        return datetime.combine(self.date, self.time)

    @property
    def return_at(self) -> Optional[datetime]:
        if self.return_date is None or self.return_time is None:
            return None
        return datetime.combine(self.return_date, self.return_time)


@dataclass(frozen=True)
class Passengers:
    count: int = 1
    luggage: int = 1
    child_seats: int = 0


@dataclass(frozen=True)
class ContactDetails:
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    country_code: str = "+34"
    flight_number: Optional[str] = None
    special_requests: Optional[str] = None


@dataclass(frozen=True)
class VehicleCapacity:
    passengers: int
    luggage: int


@dataclass(frozen=True)
class Vehicle:
    id: str
    name: str
    category: str
    capacity: VehicleCapacity
    base_price: float
    price_per_km: float
    price_per_hour: float
    features: tuple[str, ...] = ()

    def fits(self, passenger_count: int) -> bool:
        return self.capacity.passengers >= passenger_count


@dataclass(frozen=True)
class PriceBreakdown:
    base_price: float
    distance_charge: float
    time_charge: float
    child_seats_charge: float
    airport_fee: float
    subtotal: float
    tax: float
    total: float
    currency: str = "EUR"


# ── Aggregate ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class BookingDraft:
    schedule: Schedule
    service_category: ServiceCategory = ServiceCategory.DISTANCE
    transfer_type: Optional[TransferType] = TransferType.ONE_WAY
    pickup: Location = field(default_factory=Location)
    dropoff: Optional[Location] = field(default_factory=Location)
    hourly_duration_hours: Optional[int] = None
    passengers: Passengers = field(default_factory=Passengers)
    resolved_distance_km: Optional[float] = None
    resolved_duration_min: Optional[float] = None
    selected_vehicle: Optional[Vehicle] = None
    pricing: Optional[PriceBreakdown] = None
    contact: Optional[ContactDetails] = None

    @property
    def is_hourly(self) -> bool:
        return self.service_category == ServiceCategory.HOURLY

    @property
    def is_return(self) -> bool:
        return (
            self.service_category == ServiceCategory.DISTANCE
            and self.transfer_type == TransferType.RETURN
        )

    @property
    def route_inputs(self) -> Optional[tuple[str, str]]:
        """The (pickup, dropoff) identifiers a route lookup depends on.

        None when no lookup applies: hourly bookings, unresolved
        endpoints, or both endpoints naming the same place.
        """
        if self.service_category != ServiceCategory.DISTANCE or self.dropoff is None:
            return None
        origin = self.pickup.route_key
        destination = self.dropoff.route_key
        if origin is None or destination is None or origin == destination:
            return None
        return origin, destination
