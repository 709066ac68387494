"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from transfer_booking.domain.contracts import PlaceSuggestion
from transfer_booking.domain.entities import Location
from transfer_booking.domain.enums import (
    LocationCategory,
    RouteStatus,
    SearchStatus,
    ServiceCategory,
    TransferType,
    WizardStep,
)
from transfer_booking.services.session import BookingSession


# ── Requests ──────────────────────────────────────────────────────────


class LocationIn(BaseModel):
    address: str = ""
    place_id: Optional[str] = None
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lng: Optional[float] = Field(None, ge=-180, le=180)
    category: LocationCategory = LocationCategory.ADDRESS

    def to_location(self) -> Location:
        return Location(**self.model_dump())


class ScheduleIn(BaseModel):
    date: Optional[datetime.date] = None
    time: Optional[datetime.time] = None
    return_date: Optional[datetime.date] = None
    return_time: Optional[datetime.time] = None


class PassengersIn(BaseModel):
    count: Optional[int] = None
    luggage: Optional[int] = None
    child_seats: Optional[int] = None


class ContactIn(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    country_code: Optional[str] = None
    flight_number: Optional[str] = None
    special_requests: Optional[str] = None


class DraftPatchRequest(BaseModel):
    """Partial draft update.  Omitted fields are untouched; ``null`` clears."""

    pickup: Optional[LocationIn] = None
    dropoff: Optional[LocationIn] = None
    schedule: Optional[ScheduleIn] = None
    passengers: Optional[PassengersIn] = None
    contact: Optional[ContactIn] = None
    hourly_duration_hours: Optional[int] = None

    model_config = {"extra": "forbid"}

    def to_patch(self) -> dict[str, Any]:
        patch: dict[str, Any] = {}
        for key in self.model_fields_set:
            value = getattr(self, key)
            if isinstance(value, LocationIn):
                patch[key] = value.to_location()
            elif isinstance(value, BaseModel):
                # Nested objects merge key-wise: only what the client sent.
                patch[key] = value.model_dump(exclude_unset=True)
            else:
                patch[key] = value
        return patch


class CategoryRequest(BaseModel):
    service_category: ServiceCategory


class TransferTypeRequest(BaseModel):
    transfer_type: TransferType


class VehicleSelectRequest(BaseModel):
    vehicle_id: str


class StepRequest(BaseModel):
    step: WizardStep


class PlaceSelectRequest(BaseModel):
    id: str
    label: str
    category: LocationCategory = LocationCategory.ADDRESS

    def to_suggestion(self) -> PlaceSuggestion:
        return PlaceSuggestion(id=self.id, label=self.label, category=self.category)


# ── Responses ─────────────────────────────────────────────────────────


class LocationOut(BaseModel):
    address: str
    place_id: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    category: LocationCategory

    model_config = {"from_attributes": True}


class ScheduleOut(BaseModel):
    date: datetime.date
    time: datetime.time
    return_date: Optional[datetime.date] = None
    return_time: Optional[datetime.time] = None

    model_config = {"from_attributes": True}


class PassengersOut(BaseModel):
    count: int
    luggage: int
    child_seats: int

    model_config = {"from_attributes": True}


class CapacityOut(BaseModel):
    passengers: int
    luggage: int

    model_config = {"from_attributes": True}


class VehicleOut(BaseModel):
    id: str
    name: str
    category: str
    capacity: CapacityOut
    base_price: float
    price_per_km: float
    price_per_hour: float
    features: list[str] = []

    model_config = {"from_attributes": True}


class PriceOut(BaseModel):
    base_price: float
    distance_charge: float
    time_charge: float
    child_seats_charge: float
    airport_fee: float
    subtotal: float
    tax: float
    total: float
    currency: str

    model_config = {"from_attributes": True}


class ContactOut(BaseModel):
    first_name: str
    last_name: str
    email: str
    phone: str
    country_code: str
    flight_number: Optional[str] = None
    special_requests: Optional[str] = None

    model_config = {"from_attributes": True}


class DraftOut(BaseModel):
    service_category: ServiceCategory
    transfer_type: Optional[TransferType] = None
    pickup: LocationOut
    dropoff: Optional[LocationOut] = None
    schedule: ScheduleOut
    hourly_duration_hours: Optional[int] = None
    passengers: PassengersOut
    resolved_distance_km: Optional[float] = None
    resolved_duration_min: Optional[float] = None
    selected_vehicle: Optional[VehicleOut] = None
    pricing: Optional[PriceOut] = None
    contact: Optional[ContactOut] = None

    model_config = {"from_attributes": True}


class DraftResponse(BaseModel):
    id: str
    step: WizardStep
    can_proceed: bool
    gate_failures: list[str] = []
    route_status: RouteStatus
    route_error: Optional[str] = None
    draft: DraftOut

    @classmethod
    def from_session(cls, session: BookingSession) -> "DraftResponse":
        return cls(
            id=session.id,
            step=session.step,
            can_proceed=session.can_proceed,
            gate_failures=session.gate_failures,
            route_status=session.store.route_status,
            route_error=session.store.route_error,
            draft=DraftOut.model_validate(session.draft),
        )


class SuggestionOut(BaseModel):
    id: str
    label: str
    category: LocationCategory

    model_config = {"from_attributes": True}


class PlaceSearchResponse(BaseModel):
    status: SearchStatus
    suggestions: list[SuggestionOut] = []

    model_config = {"from_attributes": True}


class HandoffResponse(BaseModel):
    slot: str


class SubmitResponse(BaseModel):
    submitted: bool
    id: str


class HealthResponse(BaseModel):
    status: str = "ok"
    sessions: int = 0


class ErrorResponse(BaseModel):
    detail: str
