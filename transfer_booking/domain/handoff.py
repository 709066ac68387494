"""
Draft handoff payloads.

A landing-page quick form serializes its draft into a single-read slot;
the wizard reads it once and turns it into one bundled patch.  Two JSON
shapes are accepted:

* current -- carries ``version: "2.0"``, ``pickupDateTime`` and an optional
  ``returnDateTime``, service type ``distance`` | ``hourly``;
* legacy  -- no ``version``, a BookingData-like ``dateTime`` object and the
  historic service types ``airport`` / ``cityToCity`` (both distance).

Anything else raises ``HydrationFailure``.
"""

from __future__ import annotations

import datetime
import json
from dataclasses import dataclass
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ValidationError

from .entities import BookingDraft, Location
from .enums import (
    WIZARD_ORDER,
    LocationCategory,
    ServiceCategory,
    TransferType,
    WizardStep,
)
from .errors import HydrationFailure

CURRENT_VERSION = "2.0"

LEGACY_SERVICE_TYPES: dict[str, ServiceCategory] = {
    "airport": ServiceCategory.DISTANCE,
    "cityToCity": ServiceCategory.DISTANCE,
    "distance": ServiceCategory.DISTANCE,
    "hourly": ServiceCategory.HOURLY,
}

_CATEGORIES = {c.value for c in LocationCategory}


# ── Payload schemas ───────────────────────────────────────────────────


class LocationPayload(BaseModel):
    address: str = ""
    placeId: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    type: Optional[str] = None

    model_config = {"extra": "ignore"}

    def to_location(self) -> Location:
        category = (
            LocationCategory(self.type)
            if self.type in _CATEGORIES
            else LocationCategory.ADDRESS
        )
        return Location(
            address=self.address,
            place_id=self.placeId or None,
            lat=self.lat,
            lng=self.lng,
            category=category,
        )

    @classmethod
    def from_location(cls, location: Location) -> "LocationPayload":
        return cls(
            address=location.address,
            placeId=location.place_id,
            lat=location.lat,
            lng=location.lng,
            type=location.category.value,
        )


class DateTimePayload(BaseModel):
    date: datetime.date
    time: datetime.time


class PassengersPayload(BaseModel):
    count: Optional[int] = None
    luggage: Optional[int] = None
    childSeats: Optional[int] = None

    def to_patch(self) -> dict[str, int]:
        values = {
            "count": self.count,
            "luggage": self.luggage,
            "child_seats": self.childSeats,
        }
        return {k: v for k, v in values.items() if v is not None}


class HandoffPayload(BaseModel):
    """Current quick-form shape."""

    version: Literal["2.0"]
    serviceType: Literal["distance", "hourly"]
    transferType: Literal["oneWay", "return"] = "oneWay"
    pickup: LocationPayload
    dropoff: Optional[LocationPayload] = None
    pickupDateTime: DateTimePayload
    returnDateTime: Optional[DateTimePayload] = None
    passengers: Optional[PassengersPayload] = None
    hourlyDuration: Optional[int] = None
    step: Optional[int] = None
    timestamp: Optional[int] = None
    fromHomepage: Optional[bool] = None


class LegacyDateTimePayload(BaseModel):
    date: Optional[datetime.date] = None
    time: Optional[datetime.time] = None
    returnDate: Optional[datetime.date] = None
    returnTime: Optional[datetime.time] = None


class LegacyHandoffPayload(BaseModel):
    """BookingData-like shape written by older landing pages."""

    serviceType: Optional[Literal["airport", "cityToCity", "distance", "hourly"]] = None
    serviceCategory: Optional[Literal["distance", "hourly"]] = None
    transferType: Optional[str] = None
    pickup: Optional[LocationPayload] = None
    dropoff: Optional[LocationPayload] = None
    dateTime: Optional[LegacyDateTimePayload] = None
    passengers: Optional[PassengersPayload] = None
    hourlyDuration: Optional[float] = None


AnyPayload = Union[HandoffPayload, LegacyHandoffPayload]


@dataclass(frozen=True)
class Hydration:
    patch: dict[str, Any]
    step: Optional[WizardStep] = None


# ── Parsing ───────────────────────────────────────────────────────────


def parse_payload(raw: Union[str, bytes, dict]) -> AnyPayload:
    """Detect the payload shape and validate it."""
    if isinstance(raw, (str, bytes)):
        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise HydrationFailure(f"payload is not JSON: {exc}") from exc
    else:
        data = raw
    if not isinstance(data, dict):
        raise HydrationFailure("payload is not a JSON object")

    try:
        if "version" in data:
            return HandoffPayload.model_validate(data)
        return LegacyHandoffPayload.model_validate(data)
    except ValidationError as exc:
        raise HydrationFailure(str(exc)) from exc


def service_category_of(payload: AnyPayload) -> ServiceCategory:
    if isinstance(payload, HandoffPayload):
        return ServiceCategory(payload.serviceType)
    if payload.serviceType:
        return LEGACY_SERVICE_TYPES[payload.serviceType]
    if payload.serviceCategory:
        return ServiceCategory(payload.serviceCategory)
    return ServiceCategory.DISTANCE


def requested_step(payload: AnyPayload) -> Optional[WizardStep]:
    """1-based ``step`` hint -> wizard step (current shape only)."""
    if not isinstance(payload, HandoffPayload) or payload.step is None:
        return None
    index = min(max(payload.step, 1), len(WIZARD_ORDER)) - 1
    return WIZARD_ORDER[index]


def hydration_patch(payload: AnyPayload) -> dict[str, Any]:
    """Normalize either payload shape into one bundled draft patch."""
    category = service_category_of(payload)
    is_distance = category == ServiceCategory.DISTANCE

    if isinstance(payload, HandoffPayload):
        transfer = TransferType(payload.transferType)
        schedule: dict[str, Any] = {
            "date": payload.pickupDateTime.date,
            "time": payload.pickupDateTime.time,
        }
        if payload.returnDateTime is not None:
            schedule["return_date"] = payload.returnDateTime.date
            schedule["return_time"] = payload.returnDateTime.time
    else:
        transfer = (
            TransferType(payload.transferType)
            if payload.transferType in ("oneWay", "return")
            else TransferType.ONE_WAY
        )
        dt = payload.dateTime or LegacyDateTimePayload()
        candidates = {
            "date": dt.date,
            "time": dt.time,
            "return_date": dt.returnDate,
            "return_time": dt.returnTime,
        }
        schedule = {k: v for k, v in candidates.items() if v is not None}

    patch: dict[str, Any] = {
        "service_category": category,
        "resolved_distance_km": None,
        "resolved_duration_min": None,
        "selected_vehicle": None,
    }
    if payload.pickup is not None:
        patch["pickup"] = payload.pickup.to_location()
    if schedule:
        patch["schedule"] = schedule
    if payload.passengers is not None:
        patch["passengers"] = payload.passengers.to_patch()

    if is_distance:
        patch["transfer_type"] = transfer
        patch["dropoff"] = payload.dropoff.to_location() if payload.dropoff else Location()
        patch["hourly_duration_hours"] = None
    else:
        patch["transfer_type"] = None
        patch["dropoff"] = None
        if payload.hourlyDuration is not None and payload.hourlyDuration > 0:
            patch["hourly_duration_hours"] = int(payload.hourlyDuration)
    return patch


def read_payload(raw: Union[str, bytes, dict]) -> Hydration:
    payload = parse_payload(raw)
    return Hydration(patch=hydration_patch(payload), step=requested_step(payload))


def dehydrate(draft: BookingDraft, step: Optional[int] = None) -> str:
    """Serialize *draft* into the current payload shape."""
    schedule = draft.schedule
    payload = HandoffPayload(
        version=CURRENT_VERSION,
        serviceType=draft.service_category.value,
        transferType=(draft.transfer_type or TransferType.ONE_WAY).value,
        pickup=LocationPayload.from_location(draft.pickup),
        dropoff=(
            LocationPayload.from_location(draft.dropoff)
            if draft.dropoff is not None
            else None
        ),
        pickupDateTime=DateTimePayload(date=schedule.date, time=schedule.time),
        returnDateTime=(
            DateTimePayload(date=schedule.return_date, time=schedule.return_time)
            if schedule.return_at is not None
            else None
        ),
        passengers=PassengersPayload(
            count=draft.passengers.count,
            luggage=draft.passengers.luggage,
            childSeats=draft.passengers.child_seats,
        ),
        hourlyDuration=draft.hourly_duration_hours,
        step=step,
    )
    return payload.model_dump_json(exclude_none=True)
