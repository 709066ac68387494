"""
Draft reducer: merge a patch into a draft, then restore every invariant.

A patch is a mapping of ``BookingDraft`` field names to values.

* ``schedule``, ``passengers`` and ``contact`` given as mappings merge
  key-wise into the current value, so ``{"schedule": {"date": d}}``
  keeps the pickup time.
* ``pickup`` / ``dropoff`` given as a ``Location`` replace the location;
  given as a mapping they merge key-wise.
* A key present with ``None`` clears an optional field; required fields
  (top-level or nested) keep their value.
* Nested values are coerced to the field type (``"3"`` -> 3, ISO strings
  -> date/time); values that do not fit are dropped with a warning.
* ``selected_vehicle`` only accepts a ``Vehicle``.
* ``pricing`` is derived and unknown keys are not fields: both are
  ignored.

``reduce_draft`` runs the whole pipeline (merge, invariants, date rules,
route staleness, pricing) and never raises for bad input; anything it
cannot apply is dropped or corrected.
"""

from __future__ import annotations

import logging
from dataclasses import fields, replace
from datetime import date, datetime, time
from typing import Any, Callable, Mapping

from transfer_booking.config import Settings, settings

from . import datetime_rules
from .entities import (
    BookingDraft,
    ContactDetails,
    Location,
    Passengers,
    Schedule,
    Vehicle,
)
from .enums import LocationCategory, ServiceCategory, TransferType
from .pricing import PricingEngine

logger = logging.getLogger(__name__)

Patch = Mapping[str, Any]

_DRAFT_FIELDS = {f.name for f in fields(BookingDraft)}
_COMPOSITE = {
    "schedule": Schedule,
    "passengers": Passengers,
    "contact": ContactDetails,
    "pickup": Location,
    "dropoff": Location,
    "selected_vehicle": Vehicle,
}
_REQUIRED = {"service_category", "pickup", "schedule", "passengers"}
_DERIVED = {"pricing"}
_COERCE = {
    "service_category": ServiceCategory,
    "transfer_type": TransferType,
    "hourly_duration_hours": int,
    "resolved_distance_km": float,
    "resolved_duration_min": float,
}
_RESOLVED_FIELDS = ("resolved_distance_km", "resolved_duration_min")
_NO_RETURN = {"return_date": None, "return_time": None}


def new_draft(now: datetime, cfg: Settings = settings) -> BookingDraft:
    """A fresh distance/one-way draft at the earliest bookable pickup."""
    return BookingDraft(
        schedule=datetime_rules.default_schedule(now, cfg.min_advance_minutes)
    )


# ── Merge ─────────────────────────────────────────────────────────────


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        raise TypeError("bool is not a count")
    return int(value)


def _as_float(value: Any) -> float:
    if isinstance(value, bool):
        raise TypeError("bool is not a coordinate")
    return float(value)


def _as_str(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected str, got {type(value).__name__}")
    return value


def _as_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise TypeError(f"expected date, got {type(value).__name__}")


def _as_time(value: Any) -> time:
    if isinstance(value, time):
        return value
    if isinstance(value, str):
        return time.fromisoformat(value)
    raise TypeError(f"expected time, got {type(value).__name__}")


# Per nested type: field -> (coercer, may be cleared with None)
_FIELD_RULES: dict[type, dict[str, tuple[Callable[[Any], Any], bool]]] = {
    Schedule: {
        "date": (_as_date, False),
        "time": (_as_time, False),
        "return_date": (_as_date, True),
        "return_time": (_as_time, True),
    },
    Passengers: {
        "count": (_as_int, False),
        "luggage": (_as_int, False),
        "child_seats": (_as_int, False),
    },
    ContactDetails: {
        "first_name": (_as_str, False),
        "last_name": (_as_str, False),
        "email": (_as_str, False),
        "phone": (_as_str, False),
        "country_code": (_as_str, False),
        "flight_number": (_as_str, True),
        "special_requests": (_as_str, True),
    },
    Location: {
        "address": (_as_str, False),
        "place_id": (_as_str, True),
        "lat": (_as_float, True),
        "lng": (_as_float, True),
        "category": (LocationCategory, False),
    },
}


def _merge_values(current: Any, values: Mapping[str, Any]) -> Any:
    kind = type(current).__name__
    rules = _FIELD_RULES[type(current)]
    changes: dict[str, Any] = {}
    for key, value in values.items():
        if key not in rules:
            logger.warning("Ignoring unknown %s key %r", kind, key)
            continue
        coerce, nullable = rules[key]
        if value is None:
            if not nullable:
                logger.warning("Ignoring attempt to clear required %s.%s", kind, key)
                continue
            changes[key] = None
            continue
        try:
            changes[key] = coerce(value)
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid value for %s.%s: %r", kind, key, value)
    return replace(current, **changes)


def merge_patch(draft: BookingDraft, patch: Patch) -> BookingDraft:
    """Apply *patch* to *draft* without enforcing invariants."""
    changes: dict[str, Any] = {}
    for key, value in patch.items():
        if key in _DERIVED:
            logger.warning("Ignoring derived field %r in patch", key)
            continue
        if key not in _DRAFT_FIELDS:
            logger.warning("Ignoring unknown draft field %r", key)
            continue
        if value is None:
            if key in _REQUIRED:
                logger.warning("Ignoring attempt to clear required field %r", key)
                continue
            changes[key] = None
            continue

        if key in _COERCE:
            try:
                value = _COERCE[key](value)
            except (TypeError, ValueError):
                logger.warning("Ignoring invalid value for %r: %r", key, value)
                continue
        elif key in _COMPOSITE:
            kind = _COMPOSITE[key]
            if isinstance(value, Mapping) and kind in _FIELD_RULES:
                value = _merge_values(getattr(draft, key) or kind(), value)
            elif not isinstance(value, kind):
                logger.warning("Ignoring %s value for %r", type(value).__name__, key)
                continue

        changes[key] = value
    return replace(draft, **changes)


# ── Invariants ────────────────────────────────────────────────────────


def enforce_invariants(draft: BookingDraft, cfg: Settings = settings) -> BookingDraft:
    """Correct category, transfer, passenger and capacity invariants."""
    if draft.is_hourly:
        hours = draft.hourly_duration_hours
        if hours is None:
            hours = cfg.default_hourly_hours
        draft = replace(
            draft,
            dropoff=None,
            transfer_type=None,
            resolved_distance_km=None,
            resolved_duration_min=None,
            hourly_duration_hours=max(hours, cfg.min_hourly_hours),
            schedule=replace(draft.schedule, **_NO_RETURN),
        )
    else:
        draft = replace(
            draft,
            dropoff=draft.dropoff or Location(),
            hourly_duration_hours=None,
            transfer_type=draft.transfer_type or TransferType.ONE_WAY,
        )
        if draft.transfer_type == TransferType.RETURN:
            draft = replace(draft, schedule=datetime_rules.default_return(draft.schedule))
        else:
            draft = replace(draft, schedule=replace(draft.schedule, **_NO_RETURN))

    p = draft.passengers
    passengers = Passengers(
        count=max(p.count, 1),
        luggage=max(p.luggage, 0),
        child_seats=min(max(p.child_seats, 0), cfg.max_child_seats),
    )
    if passengers != p:
        draft = replace(draft, passengers=passengers)

    vehicle = draft.selected_vehicle
    if vehicle is not None and not vehicle.fits(draft.passengers.count):
        logger.info(
            "Clearing vehicle %s: seats %d < %d passengers",
            vehicle.id,
            vehicle.capacity.passengers,
            draft.passengers.count,
        )
        draft = replace(draft, selected_vehicle=None)
    return draft


def drop_stale_route(previous: BookingDraft, draft: BookingDraft, patch: Patch) -> BookingDraft:
    """Clear distance/duration measured between endpoints that changed."""
    if previous.route_inputs == draft.route_inputs:
        return draft
    if any(key in patch for key in _RESOLVED_FIELDS):
        return draft
    if draft.resolved_distance_km is None and draft.resolved_duration_min is None:
        return draft
    return replace(draft, resolved_distance_km=None, resolved_duration_min=None)


def reduce_draft(
    draft: BookingDraft,
    patch: Patch,
    now: datetime,
    pricing: PricingEngine,
    cfg: Settings = settings,
) -> BookingDraft:
    """Merge *patch* and return the next valid, priced draft."""
    merged = merge_patch(draft, patch)
    merged = enforce_invariants(merged, cfg)
    merged = datetime_rules.normalize_pickup(merged, now, cfg.min_advance_minutes)
    merged = datetime_rules.ensure_return_ordering(merged)
    merged = drop_stale_route(draft, merged, patch)
    return replace(merged, pricing=pricing.compute_price(merged))


# ── Bundled patches ───────────────────────────────────────────────────


def category_switch_patch(
    draft: BookingDraft, category: ServiceCategory, cfg: Settings = settings
) -> dict[str, Any]:
    """One patch carrying a category change and every field it clears."""
    category = ServiceCategory(category)
    if category == draft.service_category:
        return {}
    if category == ServiceCategory.HOURLY:
        return {
            "service_category": category,
            "dropoff": None,
            "transfer_type": None,
            "resolved_distance_km": None,
            "resolved_duration_min": None,
            "schedule": dict(_NO_RETURN),
            "hourly_duration_hours": draft.hourly_duration_hours or cfg.default_hourly_hours,
        }
    return {
        "service_category": category,
        "dropoff": Location(),
        "transfer_type": TransferType.ONE_WAY,
        "hourly_duration_hours": None,
        "resolved_distance_km": None,
        "resolved_duration_min": None,
    }


def transfer_type_patch(
    draft: BookingDraft, transfer_type: TransferType
) -> dict[str, Any]:
    """Patch switching one-way/return; hourly drafts have no transfer type."""
    transfer_type = TransferType(transfer_type)
    if draft.is_hourly:
        return {}
    if transfer_type == TransferType.ONE_WAY:
        return {"transfer_type": transfer_type, "schedule": dict(_NO_RETURN)}
    schedule = datetime_rules.default_return(draft.schedule)
    return {
        "transfer_type": transfer_type,
        "schedule": {
            "return_date": schedule.return_date,
            "return_time": schedule.return_time,
        },
    }
