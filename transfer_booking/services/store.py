"""
Booking Draft Store
===================

The single writer for a booking draft.  State is one immutable
``BookingDraft`` snapshot; ``apply_patch`` runs the pure reducer and swaps
the snapshot in one assignment, so no reader ever sees a half-applied
patch.  After each commit, synchronously:

1. date rules and invariants (inside the reducer),
2. pricing (inside the reducer),
3. route re-resolution when the route inputs changed,
4. subscribers (the wizard session recomputes its step gate).

Concurrency safety
------------------
Everything runs on one asyncio loop, so synchronous commits never
interleave.  The only hazard is a route lookup finishing after its inputs
changed: every lookup captures ``draft.route_inputs`` at launch and its
result is dropped unless those inputs are still current
(last-input-wins, not last-response-wins).
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable, Iterable, Optional

from transfer_booking.config import Settings, settings
from transfer_booking.domain.catalog import VEHICLES, available_vehicles, find_vehicle
from transfer_booking.domain.datetime_rules import local_now
from transfer_booking.domain.draft import (
    Patch,
    category_switch_patch,
    new_draft,
    reduce_draft,
    transfer_type_patch,
)
from transfer_booking.domain.entities import BookingDraft, Vehicle
from transfer_booking.domain.enums import RouteStatus, ServiceCategory, TransferType
from transfer_booking.domain.errors import LookupFailure, RouteUnavailable
from transfer_booking.domain.pricing import PricingConfig, PricingEngine

from .resolver import DistanceResolver

logger = logging.getLogger(__name__)

Subscriber = Callable[[BookingDraft], None]
Clock = Callable[[], datetime]


class DraftStore:
    def __init__(
        self,
        resolver: Optional[DistanceResolver] = None,
        pricing: Optional[PricingEngine] = None,
        catalog: Iterable[Vehicle] = VEHICLES,
        clock: Optional[Clock] = None,
        cfg: Settings = settings,
        draft: Optional[BookingDraft] = None,
    ):
        self.cfg = cfg
        self.clock: Clock = clock or (lambda: local_now(cfg.timezone))
        self.pricing = pricing or PricingEngine(PricingConfig.from_settings(cfg))
        self.resolver = resolver
        self.catalog = tuple(catalog)

        self.route_status = RouteStatus.IDLE
        self.route_error: Optional[str] = None
        self._launched: Optional[tuple[str, str]] = None
        self._tasks: set[asyncio.Task] = set()
        self._subscribers: list[Subscriber] = []

        start = draft or new_draft(self.clock(), cfg)
        self._draft = reduce_draft(start, {}, self.clock(), self.pricing, cfg)

    # ── Reading ───────────────────────────────────────────────────────

    @property
    def draft(self) -> BookingDraft:
        return self._draft

    def available_vehicles(self) -> list[Vehicle]:
        return available_vehicles(self._draft.passengers.count, self.catalog)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Call *callback* with the new draft after every commit."""
        self._subscribers.append(callback)
        return lambda: self._subscribers.remove(callback)

    # ── Writing ───────────────────────────────────────────────────────

    def apply_patch(self, patch: Patch) -> BookingDraft:
        """Merge *patch*, restore invariants, reprice, and publish."""
        previous = self._draft
        self._draft = reduce_draft(previous, patch, self.clock(), self.pricing, self.cfg)
        self._sync_route()
        self._notify()
        return self._draft

    def switch_category(self, category: ServiceCategory) -> BookingDraft:
        return self.apply_patch(category_switch_patch(self._draft, category, self.cfg))

    def switch_transfer_type(self, transfer_type: TransferType) -> BookingDraft:
        return self.apply_patch(transfer_type_patch(self._draft, transfer_type))

    def select_vehicle(self, vehicle_id: str) -> bool:
        """Select a catalog vehicle.  Re-selecting the same id reprices."""
        vehicle = find_vehicle(vehicle_id, self.catalog)
        if vehicle is None:
            logger.warning("Ignoring unknown vehicle %r", vehicle_id)
            return False
        if not vehicle.fits(self._draft.passengers.count):
            logger.info(
                "Vehicle %s does not fit %d passengers",
                vehicle_id,
                self._draft.passengers.count,
            )
            return False
        self.apply_patch({"selected_vehicle": vehicle})
        return True

    def hydrate(self, patch: Patch) -> BookingDraft:
        logger.info("Hydrating draft from handoff (%d fields)", len(patch))
        return self.apply_patch(patch)

    def reset(self) -> BookingDraft:
        """Discard the draft and start over from defaults."""
        self._launched = None
        self._set_route_status(RouteStatus.IDLE)
        self._draft = reduce_draft(
            new_draft(self.clock(), self.cfg), {}, self.clock(), self.pricing, self.cfg
        )
        self._notify()
        return self._draft

    # ── Route resolution ──────────────────────────────────────────────

    def retry_route(self) -> bool:
        """Re-launch the route lookup for the current endpoints."""
        if self._draft.route_inputs is None:
            return False
        self._launched = None
        self._sync_route()
        return True

    async def settle(self) -> None:
        """Wait until no route lookup is in flight."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _sync_route(self) -> None:
        inputs = self._draft.route_inputs
        if inputs is None:
            self._launched = None
            self._set_route_status(RouteStatus.IDLE)
            return
        if inputs == self._launched:
            return
        self._launched = inputs
        if self.resolver is None:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running loop; route lookup for %s -> %s deferred", *inputs)
            self._launched = None
            self._set_route_status(RouteStatus.PENDING)
            return

        self._set_route_status(RouteStatus.PENDING)
        task = loop.create_task(self._resolve(inputs))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _resolve(self, inputs: tuple[str, str]) -> None:
        if self.resolver is None:
            return
        try:
            result = await self.resolver.resolve_keys(*inputs)
        except LookupFailure as exc:
            self._route_failed(inputs, exc)
            return
        except Exception as exc:
            logger.exception("Unexpected error resolving %s -> %s", *inputs)
            self._route_failed(inputs, exc)
            return

        if self._draft.route_inputs != inputs:
            logger.debug("Discarding stale route for %s -> %s", *inputs)
            return
        self._set_route_status(RouteStatus.RESOLVED)
        self.apply_patch(
            {
                "resolved_distance_km": result.distance_km,
                "resolved_duration_min": result.duration_min,
            }
        )

    def _route_failed(self, inputs: tuple[str, str], exc: Exception) -> None:
        if self._draft.route_inputs != inputs:
            logger.debug("Discarding stale route failure for %s -> %s", *inputs)
            return
        status = (
            RouteStatus.ROUTE_UNAVAILABLE
            if isinstance(exc, RouteUnavailable)
            else RouteStatus.LOOKUP_FAILED
        )
        logger.warning("Route lookup %s -> %s failed: %s", inputs[0], inputs[1], exc)
        self._set_route_status(status, str(exc) or type(exc).__name__)
        self._notify()

    def _set_route_status(self, status: RouteStatus, error: Optional[str] = None) -> None:
        self.route_status = status
        self.route_error = error

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            callback(self._draft)
