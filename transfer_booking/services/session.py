"""
Wizard session: one draft store driven through the four booking steps.

The session subscribes to its store and recomputes the current step's
gate after every commit, so ``can_proceed`` is always current for the
draft a reader sees.
"""

from __future__ import annotations

import logging
import uuid
from typing import Awaitable, Callable, Optional

from transfer_booking.config import Settings, settings
from transfer_booking.domain.contracts import (
    PlaceSuggestion,
    PositionSource,
    ReverseGeocoder,
)
from transfer_booking.domain.entities import BookingDraft, Location
from transfer_booking.domain.enums import LocationField, WizardStep
from transfer_booking.domain.errors import LookupFailure
from transfer_booking.domain.handoff import Hydration
from transfer_booking.domain.wizard import Wizard, gate_failures

from .geolocation import locate
from .places import PlaceSearch
from .store import DraftStore

logger = logging.getLogger(__name__)

Submitter = Callable[[BookingDraft], Awaitable[object]]


class BookingSession:
    def __init__(
        self,
        store: DraftStore,
        places: Optional[PlaceSearch] = None,
        cfg: Settings = settings,
        session_id: Optional[str] = None,
    ):
        self.id = session_id or uuid.uuid4().hex
        self.store = store
        self.places = places
        self.cfg = cfg
        self.wizard = Wizard()
        self.gate_failures: list[str] = []
        self._unsubscribe = store.subscribe(lambda _draft: self._refresh())
        self._refresh()

    # ── Gate ──────────────────────────────────────────────────────────

    @property
    def step(self) -> WizardStep:
        return self.wizard.step

    @property
    def draft(self) -> BookingDraft:
        return self.store.draft

    @property
    def can_proceed(self) -> bool:
        return not self.gate_failures

    def _refresh(self) -> None:
        self.gate_failures = gate_failures(
            self.wizard.step, self.store.draft, self.store.clock(), self.cfg
        )

    # ── Navigation ────────────────────────────────────────────────────

    def advance(self) -> bool:
        moved = self.wizard.advance(self.store.draft, self.store.clock(), self.cfg)
        self._refresh()
        return moved

    def back(self) -> bool:
        moved = self.wizard.back()
        self._refresh()
        return moved

    def go_to(self, step: WizardStep) -> bool:
        """Raises ``InvalidStepTransition`` on a skip-ahead."""
        try:
            return self.wizard.go_to(step, self.store.draft, self.store.clock(), self.cfg)
        finally:
            self._refresh()

    def resume_at(self, step: WizardStep) -> WizardStep:
        reached = self.wizard.resume_at(
            step, self.store.draft, self.store.clock(), self.cfg
        )
        self._refresh()
        return reached

    def hydrate(self, hydration: Hydration) -> WizardStep:
        """Apply a handoff in one commit, then walk towards its step hint."""
        self.store.hydrate(hydration.patch)
        if hydration.step is not None:
            return self.resume_at(hydration.step)
        return self.wizard.step

    # ── Locations ─────────────────────────────────────────────────────

    async def select_place(
        self, field_name: LocationField, suggestion: PlaceSuggestion
    ) -> Location:
        """Commit *suggestion* now; fill its coordinates from place details.

        The place id alone makes the location resolvable, so route lookup
        starts immediately.  Details arriving after the field changed are
        dropped.
        """
        key = LocationField(field_name).value
        self.store.apply_patch(
            {
                key: Location(
                    address=suggestion.label,
                    place_id=suggestion.id,
                    category=suggestion.category,
                )
            }
        )
        if self.places is None:
            return getattr(self.store.draft, key)

        try:
            details = await self.places.details(suggestion.id)
        except LookupFailure as exc:
            logger.warning("Keeping %s without coordinates: %s", key, exc)
            return getattr(self.store.draft, key)

        current = getattr(self.store.draft, key)
        if current is None or current.place_id != suggestion.id:
            logger.debug("Dropping stale place details for %s", suggestion.id)
            return current
        self.store.apply_patch({key: {"lat": details.lat, "lng": details.lng}})
        return getattr(self.store.draft, key)

    async def use_current_location(
        self, position_source: PositionSource, geocoder: ReverseGeocoder
    ) -> Location:
        """Set the pickup from the device position; raises ``LookupFailed``."""
        location = await locate(
            position_source, geocoder, self.cfg.geolocation_timeout_seconds
        )
        self.store.apply_patch({"pickup": location})
        return location

    # ── Submission ────────────────────────────────────────────────────

    async def submit(self, submitter: Submitter) -> bool:
        """Hand a complete draft to *submitter*, then start over.

        Only allowed from the summary step with every gate open.  If the
        submitter raises, the draft is kept so the visitor can retry.
        """
        if self.wizard.step != WizardStep.SUMMARY:
            return False
        draft = self.store.draft
        problems = gate_failures(WizardStep.SUMMARY, draft, self.store.clock(), self.cfg)
        if problems:
            logger.info("Session %s not submittable: %s", self.id, problems)
            return False

        await submitter(draft)
        logger.info("Session %s submitted", self.id)
        self.wizard = Wizard()
        self.store.reset()
        return True

    def close(self) -> None:
        self._unsubscribe()
