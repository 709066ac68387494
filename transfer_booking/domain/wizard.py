"""
Wizard step gate (State Pattern).

Steps run strictly in order
RIDE_DETAILS -> VEHICLE_SELECTION -> CONTACT_DETAILS -> SUMMARY.
Moving back is always allowed; moving forward is allowed one step at a
time and only when the current step's gate is open.

Gates are pure predicates over ``(step, draft, now)``.  A closed gate is
the only way a validation failure surfaces: ``gate_failures`` lists the
reasons, nothing is raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from transfer_booking.config import Settings, settings

from .datetime_rules import schedule_problems
from .entities import BookingDraft
from .enums import WIZARD_ORDER, WIZARD_TRANSITIONS, WizardStep
from .validation import contact_problems


class InvalidStepTransition(Exception):
    """Raised when a step change skips ahead in the wizard."""


# ── Gates ─────────────────────────────────────────────────────────────


def _ride_details_problems(
    draft: BookingDraft, now: datetime, cfg: Settings
) -> list[str]:
    problems: list[str] = []
    if not draft.pickup.is_resolved:
        problems.append("pickup location is not resolved")
    problems.extend(schedule_problems(draft, now, cfg.min_advance_minutes))
    if draft.is_hourly:
        hours = draft.hourly_duration_hours
        if hours is None or hours < cfg.min_hourly_hours:
            problems.append(f"hourly bookings need at least {cfg.min_hourly_hours} hours")
    elif draft.dropoff is None or not draft.dropoff.is_resolved:
        problems.append("dropoff location is not resolved")
    return problems


def _vehicle_problems(draft: BookingDraft) -> list[str]:
    vehicle = draft.selected_vehicle
    if vehicle is None:
        return ["no vehicle selected"]
    if not vehicle.fits(draft.passengers.count):
        return [f"{vehicle.name} seats fewer than {draft.passengers.count} passengers"]
    return []


def gate_failures(
    step: WizardStep,
    draft: BookingDraft,
    now: datetime,
    cfg: Settings = settings,
) -> list[str]:
    """Reasons *step* may not be left forwards; empty when the gate is open.

    For SUMMARY this is the union of every earlier gate, i.e. whether the
    draft is complete enough to hand to submission.
    """
    if step == WizardStep.RIDE_DETAILS:
        return _ride_details_problems(draft, now, cfg)
    if step == WizardStep.VEHICLE_SELECTION:
        return _vehicle_problems(draft)
    if step == WizardStep.CONTACT_DETAILS:
        return contact_problems(draft.contact)
    return (
        _ride_details_problems(draft, now, cfg)
        + _vehicle_problems(draft)
        + contact_problems(draft.contact)
    )


def can_advance(
    step: WizardStep,
    draft: BookingDraft,
    now: datetime,
    cfg: Settings = settings,
) -> bool:
    return not gate_failures(step, draft, now, cfg)


# ── State machine ─────────────────────────────────────────────────────


@dataclass
class Wizard:
    step: WizardStep = WizardStep.RIDE_DETAILS

    @property
    def index(self) -> int:
        return WIZARD_ORDER.index(self.step)

    @property
    def is_terminal(self) -> bool:
        return self.step == WIZARD_ORDER[-1]

    def advance(
        self, draft: BookingDraft, now: datetime, cfg: Settings = settings
    ) -> bool:
        """Move one step forward if the gate is open.  Returns success."""
        if self.is_terminal or not can_advance(self.step, draft, now, cfg):
            return False
        self.step = WIZARD_ORDER[self.index + 1]
        return True

    def back(self) -> bool:
        if self.index == 0:
            return False
        self.step = WIZARD_ORDER[self.index - 1]
        return True

    def go_to(
        self,
        target: WizardStep,
        draft: BookingDraft,
        now: datetime,
        cfg: Settings = settings,
    ) -> bool:
        """Jump to *target*: any earlier step, or the next one through its gate."""
        target = WizardStep(target)
        if target == self.step:
            return True
        if target not in WIZARD_TRANSITIONS[self.step]:
            raise InvalidStepTransition(
                f"Cannot jump from {self.step.value} to {target.value}"
            )
        if WIZARD_ORDER.index(target) > self.index:
            return self.advance(draft, now, cfg)
        self.step = target
        return True

    def resume_at(
        self,
        target: WizardStep,
        draft: BookingDraft,
        now: datetime,
        cfg: Settings = settings,
    ) -> WizardStep:
        """Walk forward towards *target*, stopping at the first closed gate."""
        goal = WIZARD_ORDER.index(WizardStep(target))
        while self.index < goal and self.advance(draft, now, cfg):
            pass
        return self.step
