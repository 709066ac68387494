"""
Unit tests for the wizard step gate and the booking session.

Every allowed transition is exercised, and skip-ahead must raise.
"""

import asyncio

import pytest

from transfer_booking.domain.enums import (
    WIZARD_ORDER,
    WIZARD_TRANSITIONS,
    LocationField,
    ServiceCategory,
    WizardStep,
)
from transfer_booking.domain.contracts import PlaceSuggestion, ProviderError
from transfer_booking.domain.entities import Location
from transfer_booking.domain.handoff import Hydration
from transfer_booking.domain.wizard import (
    InvalidStepTransition,
    Wizard,
    can_advance,
    gate_failures,
)
from transfer_booking.infrastructure.sessions import SessionRegistry
from transfer_booking.services.places import PlaceSearch
from transfer_booking.services.session import BookingSession
from tests.conftest import (
    CONTACT,
    HOTEL,
    NOW,
    SAGRADA,
    FakePlaceProvider,
    FakeRouteProvider,
)


def _ready_store(make_store):
    """A store whose draft passes the RideDetails and Vehicle gates."""
    store = make_store()
    store.apply_patch(
        {"pickup": SAGRADA, "dropoff": HOTEL, "resolved_distance_km": 15.0, "resolved_duration_min": 20.0}
    )
    store.select_vehicle("toyota-prius")
    return store


class TestTransitionTable:
    def test_back_to_any_earlier_step(self):
        for i, step in enumerate(WIZARD_ORDER):
            for earlier in WIZARD_ORDER[:i]:
                assert earlier in WIZARD_TRANSITIONS[step]

    def test_forward_only_one_step(self):
        assert WIZARD_TRANSITIONS[WizardStep.RIDE_DETAILS] == {WizardStep.VEHICLE_SELECTION}
        assert WizardStep.SUMMARY not in WIZARD_TRANSITIONS[WizardStep.VEHICLE_SELECTION]

    def test_summary_is_terminal(self):
        assert WIZARD_TRANSITIONS[WizardStep.SUMMARY] == set(WIZARD_ORDER[:-1])


class TestGates:
    def test_ride_details_needs_resolved_endpoints(self, make_store):
        draft = make_store().draft
        failures = gate_failures(WizardStep.RIDE_DETAILS, draft, NOW)
        assert "pickup location is not resolved" in failures
        assert "dropoff location is not resolved" in failures

    def test_hourly_ride_details_ignores_dropoff(self, make_store):
        store = make_store()
        store.switch_category(ServiceCategory.HOURLY)
        store.apply_patch({"pickup": SAGRADA})
        assert can_advance(WizardStep.RIDE_DETAILS, store.draft, NOW)

    def test_vehicle_gate(self, make_store):
        store = make_store()
        assert gate_failures(WizardStep.VEHICLE_SELECTION, store.draft, NOW) == ["no vehicle selected"]
        store.select_vehicle("tesla-model-3")
        assert can_advance(WizardStep.VEHICLE_SELECTION, store.draft, NOW)

    def test_contact_gate(self, make_store):
        store = make_store()
        assert not can_advance(WizardStep.CONTACT_DETAILS, store.draft, NOW)
        store.apply_patch({"contact": {"first_name": "Ana", "email": "not-an-email"}})
        failures = gate_failures(WizardStep.CONTACT_DETAILS, store.draft, NOW)
        assert "last name is required" in failures
        assert "email is not valid" in failures
        store.apply_patch({"contact": CONTACT})
        assert can_advance(WizardStep.CONTACT_DETAILS, store.draft, NOW)

    def test_bad_flight_number_blocks(self, make_store):
        store = make_store()
        store.apply_patch({"contact": CONTACT})
        store.apply_patch({"contact": {"flight_number": "flight 12"}})
        assert gate_failures(WizardStep.CONTACT_DETAILS, store.draft, NOW) == [
            "flight number is not valid"
        ]

    def test_summary_gate_is_union_of_all(self, make_store):
        store = _ready_store(make_store)
        assert gate_failures(WizardStep.SUMMARY, store.draft, NOW) == [
            "contact details are required"
        ]


class TestWizard:
    def test_advance_blocked_by_closed_gate(self, make_store):
        wizard = Wizard()
        assert wizard.advance(make_store().draft, NOW) is False
        assert wizard.step == WizardStep.RIDE_DETAILS

    def test_full_walk_and_back(self, make_store):
        store = _ready_store(make_store)
        store.apply_patch({"contact": CONTACT})
        wizard = Wizard()
        assert wizard.advance(store.draft, NOW)
        assert wizard.advance(store.draft, NOW)
        assert wizard.advance(store.draft, NOW)
        assert wizard.is_terminal
        assert wizard.advance(store.draft, NOW) is False
        assert wizard.back()
        assert wizard.step == WizardStep.CONTACT_DETAILS

    def test_back_at_first_step(self):
        assert Wizard().back() is False

    def test_skip_ahead_raises(self, make_store):
        wizard = Wizard()
        with pytest.raises(InvalidStepTransition):
            wizard.go_to(WizardStep.CONTACT_DETAILS, make_store().draft, NOW)

    def test_go_to_earlier_step(self, make_store):
        wizard = Wizard(step=WizardStep.SUMMARY)
        assert wizard.go_to(WizardStep.RIDE_DETAILS, make_store().draft, NOW)
        assert wizard.step == WizardStep.RIDE_DETAILS

    def test_go_to_next_step_respects_gate(self, make_store):
        wizard = Wizard()
        assert wizard.go_to(WizardStep.VEHICLE_SELECTION, make_store().draft, NOW) is False
        assert wizard.step == WizardStep.RIDE_DETAILS

    def test_resume_stops_at_first_closed_gate(self, make_store):
        store = _ready_store(make_store)
        wizard = Wizard()
        assert wizard.resume_at(WizardStep.SUMMARY, store.draft, NOW) == WizardStep.CONTACT_DETAILS


class TestBookingSession:
    def test_can_proceed_tracks_commits(self, make_store):
        session = BookingSession(make_store())
        assert not session.can_proceed
        session.store.apply_patch(
            {"pickup": SAGRADA, "dropoff": HOTEL, "resolved_distance_km": 3.0}
        )
        assert session.can_proceed
        session.store.apply_patch({"dropoff": Location()})
        assert not session.can_proceed

    def test_gate_follows_step(self, make_store):
        session = BookingSession(_ready_store(make_store))
        assert session.advance()
        assert session.step == WizardStep.VEHICLE_SELECTION
        assert session.can_proceed
        session.store.apply_patch({"passengers": {"count": 6}})
        assert session.gate_failures == ["no vehicle selected"]

    def test_hydrate_with_step_hint(self, make_store):
        session = BookingSession(make_store())
        patch = {"pickup": SAGRADA, "dropoff": HOTEL, "passengers": {"count": 2}}
        reached = session.hydrate(Hydration(patch=patch, step=WizardStep.CONTACT_DETAILS))
        assert reached == WizardStep.VEHICLE_SELECTION
        assert session.draft.passengers.count == 2

    @pytest.mark.asyncio
    async def test_submit_hands_over_and_resets(self, make_store):
        session = BookingSession(_ready_store(make_store))
        session.store.apply_patch({"contact": CONTACT})
        submitted = []

        async def submitter(draft):
            submitted.append(draft)

        assert await session.submit(submitter) is False  # not on summary yet
        session.resume_at(WizardStep.SUMMARY)
        assert await session.submit(submitter) is True

        assert submitted[0].contact == CONTACT
        assert session.step == WizardStep.RIDE_DETAILS
        assert session.draft.pickup == Location()

    @pytest.mark.asyncio
    async def test_failed_submission_keeps_draft(self, make_store):
        session = BookingSession(_ready_store(make_store))
        session.store.apply_patch({"contact": CONTACT})
        session.resume_at(WizardStep.SUMMARY)

        async def submitter(draft):
            raise ConnectionError("backend down")

        with pytest.raises(ConnectionError):
            await session.submit(submitter)
        assert session.step == WizardStep.SUMMARY
        assert session.draft.contact == CONTACT


class TestSessionRegistry:
    def setup_method(self):
        self.now = 0.0
        self.registry = SessionRegistry(idle_ttl_seconds=60, clock=lambda: self.now)

    def test_remove_closes_session(self, make_store):
        session = self.registry.add(BookingSession(make_store()))
        self.registry.remove(session.id)
        assert self.registry.get(session.id) is None
        assert len(self.registry) == 0
        # closed sessions no longer follow store commits
        session.store.apply_patch({"pickup": SAGRADA, "dropoff": HOTEL, "resolved_distance_km": 3.0})
        assert not session.can_proceed

    def test_idle_sessions_expire(self, make_store):
        idle = self.registry.add(BookingSession(make_store()))
        self.now = 30.0
        active = self.registry.add(BookingSession(make_store()))
        self.now = 61.0
        assert self.registry.get(active.id) is active
        assert self.registry.get(idle.id) is None
        assert len(self.registry) == 1

    def test_get_refreshes_last_seen(self, make_store):
        session = self.registry.add(BookingSession(make_store()))
        for moment in (50.0, 100.0, 150.0):
            self.now = moment
            assert self.registry.get(session.id) is session
        self.now = 211.0
        assert self.registry.sweep() == 1


class TestSelectPlace:
    @pytest.mark.asyncio
    async def test_commits_then_fills_coordinates(self, make_store):
        places = FakePlaceProvider(details={"hotel-arts": HOTEL})
        session = BookingSession(make_store(FakeRouteProvider()), places=PlaceSearch(places))
        session.store.apply_patch({"pickup": SAGRADA})

        suggestion = PlaceSuggestion(id="hotel-arts", label="Hotel Arts", category=HOTEL.category)
        location = await session.select_place(LocationField.DROPOFF, suggestion)
        await session.store.settle()

        assert location.place_id == "hotel-arts"
        assert location.address == "Hotel Arts"
        assert (location.lat, location.lng) == (HOTEL.lat, HOTEL.lng)
        assert session.draft.resolved_distance_km == 15.0

    @pytest.mark.asyncio
    async def test_stale_details_are_dropped(self, make_store):
        places = FakePlaceProvider(details={"hotel-arts": HOTEL})
        places.detail_gates["hotel-arts"] = asyncio.Event()
        session = BookingSession(make_store(), places=PlaceSearch(places))

        pending = asyncio.create_task(
            session.select_place(
                LocationField.PICKUP, PlaceSuggestion(id="hotel-arts", label="Hotel Arts")
            )
        )
        await asyncio.sleep(0)
        session.store.apply_patch({"pickup": SAGRADA})
        places.detail_gates["hotel-arts"].set()
        await pending

        assert session.draft.pickup == SAGRADA

    @pytest.mark.asyncio
    async def test_details_failure_keeps_suggestion(self, make_store):
        places = FakePlaceProvider()
        places.error = ProviderError("INVALID_REQUEST")
        session = BookingSession(make_store(), places=PlaceSearch(places))
        location = await session.select_place(
            LocationField.PICKUP, PlaceSuggestion(id="p1", label="Somewhere")
        )
        assert location.place_id == "p1"
        assert location.lat is None
        assert session.draft.pickup.is_resolved
