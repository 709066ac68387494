"""
Draft store tests: commit pipeline, route resolution and its races.

Route lookups run as tasks on the test's loop.  Race tests hold the fake
provider on events so the order in which answers arrive is explicit.
"""

import asyncio

import pytest

from transfer_booking.domain.contracts import NoRoute, ProviderError, RouteEstimate
from transfer_booking.domain.entities import Location
from transfer_booking.domain.enums import RouteStatus, ServiceCategory, TransferType
from tests.conftest import AIRPORT, HOTEL, SAGRADA, FakeRouteProvider, route_keys

AB = route_keys(SAGRADA, HOTEL)
AC = route_keys(SAGRADA, AIRPORT)


async def _spin(times: int = 10) -> None:
    for _ in range(times):
        await asyncio.sleep(0)


class TestCommitPipeline:
    def test_subscribers_see_every_commit(self, make_store):
        store = make_store()
        seen = []
        unsubscribe = store.subscribe(seen.append)

        store.apply_patch({"passengers": {"count": 2}})
        store.apply_patch({"passengers": {"count": 3}})
        unsubscribe()
        store.apply_patch({"passengers": {"count": 4}})

        assert [d.passengers.count for d in seen] == [2, 3]

    def test_draft_is_replaced_not_mutated(self, make_store):
        store = make_store()
        before = store.draft
        store.apply_patch({"passengers": {"count": 2}})
        assert before.passengers.count == 1
        assert store.draft is not before

    def test_select_unknown_vehicle_commits_nothing(self, make_store):
        store = make_store()
        before = store.draft
        assert store.select_vehicle("delorean") is False
        assert store.draft is before

    def test_select_too_small_vehicle_is_refused(self, make_store):
        store = make_store()
        store.apply_patch({"passengers": {"count": 5}})
        assert store.select_vehicle("tesla-model-3") is False
        assert store.draft.selected_vehicle is None

    def test_select_vehicle_is_idempotent(self, make_store):
        store = make_store()
        store.apply_patch(
            {"pickup": SAGRADA, "dropoff": HOTEL, "resolved_distance_km": 15.0, "resolved_duration_min": 20.0}
        )
        assert store.select_vehicle("tesla-model-3")
        first = store.draft.pricing
        assert store.select_vehicle("tesla-model-3")
        assert store.draft.pricing == first

    def test_available_vehicles_follow_passengers(self, make_store):
        store = make_store()
        store.apply_patch({"passengers": {"count": 7}})
        assert [v.id for v in store.available_vehicles()] == [
            "mercedes-vito",
            "ford-tourneo",
            "mercedes-v-class",
        ]

    def test_switch_category_round_trip(self, make_store):
        store = make_store()
        store.apply_patch({"pickup": SAGRADA, "dropoff": HOTEL, "resolved_distance_km": 9.0})
        store.switch_category(ServiceCategory.HOURLY)
        assert store.draft.dropoff is None
        assert store.draft.transfer_type is None
        store.switch_category(ServiceCategory.DISTANCE)
        assert store.draft.pickup == SAGRADA
        assert store.draft.dropoff == Location()
        assert store.draft.resolved_distance_km is None

    def test_switch_transfer_type_adds_return_leg(self, make_store):
        store = make_store()
        store.switch_transfer_type(TransferType.RETURN)
        assert store.draft.schedule.return_at > store.draft.schedule.pickup_at

    def test_reset_restores_defaults(self, make_store):
        store = make_store()
        store.apply_patch({"pickup": SAGRADA, "passengers": {"count": 4}})
        store.reset()
        assert store.draft.pickup == Location()
        assert store.draft.passengers.count == 1
        assert store.route_status == RouteStatus.IDLE

    def test_lookup_waits_for_a_running_loop(self, make_store, route_provider):
        store = make_store(route_provider)
        store.apply_patch({"pickup": SAGRADA, "dropoff": HOTEL})
        assert store.route_status == RouteStatus.PENDING
        assert route_provider.calls == []


class TestRouteResolution:
    @pytest.mark.asyncio
    async def test_resolves_and_prices(self, make_store, route_provider):
        store = make_store(route_provider)
        store.select_vehicle("tesla-model-3")
        store.apply_patch({"pickup": SAGRADA, "dropoff": HOTEL})
        assert store.route_status == RouteStatus.PENDING

        await store.settle()

        assert route_provider.calls == [AB]
        assert store.route_status == RouteStatus.RESOLVED
        assert store.draft.resolved_distance_km == 15.0
        assert store.draft.resolved_duration_min == 20.0
        assert store.draft.pricing.subtotal == 53.0

    @pytest.mark.asyncio
    async def test_same_endpoints_do_not_trigger_lookup(self, make_store, route_provider):
        store = make_store(route_provider)
        store.apply_patch({"pickup": SAGRADA, "dropoff": SAGRADA})
        await store.settle()
        assert route_provider.calls == []
        assert store.route_status == RouteStatus.IDLE

    @pytest.mark.asyncio
    async def test_free_text_endpoint_does_not_trigger_lookup(self, make_store, route_provider):
        store = make_store(route_provider)
        store.apply_patch({"pickup": SAGRADA, "dropoff": Location(address="the old harbour")})
        await store.settle()
        assert route_provider.calls == []

    @pytest.mark.asyncio
    async def test_store_without_resolver_never_looks_up(self, make_store):
        store = make_store()
        store.apply_patch({"pickup": SAGRADA, "dropoff": HOTEL, "resolved_distance_km": 7.5})
        store.retry_route()
        await store._resolve(AB)
        await store.settle()
        assert store.route_status == RouteStatus.IDLE
        assert store.draft.resolved_distance_km == 7.5

    @pytest.mark.asyncio
    async def test_hourly_never_triggers_lookup(self, make_store, route_provider):
        store = make_store(route_provider)
        store.switch_category(ServiceCategory.HOURLY)
        store.apply_patch({"pickup": SAGRADA, "dropoff": HOTEL})
        await store.settle()
        assert route_provider.calls == []
        assert store.draft.dropoff is None

    @pytest.mark.asyncio
    async def test_unrelated_patch_does_not_relaunch(self, make_store, route_provider):
        store = make_store(route_provider)
        store.apply_patch({"pickup": SAGRADA, "dropoff": HOTEL})
        await store.settle()
        store.apply_patch({"passengers": {"count": 2}})
        await store.settle()
        assert route_provider.calls == [AB]
        assert store.draft.resolved_distance_km == 15.0

    @pytest.mark.asyncio
    async def test_stale_result_is_discarded(self, make_store):
        provider = FakeRouteProvider(
            routes={AB: RouteEstimate(5_000, 600), AC: RouteEstimate(14_000, 1_200)}
        )
        ab_gate = provider.hold(*AB)
        ac_gate = provider.hold(*AC)
        store = make_store(provider)

        store.apply_patch({"pickup": SAGRADA, "dropoff": HOTEL})
        await _spin()
        store.apply_patch({"dropoff": AIRPORT})
        await _spin()

        ab_gate.set()
        await _spin()
        assert store.draft.resolved_distance_km is None
        assert store.route_status == RouteStatus.PENDING

        ac_gate.set()
        await store.settle()
        assert provider.calls == [AB, AC]
        assert store.draft.resolved_distance_km == 14.0
        assert store.route_status == RouteStatus.RESOLVED

    @pytest.mark.asyncio
    async def test_stale_failure_is_discarded(self, make_store):
        provider = FakeRouteProvider(routes={AB: ProviderError("quota")})
        ab_gate = provider.hold(*AB)
        store = make_store(provider)

        store.apply_patch({"pickup": SAGRADA, "dropoff": HOTEL})
        await _spin()
        store.apply_patch({"dropoff": AIRPORT})
        ab_gate.set()
        await store.settle()

        assert store.route_status == RouteStatus.RESOLVED
        assert store.route_error is None


class TestRouteFailures:
    @pytest.mark.asyncio
    async def test_no_route_sets_soft_flag(self, make_store):
        provider = FakeRouteProvider(routes={AB: NoRoute("ZERO_RESULTS")})
        store = make_store(provider)
        store.apply_patch({"pickup": SAGRADA, "dropoff": HOTEL})
        await store.settle()

        assert store.route_status == RouteStatus.ROUTE_UNAVAILABLE
        assert "ZERO_RESULTS" in store.route_error
        assert store.draft.resolved_distance_km is None

    @pytest.mark.asyncio
    async def test_failure_keeps_previous_values_and_retry_recovers(self, make_store):
        provider = FakeRouteProvider(routes={AB: RouteEstimate(5_000, 600)})
        store = make_store(provider)
        store.apply_patch({"pickup": SAGRADA, "dropoff": HOTEL})
        await store.settle()
        assert store.draft.resolved_distance_km == 5.0

        provider.routes[AB] = ProviderError("upstream 503")
        assert store.retry_route() is True
        await store.settle()
        assert store.route_status == RouteStatus.LOOKUP_FAILED
        assert store.draft.resolved_distance_km == 5.0

        provider.routes[AB] = RouteEstimate(6_000, 700)
        store.retry_route()
        await store.settle()
        assert store.route_status == RouteStatus.RESOLVED
        assert store.draft.resolved_distance_km == 6.0
        assert len(provider.calls) == 3

    @pytest.mark.asyncio
    async def test_unexpected_error_is_contained(self, make_store, caplog):
        provider = FakeRouteProvider(routes={AB: RuntimeError("boom")})
        store = make_store(provider)
        store.apply_patch({"pickup": SAGRADA, "dropoff": HOTEL})
        await store.settle()

        assert store.route_status == RouteStatus.LOOKUP_FAILED
        assert "Unexpected error" in caplog.text

    def test_retry_without_endpoints_is_refused(self, make_store, route_provider):
        store = make_store(route_provider)
        assert store.retry_route() is False

    @pytest.mark.asyncio
    async def test_failure_notifies_subscribers(self, make_store):
        provider = FakeRouteProvider(routes={AB: ProviderError("quota")})
        store = make_store(provider)
        statuses = []
        store.subscribe(lambda _d: statuses.append(store.route_status))
        store.apply_patch({"pickup": SAGRADA, "dropoff": HOTEL})
        await store.settle()
        assert statuses[-1] == RouteStatus.LOOKUP_FAILED
