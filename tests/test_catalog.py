"""Unit tests for the vehicle catalog capacity filter."""

from transfer_booking.domain.catalog import VEHICLES, available_vehicles, find_vehicle


class TestCapacityFilter:
    def test_single_passenger_sees_whole_fleet(self):
        assert available_vehicles(1) == list(VEHICLES)

    def test_keeps_catalog_order(self):
        ids = [v.id for v in available_vehicles(4)]
        assert ids == ["toyota-prius", "mercedes-vito", "ford-tourneo", "mercedes-v-class"]

    def test_large_group_gets_vans(self):
        ids = [v.id for v in available_vehicles(8)]
        assert ids == ["mercedes-vito", "ford-tourneo"]

    def test_nine_passengers_is_empty(self):
        assert max(v.capacity.passengers for v in VEHICLES) == 8
        assert available_vehicles(9) == []

    def test_custom_catalog(self):
        fleet = VEHICLES[:2]
        assert available_vehicles(4, fleet) == [VEHICLES[1]]


class TestFindVehicle:
    def test_known_id(self):
        assert find_vehicle("mercedes-s-class").base_price == 103.0

    def test_unknown_id(self):
        assert find_vehicle("delorean") is None
