"""
Vehicle catalog and capacity filter.

The fleet is static reference data.  Filtering keeps catalog order so the
page lists vehicles the same way every time; it never re-sorts by price.

Complexity: O(V) per filter, V = catalog size.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from .entities import Vehicle, VehicleCapacity

VEHICLES: tuple[Vehicle, ...] = (
    Vehicle(
        id="tesla-model-3",
        name="Tesla Model 3",
        category="standard",
        capacity=VehicleCapacity(passengers=3, luggage=2),
        base_price=35.0,
        price_per_km=1.2,
        price_per_hour=45.0,
        features=("100% Electric", "Premium leather seats", "Climate control"),
    ),
    Vehicle(
        id="toyota-prius",
        name="Toyota Prius+",
        category="standard",
        capacity=VehicleCapacity(passengers=4, luggage=3),
        base_price=33.0,
        price_per_km=1.0,
        price_per_hour=40.0,
        features=("Hybrid engine", "Air-conditioned", "Charging ports"),
    ),
    Vehicle(
        id="mercedes-e-class",
        name="Mercedes E-Class",
        category="luxury-sedan",
        capacity=VehicleCapacity(passengers=3, luggage=2),
        base_price=55.0,
        price_per_km=1.8,
        price_per_hour=70.0,
        features=("Executive seating", "Quiet cabin", "Ambient lighting"),
    ),
    Vehicle(
        id="bmw-5-series",
        name="BMW 5 Series",
        category="luxury-sedan",
        capacity=VehicleCapacity(passengers=3, luggage=2),
        base_price=55.0,
        price_per_km=1.8,
        price_per_hour=70.0,
        features=("Luxury seating", "Premium sound", "Advanced comfort"),
    ),
    Vehicle(
        id="mercedes-s-class",
        name="Mercedes S-Class",
        category="luxury-sedan",
        capacity=VehicleCapacity(passengers=3, luggage=2),
        base_price=103.0,
        price_per_km=2.5,
        price_per_hour=120.0,
        features=("First-class seating", "Massage seats", "Burmester sound"),
    ),
    Vehicle(
        id="mercedes-vito",
        name="Mercedes Vito",
        category="8-seater-van",
        capacity=VehicleCapacity(passengers=8, luggage=8),
        base_price=75.0,
        price_per_km=1.5,
        price_per_hour=85.0,
        features=("8 passenger seats", "Large luggage space", "Dual-zone AC"),
    ),
    Vehicle(
        id="ford-tourneo",
        name="Ford Tourneo Custom",
        category="8-seater-van",
        capacity=VehicleCapacity(passengers=8, luggage=7),
        base_price=73.0,
        price_per_km=1.4,
        price_per_hour=82.0,
        features=("8 full-size seats", "Apple CarPlay", "Rear climate control"),
    ),
    Vehicle(
        id="mercedes-v-class",
        name="Mercedes V-Class",
        category="luxury-van",
        capacity=VehicleCapacity(passengers=7, luggage=7),
        base_price=95.0,
        price_per_km=2.0,
        price_per_hour=110.0,
        features=("Premium interiors", "Privacy glass", "Wi-Fi on board"),
    ),
)


def available_vehicles(
    passenger_count: int, catalog: Sequence[Vehicle] = VEHICLES
) -> list[Vehicle]:
    """Vehicles seating at least *passenger_count*, in catalog order.

    An empty list is a normal answer ("no vehicle fits N passengers").
    """
    return [v for v in catalog if v.fits(passenger_count)]


def find_vehicle(
    vehicle_id: str, catalog: Iterable[Vehicle] = VEHICLES
) -> Optional[Vehicle]:
    for vehicle in catalog:
        if vehicle.id == vehicle_id:
            return vehicle
    return None
