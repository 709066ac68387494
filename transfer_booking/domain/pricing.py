"""
Transfer Pricing Engine  (Strategy Pattern)
==========================================

Formula
-------
Hourly:   Subtotal = Base + Hours x Rate_Per_Hour + Child_Seats x Seat_Fee
One-way:  Subtotal = Base + KM x Rate_Per_KM + Child_Seats x Seat_Fee [+ Airport_Fee]
Return:   as one-way, with the distance component counted for both legs
          (the resolved one-way distance, not a separately routed return)

Total = Subtotal x (1 + Tax_Rate)

The airport fee applies once when either endpoint is an airport.  The
engine is a pure function of the draft and its config: no counters and no
clock, so the same draft always prices to the same breakdown.

Complexity: O(1) per price calculation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from transfer_booking.config import Settings, settings

from .entities import BookingDraft, PriceBreakdown, Vehicle


def _money(amount: float) -> float:
    return round(amount, 2)


@dataclass(frozen=True)
class PricingConfig:
    child_seat_fee: float = settings.child_seat_fee
    airport_fee: float = settings.airport_fee
    tax_rate: float = settings.tax_rate
    currency: str = settings.currency

    @classmethod
    def from_settings(cls, cfg: Settings) -> "PricingConfig":
        return cls(
            child_seat_fee=cfg.child_seat_fee,
            airport_fee=cfg.airport_fee,
            tax_rate=cfg.tax_rate,
            currency=cfg.currency,
        )


# ── Strategy hierarchy ────────────────────────────────────────────────


class PricingStrategy(ABC):
    @abstractmethod
    def usage_charges(
        self, draft: BookingDraft, vehicle: Vehicle
    ) -> Optional[tuple[float, float]]:
        """Return ``(distance_charge, time_charge)``, or None if unknown."""

    def airport_fee(self, draft: BookingDraft, config: PricingConfig) -> float:
        return 0.0


class HourlyPricing(PricingStrategy):
    def usage_charges(self, draft, vehicle):
        if draft.hourly_duration_hours is None:
            return None
        return 0.0, draft.hourly_duration_hours * vehicle.price_per_hour


class OneWayPricing(PricingStrategy):
    legs = 1

    def usage_charges(self, draft, vehicle):
        if draft.resolved_distance_km is None:
            return None
        distance = draft.resolved_distance_km * self.legs
        return distance * vehicle.price_per_km, 0.0

    def airport_fee(self, draft, config):
        endpoints = [draft.pickup, draft.dropoff]
        if any(loc is not None and loc.is_airport for loc in endpoints):
            return config.airport_fee
        return 0.0


class ReturnPricing(OneWayPricing):
    legs = 2


# ── Engine facade ─────────────────────────────────────────────────────


class PricingEngine:
    """High-level API used by the draft store."""

    def __init__(self, config: PricingConfig | None = None):
        self.config = config or PricingConfig()

    @staticmethod
    def strategy_for(draft: BookingDraft) -> PricingStrategy:
        if draft.is_hourly:
            return HourlyPricing()
        if draft.is_return:
            return ReturnPricing()
        return OneWayPricing()

    def compute_price(self, draft: BookingDraft) -> Optional[PriceBreakdown]:
        """Price the draft, or None when it cannot be priced yet."""
        vehicle = draft.selected_vehicle
        if vehicle is None:
            return None

        strategy = self.strategy_for(draft)
        charges = strategy.usage_charges(draft, vehicle)
        if charges is None:
            return None
        distance_charge, time_charge = charges

        child_seats_charge = draft.passengers.child_seats * self.config.child_seat_fee
        airport_fee = strategy.airport_fee(draft, self.config)

        subtotal = _money(
            vehicle.base_price
            + distance_charge
            + time_charge
            + child_seats_charge
            + airport_fee
        )
        total = _money(subtotal * (1 + self.config.tax_rate))

        return PriceBreakdown(
            base_price=_money(vehicle.base_price),
            distance_charge=_money(distance_charge),
            time_charge=_money(time_charge),
            child_seats_charge=_money(child_seats_charge),
            airport_fee=_money(airport_fee),
            subtotal=subtotal,
            tax=_money(total - subtotal),
            total=total,
            currency=self.config.currency,
        )
