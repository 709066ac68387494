"""Domain enumerations and wizard step-transition rules."""

import enum


class ServiceCategory(str, enum.Enum):
    DISTANCE = "distance"
    HOURLY = "hourly"


class TransferType(str, enum.Enum):
    ONE_WAY = "oneWay"
    RETURN = "return"


class LocationCategory(str, enum.Enum):
    ADDRESS = "address"
    AIRPORT = "airport"
    HOTEL = "hotel"
    CRUISE = "cruise"


class RouteStatus(str, enum.Enum):
    IDLE = "idle"
    PENDING = "pending"
    RESOLVED = "resolved"
    ROUTE_UNAVAILABLE = "route_unavailable"
    LOOKUP_FAILED = "lookup_failed"


class SearchStatus(str, enum.Enum):
    OK = "ok"
    ZERO_RESULTS = "zero_results"


class LocationField(str, enum.Enum):
    PICKUP = "pickup"
    DROPOFF = "dropoff"


class WizardStep(str, enum.Enum):
    RIDE_DETAILS = "ride_details"
    VEHICLE_SELECTION = "vehicle_selection"
    CONTACT_DETAILS = "contact_details"
    SUMMARY = "summary"


WIZARD_ORDER: list[WizardStep] = [
    WizardStep.RIDE_DETAILS,
    WizardStep.VEHICLE_SELECTION,
    WizardStep.CONTACT_DETAILS,
    WizardStep.SUMMARY,
]

# State machine: maps current step -> steps reachable from it.
# Any earlier step is reachable; forward only to the immediate successor.
WIZARD_TRANSITIONS: dict[WizardStep, set[WizardStep]] = {
    step: set(WIZARD_ORDER[:i]) | set(WIZARD_ORDER[i + 1 : i + 2])
    for i, step in enumerate(WIZARD_ORDER)
}
