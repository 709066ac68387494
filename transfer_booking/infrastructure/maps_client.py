"""
Google Maps web-service client.

Implements the route, place and reverse-geocoding contracts over one
shared ``httpx.AsyncClient``.  Provider answers are mapped onto the
domain shapes; nothing of the provider's JSON leaks past this module.

* Distance Matrix element status other than ``OK`` -> ``NoRoute``
* Any other non-OK top-level status, HTTP errors   -> ``ProviderError``
* Autocomplete ``ZERO_RESULTS``                    -> empty list
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from transfer_booking.config import Settings, settings
from transfer_booking.domain.contracts import (
    BoundingBox,
    NoRoute,
    PlaceSuggestion,
    ProviderError,
    RouteEstimate,
)
from transfer_booking.domain.entities import Location
from transfer_booking.domain.enums import LocationCategory

logger = logging.getLogger(__name__)

# Provider place types -> location category; first match wins.
PLACE_TYPE_CATEGORIES: dict[str, LocationCategory] = {
    "airport": LocationCategory.AIRPORT,
    "lodging": LocationCategory.HOTEL,
    "ferry_terminal": LocationCategory.CRUISE,
}


def category_of(types: list[str]) -> LocationCategory:
    for place_type in types:
        if place_type in PLACE_TYPE_CATEGORIES:
            return PLACE_TYPE_CATEGORIES[place_type]
    return LocationCategory.ADDRESS


class GoogleMapsClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        http: Optional[httpx.AsyncClient] = None,
        cfg: Settings = settings,
    ):
        self.api_key = api_key if api_key is not None else cfg.maps_api_key
        self.country = cfg.search_country
        self._http = http or httpx.AsyncClient(
            base_url=cfg.maps_base_url, timeout=cfg.maps_timeout_seconds
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _get(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self._http.get(path, params={**params, "key": self.api_key})
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Maps request %s failed: %s", path, exc)
            raise ProviderError(f"{path}: {exc}") from exc
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(f"{path}: invalid JSON") from exc

    @staticmethod
    def _check_status(path: str, data: dict[str, Any], *accepted: str) -> str:
        status = data.get("status", "UNKNOWN_ERROR")
        if status not in ("OK", *accepted):
            message = data.get("error_message") or status
            raise ProviderError(f"{path}: {message}")
        return status

    # ── RouteProvider ─────────────────────────────────────────────────

    async def route(self, origin: str, destination: str) -> RouteEstimate:
        path = "/distancematrix/json"
        data = await self._get(
            path, {"origins": origin, "destinations": destination, "mode": "driving"}
        )
        self._check_status(path, data)
        try:
            element = data["rows"][0]["elements"][0]
        except (KeyError, IndexError) as exc:
            raise ProviderError(f"{path}: malformed response") from exc

        if element.get("status") != "OK":
            raise NoRoute(f"{origin} -> {destination}: {element.get('status')}")
        return RouteEstimate(
            distance_meters=element["distance"]["value"],
            duration_seconds=element["duration"]["value"],
        )

    # ── PlaceProvider ─────────────────────────────────────────────────

    async def suggest(self, query: str, bias: BoundingBox) -> list[PlaceSuggestion]:
        path = "/place/autocomplete/json"
        data = await self._get(
            path,
            {
                "input": query,
                "locationbias": (
                    f"rectangle:{bias.south},{bias.west}|{bias.north},{bias.east}"
                ),
                "components": f"country:{self.country}",
            },
        )
        if self._check_status(path, data, "ZERO_RESULTS") == "ZERO_RESULTS":
            return []
        return [
            PlaceSuggestion(
                id=p["place_id"],
                label=p.get("description", ""),
                category=category_of(p.get("types", [])),
            )
            for p in data.get("predictions", [])
        ]

    async def place_details(self, place_id: str) -> Location:
        path = "/place/details/json"
        data = await self._get(
            path,
            {"place_id": place_id, "fields": "formatted_address,geometry,name,types"},
        )
        self._check_status(path, data)
        result = data.get("result", {})
        coords = result.get("geometry", {}).get("location", {})
        return Location(
            address=result.get("formatted_address") or result.get("name", ""),
            place_id=place_id,
            lat=coords.get("lat"),
            lng=coords.get("lng"),
            category=category_of(result.get("types", [])),
        )

    # ── ReverseGeocoder ───────────────────────────────────────────────

    async def reverse_geocode(self, lat: float, lng: float) -> Location:
        path = "/geocode/json"
        data = await self._get(path, {"latlng": f"{lat},{lng}"})
        self._check_status(path, data)
        results = data.get("results") or []
        if not results:
            raise ProviderError(f"{path}: no address for {lat},{lng}")
        top = results[0]
        return Location(
            address=top.get("formatted_address", ""),
            place_id=top.get("place_id"),
            lat=lat,
            lng=lng,
            category=category_of(top.get("types", [])),
        )
