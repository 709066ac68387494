"""
Spherical geometry for search bias areas.

Road distances always come from the route provider; this module only
shapes the area a dropoff search is biased to (a circle around the
pickup, approximated by its bounding box).

Complexity: O(1) per call.
"""

import math

from .contracts import BoundingBox

EARTH_RADIUS_KM = 6_371.0


def bounding_box_around(lat: float, lng: float, radius_km: float) -> BoundingBox:
    """Smallest lat/lng box containing the circle of *radius_km* at a point."""
    dlat = math.degrees(radius_km / EARTH_RADIUS_KM)
    # Longitude degrees shrink towards the poles.
    cos_lat = max(math.cos(math.radians(lat)), 1e-12)
    dlng = math.degrees(radius_km / (EARTH_RADIUS_KM * cos_lat))
    return BoundingBox(
        south=max(-90.0, lat - dlat),
        west=max(-180.0, lng - dlng),
        north=min(90.0, lat + dlat),
        east=min(180.0, lng + dlng),
    )
