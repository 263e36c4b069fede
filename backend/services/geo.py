"""Great-circle distance and coordinate-key helpers."""

from __future__ import annotations

import math

from domain.models import Coordinate

EARTH_RADIUS_KM = 6371.0
ORIGIN_ADJACENCY_DEGREES = 0.01


def haversine_km(a: Coordinate, b: Coordinate) -> float:
    """Compute distance in kilometers between two coordinates."""
    dlat = math.radians(b.latitude - a.latitude)
    dlon = math.radians(b.longitude - a.longitude)
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    # Rounding can push h a hair past 1 for antipodal points.
    h = min(1.0, h)
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_KM * c


def is_origin_adjacent(
    candidate: Coordinate,
    origin: Coordinate,
    threshold_deg: float = ORIGIN_ADJACENCY_DEGREES,
) -> bool:
    """
    Coarse "same spot" test: both absolute degree differences under the threshold.

    This is not a metric distance. Near the poles it covers far less ground in
    longitude, and it does not wrap across the antimeridian.
    """
    return (
        abs(candidate.latitude - origin.latitude) < threshold_deg
        and abs(candidate.longitude - origin.longitude) < threshold_deg
    )


def dedupe_key(coord: Coordinate) -> str:
    """Round both components to two decimals (~1.1 km) for grouping."""
    return f"{coord.latitude:.2f},{coord.longitude:.2f}"
