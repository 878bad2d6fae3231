"""
Proximity Search Engine

Approximate nearest-listing search without a spatial index:
1. Bounding-box pre-filter built from the radius (1 degree of latitude ~ 111 km)
2. Ranking by a Manhattan proxy |dlat| + |dlon| in degrees
3. Optional second pass with exact haversine distances

The proxy ranking can differ from true distance near the poles or for large
radii; it is kept because result ordering depends on it.
"""

import math
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Tuple

from ..exceptions import InvalidRangeError

KM_PER_DEGREE = 111.0
EARTH_RADIUS_KM = 6371.0
# Floor for cos(latitude) so the longitude delta stays finite at the poles
MIN_COS_LATITUDE = 1e-6


@dataclass
class ProximityResult:
    listing: Any
    proximity_score: float
    distance_km: Optional[float] = None


def bounding_box(center_lat: float, center_lon: float, radius_km: float) -> Tuple[float, float, float, float]:
    """
    Returns (lat_min, lat_max, lon_min, lon_max) around the center.
    """
    if radius_km is None or radius_km <= 0:
        raise InvalidRangeError(f"radius_km must be positive, got {radius_km}", 0, radius_km)

    lat_delta = radius_km / KM_PER_DEGREE
    cos_lat = max(abs(math.cos(math.radians(center_lat))), MIN_COS_LATITUDE)
    lon_delta = radius_km / (KM_PER_DEGREE * cos_lat)

    return (
        center_lat - lat_delta,
        center_lat + lat_delta,
        center_lon - lon_delta,
        center_lon + lon_delta,
    )


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance (haversine)."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))


def _coordinates(candidate) -> Optional[Tuple[float, float]]:
    lat = getattr(candidate, "latitude", None)
    lon = getattr(candidate, "longitude", None)
    if lat is None or lon is None:
        return None
    return float(lat), float(lon)


class ProximitySearchEngine:
    """Filters and ranks candidate listings by location. Holds no state."""

    def nearby(
        self,
        center_lat: float,
        center_lon: float,
        radius_km: float,
        candidates: Iterable[Any],
        exact: bool = False,
    ) -> List[ProximityResult]:
        """
        Candidates inside the radius bounding box, closest first.

        exact=True adds haversine distance_km to each result and re-ranks by it.
        """
        lat_min, lat_max, lon_min, lon_max = bounding_box(center_lat, center_lon, radius_km)

        results = []
        for candidate in candidates:
            coords = _coordinates(candidate)
            if coords is None:
                continue
            lat, lon = coords
            if lat_min <= lat <= lat_max and lon_min <= lon <= lon_max:
                score = abs(lat - center_lat) + abs(lon - center_lon)
                results.append(ProximityResult(listing=candidate, proximity_score=score))

        results.sort(key=lambda r: r.proximity_score)

        if exact:
            for result in results:
                lat, lon = _coordinates(result.listing)
                result.distance_km = distance_km(center_lat, center_lon, lat, lon)
            results.sort(key=lambda r: r.distance_km)

        return results

    def within_bounds(
        self,
        north: float,
        south: float,
        east: float,
        west: float,
        candidates: Iterable[Any],
    ) -> List[Any]:
        """
        Inclusive rectangle filter for map viewports. No ordering guarantee.
        Boxes crossing the antimeridian are not supported.
        """
        if south > north:
            raise InvalidRangeError(f"south ({south}) must not be greater than north ({north})", south, north)
        if west > east:
            raise InvalidRangeError(f"west ({west}) must not be greater than east ({east})", west, east)

        matched = []
        for candidate in candidates:
            coords = _coordinates(candidate)
            if coords is None:
                continue
            lat, lon = coords
            if south <= lat <= north and west <= lon <= east:
                matched.append(candidate)
        return matched
