"""
Great-circle distance and bounding-box helpers
"""

import math
from dataclasses import dataclass
from typing import Tuple

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class BoundingBox:
    min_latitude: float
    max_latitude: float
    min_longitude: float
    max_longitude: float


def haversine_km(p1: Coordinates, p2: Coordinates) -> float:
    """Great-circle distance between two points in kilometres"""
    lat1, lon1 = math.radians(p1.latitude), math.radians(p1.longitude)
    lat2, lon2 = math.radians(p2.latitude), math.radians(p2.longitude)

    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def degree_ranges(latitude: float, radius_km: float) -> Tuple[float, float]:
    """
    Latitude and longitude spans (in degrees) covering radius_km around a point.

    Flat-earth approximation; the longitude span widens with cos(latitude).
    """
    lat_range = (radius_km / EARTH_RADIUS_KM) * (180 / math.pi)
    cos_lat = math.cos(math.radians(latitude))
    if cos_lat < 1e-12:
        # At a pole every longitude is within range
        return lat_range, 180.0
    return lat_range, min(lat_range / cos_lat, 180.0)


def bounding_box(center: Coordinates, radius_km: float) -> BoundingBox:
    lat_range, lng_range = degree_ranges(center.latitude, radius_km)
    return BoundingBox(
        min_latitude=center.latitude - lat_range,
        max_latitude=center.latitude + lat_range,
        min_longitude=center.longitude - lng_range,
        max_longitude=center.longitude + lng_range,
    )
