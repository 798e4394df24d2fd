import math
from typing import Iterable

from geopy.distance import geodesic

from greenwave.domain.models import GeoPoint

def distance_m(a: GeoPoint, b: GeoPoint) -> float:
    """Geodesic distance on the WGS-84 ellipsoid, in meters."""
    return geodesic((a.latitude, a.longitude), (b.latitude, b.longitude)).meters

def bearing_deg(a: GeoPoint, b: GeoPoint) -> float:
    """Initial compass bearing (forward azimuth) from a to b, in [0, 360)."""
    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    d_lambda = math.radians(b.longitude - a.longitude)

    y = math.sin(d_lambda) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(d_lambda)
    return normalize_bearing(math.degrees(math.atan2(y, x)))

def normalize_bearing(bearing: float) -> float:
    normalized = bearing % 360.0
    # -1e-15 % 360 rounds to 360.0
    return 0.0 if normalized >= 360.0 else normalized

def angle_difference(a: float, b: float) -> float:
    """Smallest absolute angle between two bearings, in [0, 180]."""
    diff = abs(a - b) % 360.0
    return 360.0 - diff if diff > 180.0 else diff

def circular_mean(bearings: Iterable[float]) -> float:
    """Mean of bearings as unit vectors, so 350 and 10 average to 0, not 180."""
    sin_sum = 0.0
    cos_sum = 0.0
    count = 0
    for b in bearings:
        sin_sum += math.sin(math.radians(b))
        cos_sum += math.cos(math.radians(b))
        count += 1
    if count == 0:
        return 0.0
    return normalize_bearing(math.degrees(math.atan2(sin_sum, cos_sum)))
