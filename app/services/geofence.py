"""
Geofence evaluation: is a GPS reading inside a location's allowed radius.
"""
import math
from typing import NamedTuple, Optional

EARTH_RADIUS_M = 6_371_000.0


class GeoPoint(NamedTuple):
    latitude: float
    longitude: float
    accuracy: Optional[float] = None  # meters, as reported by the device


def haversine_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in meters between two WGS84 coordinates."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def distance_to(point: GeoPoint, location) -> float:
    """Distance in meters from point to the location center."""
    return haversine_distance(point.latitude, point.longitude, location.latitude, location.longitude)


def is_within_fence(point: GeoPoint, location, use_accuracy_buffer: bool = False) -> bool:
    """
    True when point lies within location.radius meters of the location center (boundary inclusive).

    Accuracy is ignored unless use_accuracy_buffer is set, in which case it widens the
    tolerance: the employee passes if their closest possible position is inside the fence.
    """
    tolerance = float(location.radius)
    if use_accuracy_buffer and point.accuracy:
        tolerance += float(point.accuracy)
    return distance_to(point, location) <= tolerance
