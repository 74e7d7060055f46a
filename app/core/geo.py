"""Great-circle distance and travel-time helpers."""

import math
from typing import Sequence

EARTH_RADIUS_KM = 6371.0

# Average speeds used when no routing provider is configured
AVERAGE_SPEED_KMH = {
    "walking": 5,
    "transit": 25,
    "driving": 40,
}


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate the great-circle distance between two points in kilometers."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)

    a = math.sin(delta_phi / 2) ** 2 + math.cos(phi1) * \
        math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def distance_km(origin: Sequence[float], destination: Sequence[float]) -> float:
    """Distance between two [longitude, latitude] pairs, rounded to one decimal."""
    distance = haversine_km(origin[1], origin[0], destination[1], destination[0])
    return round(distance, 1)


def estimate_travel_minutes(distance: float, mode: str = "driving") -> int:
    """Rough travel time from distance and the average speed for `mode`."""
    speed = AVERAGE_SPEED_KMH.get(mode, AVERAGE_SPEED_KMH["driving"])
    return round(distance / speed * 60)
