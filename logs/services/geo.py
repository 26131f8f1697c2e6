"""
Great-circle distance helpers.

All distances are straight-line (Haversine) distances on a sphere of
radius 3959 miles. They ignore the road network entirely.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

EARTH_RADIUS_MILES = 3959.0
MILES_TO_KILOMETERS = 1.609344

UNIT_MILES = 'miles'
UNIT_KILOMETERS = 'kilometers'
SUPPORTED_UNITS = (UNIT_MILES, UNIT_KILOMETERS)


@dataclass(frozen=True)
class Coordinates:
    """
    A GPS fix.

    Range checking happens here, once. Everything downstream (distance,
    route reconstruction) trusts an existing Coordinates instance.
    """
    latitude: float
    longitude: float

    def __post_init__(self):
        if not -90 <= self.latitude <= 90:
            raise ValueError(f"Latitude {self.latitude} is outside [-90, 90]")
        if not -180 <= self.longitude <= 180:
            raise ValueError(f"Longitude {self.longitude} is outside [-180, 180]")

    def as_tuple(self) -> Tuple[float, float]:
        return (self.latitude, self.longitude)

    def to_dict(self) -> Dict[str, float]:
        return {'lat': self.latitude, 'lng': self.longitude}

    @classmethod
    def from_dict(cls, data: Dict) -> 'Coordinates':
        """Build from a ``{'lat': .., 'lng': ..}`` mapping (``latitude``/``longitude`` also accepted)."""
        lat = data.get('lat', data.get('latitude'))
        lng = data.get('lng', data.get('longitude'))
        if lat is None or lng is None:
            raise ValueError("Coordinates require both 'lat' and 'lng'")
        return cls(latitude=float(lat), longitude=float(lng))


def haversine_miles(a: Coordinates, b: Coordinates) -> float:
    """
    Great-circle distance between two fixes, in miles.

    Returns the raw float. Callers round at presentation time only, so
    sums of many legs do not compound rounding error.
    """
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    d_lat = math.radians(b.latitude - a.latitude)
    d_lng = math.radians(b.longitude - a.longitude)

    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_MILES * c


def distance(a: Coordinates, b: Coordinates, unit: str = UNIT_MILES) -> float:
    """Great-circle distance in the requested unit ('miles' or 'kilometers')."""
    if unit not in SUPPORTED_UNITS:
        raise ValueError(f"Unsupported unit '{unit}', expected one of {SUPPORTED_UNITS}")
    miles = haversine_miles(a, b)
    if unit == UNIT_KILOMETERS:
        return miles * MILES_TO_KILOMETERS
    return miles


def calculate_route_distance(
    waypoints: Sequence[Coordinates],
    unit: str = UNIT_MILES
) -> Dict:
    """
    Sum consecutive great-circle hops through an ordered list of waypoints.

    Returns a dict with the rounded total and a per-hop breakdown.
    """
    hops: List[Dict] = []
    total = 0.0

    for index in range(len(waypoints) - 1):
        start, end = waypoints[index], waypoints[index + 1]
        hop = distance(start, end, unit)
        total += hop
        hops.append({
            'from': start.to_dict(),
            'to': end.to_dict(),
            'distance': round(hop, 1),
        })

    logger.debug(f"Route distance over {len(waypoints)} waypoints: {total:.1f} {unit}")

    return {
        'totalDistance': round(total, 1),
        'unit': unit,
        'segments': hops,
        'waypointCount': len(waypoints),
    }


def parse_coordinates(text: str) -> Optional[Coordinates]:
    """
    Parse a literal ``"lat, lng"`` string.

    Anything that is not exactly two comma-separated floats within the
    legal ranges is a miss (None), never an exception.
    """
    if not text:
        return None

    parts = [part.strip() for part in text.split(',')]
    if len(parts) != 2:
        return None

    try:
        lat = float(parts[0])
        lng = float(parts[1])
    except ValueError:
        return None

    if math.isnan(lat) or math.isnan(lng):
        return None

    try:
        return Coordinates(latitude=lat, longitude=lng)
    except ValueError:
        return None


def format_coordinate(coords: Coordinates) -> str:
    """Render a fix as ``"34.0522, -118.2437"``."""
    return f"{coords.latitude:.4f}, {coords.longitude:.4f}"
