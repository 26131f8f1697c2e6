"""
Location Resolution Service.

Turns the free-text location on a duty status into a GPS fix:
- Literal "lat, lng" strings are parsed directly
- Known terminals, cities and highway markers come from a built-in gazetteer
- Optionally, unknown names fall through to Nominatim (free, no API key required)

A lookup that finds nothing returns None. Callers branch on that rather
than catching an exception.
"""

import logging
import time
from typing import Dict, Iterable, List, Optional

import requests
from django.conf import settings

from .geo import Coordinates, parse_coordinates
from .timeline import DutyTimeline

logger = logging.getLogger(__name__)


LOCATION_DATABASE: Dict[str, Coordinates] = {
    # Terminals
    'terminal': Coordinates(34.0522, -118.2437),
    'los angeles terminal': Coordinates(34.0522, -118.2437),
    'san francisco terminal': Coordinates(37.7749, -122.4194),
    'houston terminal': Coordinates(29.7604, -95.3698),
    'dallas terminal': Coordinates(32.7767, -96.7970),
    'chicago terminal': Coordinates(41.8781, -87.6298),

    # Cities
    'los angeles': Coordinates(34.0522, -118.2437),
    'san francisco': Coordinates(37.7749, -122.4194),
    'sacramento': Coordinates(38.5816, -121.4944),
    'bakersfield': Coordinates(35.3733, -119.0187),
    'fresno': Coordinates(36.7378, -119.7871),
    'santa clarita': Coordinates(34.3917, -118.5426),
    'houston': Coordinates(29.7604, -95.3698),
    'dallas': Coordinates(32.7767, -96.7970),
    'austin': Coordinates(30.2672, -97.7431),
    'san antonio': Coordinates(29.4241, -98.4936),
    'chicago': Coordinates(41.8781, -87.6298),
    'st. louis': Coordinates(38.6270, -90.1994),
    'springfield': Coordinates(39.7817, -89.6501),
    'joliet': Coordinates(41.5250, -88.0817),

    # Rest stops and highways
    'i-5 north': Coordinates(35.3733, -119.0187),
    'i-10 west': Coordinates(30.2672, -97.7431),
    'i-45 north': Coordinates(30.6280, -96.3344),
    'i-55 south': Coordinates(39.8045, -89.6440),
    'i-40 east': Coordinates(35.2087, -89.9711),
    'route 66': Coordinates(35.5182, -97.4409),
    'highway 101': Coordinates(36.5946, -121.8812),
    'rest stop': Coordinates(35.5, -119.5),
    'fuel stop': Coordinates(36.0, -120.0),
    'truck stop': Coordinates(36.5, -120.5),

    # Delivery/Loading locations
    'warehouse': Coordinates(34.0500, -118.2500),
    'distribution center': Coordinates(34.0000, -118.3000),
    'loading dock': Coordinates(34.1000, -118.2000),
    'delivery point': Coordinates(37.7500, -122.4000),
}


class GeocodingServiceError(Exception):
    """Custom exception for geocoding configuration errors."""
    pass


class GeocodingService:
    """
    Resolve location text to coordinates.

    Providers:
    - 'local': built-in gazetteer only (default, no network)
    - 'nominatim': gazetteer first, then OpenStreetMap Nominatim
    """

    PROVIDERS = ('local', 'nominatim')

    def __init__(self, config: Optional[Dict] = None):
        self.config = config if config is not None else getattr(settings, 'GEOCODING_CONFIG', {})
        self.provider = self.config.get('PROVIDER', 'local')
        if self.provider not in self.PROVIDERS:
            raise GeocodingServiceError(
                f"Unknown geocoding provider '{self.provider}', expected one of {self.PROVIDERS}"
            )

        self.nominatim_url = self.config.get(
            'NOMINATIM_BASE_URL',
            'https://nominatim.openstreetmap.org'
        )
        self.timeout = self.config.get('TIMEOUT', 15)
        self.rate_limit_seconds = self.config.get('RATE_LIMIT_SECONDS', 1.1)

        # Nominatim requires a valid User-Agent with contact info
        self.headers = {
            'User-Agent': self.config.get('USER_AGENT', 'ELDDriverLogs/1.0'),
            'Accept': 'application/json',
            'Accept-Language': 'en-US,en;q=0.9',
        }

        self.session = requests.Session()
        self.session.headers.update(self.headers)

    def resolve_location(self, text: Optional[str]) -> Optional[Coordinates]:
        """
        Resolve free text or a literal "lat, lng" string.

        Returns None for blank input, malformed coordinates outside any
        known name, and unknown places.
        """
        if not text or not text.strip():
            return None

        coords = parse_coordinates(text)
        if coords is not None:
            return coords

        return self.geocode_location(text)

    def geocode_location(self, name: str) -> Optional[Coordinates]:
        """Look up a place name, gazetteer first."""
        coords = self._lookup_local(name)
        if coords is not None:
            logger.info(f"Geocoded '{name}' to {coords} (local)")
            return coords

        if self.provider == 'nominatim':
            return self._lookup_nominatim(name)

        logger.warning(f"No location match for '{name}'")
        return None

    def _lookup_local(self, name: str) -> Optional[Coordinates]:
        normalized = name.lower().strip()

        if normalized in LOCATION_DATABASE:
            return LOCATION_DATABASE[normalized]

        # Partial matches, in gazetteer order
        for key, coords in LOCATION_DATABASE.items():
            if key in normalized or normalized in key:
                return coords

        return None

    def _lookup_nominatim(self, name: str) -> Optional[Coordinates]:
        try:
            # Respect Nominatim's rate limit (1 request per second)
            time.sleep(self.rate_limit_seconds)

            response = self.session.get(
                f"{self.nominatim_url}/search",
                params={'q': name, 'format': 'json', 'limit': 1},
                timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            logger.warning(f"Geocoding request failed for '{name}': {e}")
            return None

        if not data:
            logger.warning(f"No location match for '{name}'")
            return None

        try:
            coords = Coordinates(
                latitude=float(data[0]['lat']),
                longitude=float(data[0]['lon'])
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Unusable geocoding result for '{name}': {e}")
            return None

        logger.info(f"Geocoded '{name}' to {coords} (nominatim)")
        return coords

    def batch_geocode(self, locations: Iterable[str]) -> Dict:
        """Resolve several locations, reporting per-item outcome."""
        results: List[Dict] = []

        for location in locations:
            coords = self.resolve_location(location)
            results.append({
                'location': location,
                'coordinates': coords.to_dict() if coords else None,
                'status': 'success' if coords else 'not_found',
            })

        success_count = sum(1 for r in results if r['status'] == 'success')
        return {
            'results': results,
            'successCount': success_count,
            'failureCount': len(results) - success_count,
        }

    def geocode_timeline(self, timeline: DutyTimeline) -> DutyTimeline:
        """
        Fill in missing coordinates from each segment's location text.

        Returns a new timeline; segments that already have a fix or whose
        location cannot be resolved are left untouched.
        """
        segments = []
        resolved = 0

        for segment in timeline:
            if segment.coordinates is None and segment.location:
                coords = self.resolve_location(segment.location)
                if coords is not None:
                    segment = segment.with_coordinates(coords)
                    resolved += 1
            segments.append(segment)

        logger.debug(f"Auto-geocoded {resolved} of {len(segments)} duty statuses")
        return timeline.with_segments(segments)


def resolve_location(text: Optional[str]) -> Optional[Coordinates]:
    """Resolve location text with the configured GeocodingService."""
    return GeocodingService().resolve_location(text)
