from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Location:
    name: str
    lat: float
    lng: float


CITIES: tuple[Location, ...] = (
    Location("Tokyo", 35.6762, 139.6503),
    Location("Paris", 48.8566, 2.3522),
    Location("New York", 40.7128, -74.0060),
    Location("Sydney", -33.8688, 151.2093),
    Location("Dubai", 25.2048, 55.2708),
    Location("London", 51.5074, -0.1278),
    Location("Singapore", 1.3521, 103.8198),
    Location("Barcelona", 41.3851, 2.1734),
    Location("Vancouver", 49.2827, -123.1207),
    Location("Rio de Janeiro", -22.9068, -43.1729),
    Location("Amsterdam", 52.3676, 4.9041),
    Location("Seoul", 37.5665, 126.9780),
    Location("Melbourne", -37.8136, 144.9631),
    Location("San Francisco", 37.7749, -122.4194),
    Location("Istanbul", 41.0082, 28.9784),
    Location("Berlin", 52.5200, 13.4050),
    Location("Miami", 25.7617, -80.1918),
    Location("Boston", 42.3601, -71.0589),
    Location("Chicago", 41.8781, -87.6298),
    Location("Los Angeles", 34.0522, -118.2437),
)

# New York.
FALLBACK_LAT = 40.7128
FALLBACK_LNG = -74.0060


def find_city(label: str) -> Location | None:
    """First table entry matching label as a case-insensitive substring either way."""

    needle = label.strip().lower()
    if needle == "":
        return None
    for city in CITIES:
        name = city.name.lower()
        if needle in name or name in needle:
            return city
    return None


def resolve(label: str | None = None, index: int | None = None) -> Location:
    """Map a free-text label or a rotation index to a location. Never fails.

    A label wins over an index. Unmatched labels degrade to the fallback
    coordinate under the original label; indexes wrap cyclically in both
    directions.
    """

    if label is not None:
        found = find_city(label)
        if found is None:
            logger.debug("No location for %r, using fallback", label)
            return Location(name=label, lat=FALLBACK_LAT, lng=FALLBACK_LNG)
        logger.debug("Resolved %r -> %s", label, found.name)
        return found
    if index is not None:
        return CITIES[int(index) % len(CITIES)]
    return CITIES[0]
