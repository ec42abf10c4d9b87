"""Stop ID to station name and coordinate lookup."""

import logging
from typing import Dict, Optional, Tuple

from .models import strip_platform_suffix

logger = logging.getLogger(__name__)

Coordinate = Tuple[float, float]  # (latitude, longitude)

# Parent stop ID -> (name, latitude, longitude)
NYC_SUBWAY_STATIONS: Dict[str, Tuple[str, float, float]] = {
    "127": ("Times Sq-42 St", 40.75529, -73.987495),
    "631": ("Grand Central-42 St", 40.751776, -73.976848),
    "635": ("14 St-Union Sq", 40.734673, -73.989951),
    "640": ("Brooklyn Bridge-City Hall", 40.713065, -74.004131),
    "419": ("Wall St", 40.707557, -74.011862),
    "621": ("125 St", 40.804138, -73.937594),
    "626": ("86 St", 40.779492, -73.955589),
    "628": ("68 St-Hunter College", 40.768141, -73.96387),
    "629": ("59 St", 40.762526, -73.967967),
    "630": ("51 St", 40.757107, -73.97192),
    "A24": ("59 St-Columbus Circle", 40.768296, -73.981736),
    "A27": ("42 St-Port Authority Bus Terminal", 40.757308, -73.989735),
    "A32": ("W 4 St-Wash Sq", 40.732338, -74.000495),
    "A41": ("Jay St-MetroTech", 40.692338, -73.987342),
}


class StationNameResolver:
    """
    Resolves station names and coordinates from GTFS stop IDs.

    Platform IDs ("127N", "631S") resolve through their parent station.
    Unknown stations get a generic "Station <id>" name and no coordinate.
    """

    def __init__(self):
        self._name_cache: Dict[str, str] = {}
        self._coordinate_cache: Dict[str, Coordinate] = {}
        self._load_builtin_stations()

    def _load_builtin_stations(self) -> None:
        for stop_id, (name, latitude, longitude) in NYC_SUBWAY_STATIONS.items():
            self._name_cache[stop_id] = name
            self._coordinate_cache[stop_id] = (latitude, longitude)

    def resolve_name(self, stop_id: str) -> str:
        """
        Get a human-readable name for a stop.

        Args:
            stop_id: GTFS stop ID (e.g., "127N")

        Returns:
            Station name, e.g. "Times Sq-42 St", or "Station 999" if unknown.
        """
        if stop_id in self._name_cache:
            return self._name_cache[stop_id]

        station_id = strip_platform_suffix(stop_id)
        name = self._name_cache.get(station_id)
        if name is None:
            logger.debug(f"No station name for stop {stop_id}")
            name = f"Station {station_id}"
        self._name_cache[stop_id] = name
        return name

    def resolve_coordinate(self, stop_id: str) -> Optional[Coordinate]:
        """Get (latitude, longitude) for a stop, or None if unknown."""
        if stop_id in self._coordinate_cache:
            return self._coordinate_cache[stop_id]

        coordinate = self._coordinate_cache.get(strip_platform_suffix(stop_id))
        if coordinate is not None:
            self._coordinate_cache[stop_id] = coordinate
        return coordinate

    def add_station_mapping(self, stop_id: str, name: str, coordinate: Coordinate) -> None:
        """Register or override a station at runtime."""
        self._name_cache[stop_id] = name
        self._coordinate_cache[stop_id] = coordinate

    def clear_cache(self) -> None:
        """Drop cached and runtime mappings, keeping the built-in stations."""
        self._name_cache.clear()
        self._coordinate_cache.clear()
        self._load_builtin_stations()
