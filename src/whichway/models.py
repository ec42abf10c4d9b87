"""Data models for the WhichWay realtime pipeline."""

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

# NYCT platform stop IDs carry a direction suffix, e.g. "127N"
_PLATFORM_SUFFIX = re.compile(r"[NS]$")

UNKNOWN = "Unknown"


def strip_platform_suffix(stop_id: str) -> str:
    """Return the parent station ID for a platform stop ID ("127N" -> "127")."""
    return _PLATFORM_SUFFIX.sub("", stop_id)


# --- Feed value objects (decoded GTFS-Realtime) ---


@dataclass
class NyctTripDescriptor:
    """NYCT vendor extension of a trip descriptor."""
    train_id: Optional[str] = None
    is_assigned: Optional[bool] = None
    direction: Optional[str] = None  # Wire enum name: NORTH, EAST, SOUTH, WEST


@dataclass
class TripDescriptor:
    """Identifies the trip a vehicle or update belongs to."""
    trip_id: str
    route_id: str
    start_date: Optional[str] = None
    start_time: Optional[str] = None
    nyct: Optional[NyctTripDescriptor] = None


@dataclass
class Position:
    """GPS fix reported by a vehicle."""
    latitude: float
    longitude: float
    bearing: Optional[float] = None
    speed: Optional[float] = None


class VehicleStopStatus(Enum):
    """Movement status of a vehicle relative to its current stop."""
    INCOMING_AT = 0
    STOPPED_AT = 1
    IN_TRANSIT_TO = 2

    @property
    def description(self) -> str:
        return _STATUS_DESCRIPTIONS[self]


_STATUS_DESCRIPTIONS = {
    VehicleStopStatus.INCOMING_AT: "Incoming",
    VehicleStopStatus.STOPPED_AT: "Stopped",
    VehicleStopStatus.IN_TRANSIT_TO: "In Transit",
}


@dataclass
class VehiclePosition:
    """Realtime position report for a single vehicle."""
    trip: Optional[TripDescriptor] = None
    position: Optional[Position] = None
    stop_id: Optional[str] = None
    current_status: Optional[VehicleStopStatus] = None
    timestamp: Optional[int] = None  # Unix timestamp


@dataclass
class StopTimeEvent:
    """Predicted arrival or departure at a stop."""
    time: Optional[int] = None  # Unix timestamp
    delay: Optional[int] = None  # Seconds


@dataclass
class NyctStopTimeUpdate:
    """NYCT vendor extension of a stop time update."""
    scheduled_track: Optional[str] = None
    actual_track: Optional[str] = None


@dataclass
class StopTimeUpdate:
    """Prediction for one stop of a trip."""
    stop_id: str
    arrival: Optional[StopTimeEvent] = None
    departure: Optional[StopTimeEvent] = None
    nyct: Optional[NyctStopTimeUpdate] = None


@dataclass
class TripUpdate:
    """Stop-by-stop predictions for a trip."""
    trip: Optional[TripDescriptor]
    stop_time_update: List[StopTimeUpdate] = field(default_factory=list)
    timestamp: Optional[int] = None


@dataclass
class FeedEntity:
    """One entity of a feed message."""
    id: str
    vehicle: Optional[VehiclePosition] = None
    trip_update: Optional[TripUpdate] = None
    has_alert: bool = False  # Alerts are not decoded further


@dataclass
class FeedHeader:
    """Feed metadata."""
    gtfs_realtime_version: str
    timestamp: Optional[int] = None
    nyct_subway_version: Optional[str] = None


@dataclass
class FeedMessage:
    """A complete decoded GTFS-Realtime snapshot."""
    header: FeedHeader
    entities: List[FeedEntity] = field(default_factory=list)


# --- Pipeline output ---


@dataclass
class StopInfo:
    """Information about an upcoming stop of a train."""
    stop_id: str
    arrival_time: Optional[datetime] = None
    departure_time: Optional[datetime] = None
    scheduled_track: Optional[str] = None
    actual_track: Optional[str] = None

    @property
    def station_id(self) -> str:
        return strip_platform_suffix(self.stop_id)


@dataclass
class TrainPosition:
    """Reconciled realtime state of one train, keyed by trip ID."""
    id: str
    trip_id: str
    route_id: str
    train_id: Optional[str] = None  # NYCT train consist ID
    direction: str = UNKNOWN  # "N", "S", "E", "W" or "Unknown"
    is_assigned: bool = False
    current_stop_id: Optional[str] = None
    current_status: str = UNKNOWN
    last_movement_timestamp: Optional[datetime] = None
    next_stops: List[StopInfo] = field(default_factory=list)

    @property
    def display_name(self) -> str:
        return f"{self.route_id} Train"

    @property
    def direction_name(self) -> str:
        """Rider-facing direction label."""
        if self.direction == "N":
            return "Uptown/Bronx"
        if self.direction == "S":
            return "Downtown/Brooklyn"
        if self.direction == "E":
            return "East"
        if self.direction == "W":
            return "West"
        return self.direction

    @property
    def next_stop(self) -> Optional[StopInfo]:
        return self.next_stops[0] if self.next_stops else None
