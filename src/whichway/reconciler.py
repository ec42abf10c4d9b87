"""Merge vehicle positions and trip updates into train positions."""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from .indexer import FeedEntityIndexer
from .models import (
    UNKNOWN,
    FeedMessage,
    NyctTripDescriptor,
    StopInfo,
    StopTimeEvent,
    TrainPosition,
    TripUpdate,
    VehiclePosition,
)

logger = logging.getLogger(__name__)

# NYCT direction enum name -> short code
DIRECTION_CODES = {
    "NORTH": "N",
    "SOUTH": "S",
    "EAST": "E",
    "WEST": "W",
}


def to_datetime(timestamp: Optional[int]) -> Optional[datetime]:
    """
    Convert a Unix timestamp to an aware UTC datetime. 0 is a valid time.

    Values outside the range datetime can represent give None.
    """
    if timestamp is None:
        return None
    try:
        return datetime.fromtimestamp(timestamp, tz=timezone.utc)
    except (OverflowError, ValueError, OSError) as e:
        logger.warning(f"Ignoring out-of-range timestamp {timestamp}: {e}")
        return None


class TrainPositionReconciler:
    """
    Produces one TrainPosition per trip seen in a feed.

    A trip may be reported by a vehicle position, a trip update, or both. The
    vehicle supplies where the train is right now; the trip update supplies
    its upcoming stops. Trips are matched by exact trip ID.

    The reconciler keeps no state between calls.
    """

    def __init__(self, indexer: Optional[FeedEntityIndexer] = None):
        self.indexer = indexer or FeedEntityIndexer()

    def process_feed(self, feed: FeedMessage) -> List[TrainPosition]:
        """Index a feed and reconcile it into train positions."""
        index = self.indexer.index(feed)
        return self.reconcile(index.vehicle_by_trip, index.update_by_trip)

    def reconcile(
        self,
        vehicle_by_trip: Dict[str, VehiclePosition],
        update_by_trip: Dict[str, TripUpdate],
    ) -> List[TrainPosition]:
        """
        Build train positions for every trip ID in either table.

        Args:
            vehicle_by_trip: Vehicle positions keyed by trip ID.
            update_by_trip: Trip updates keyed by trip ID.

        Returns:
            List of TrainPosition objects. Callers must not rely on the order.
        """
        # Vehicle-backed trips first, then trips only known from updates
        trip_ids = list(vehicle_by_trip)
        trip_ids.extend(trip_id for trip_id in update_by_trip if trip_id not in vehicle_by_trip)

        positions: List[TrainPosition] = []
        for trip_id in trip_ids:
            position = self.build_train_position(
                trip_id,
                vehicle=vehicle_by_trip.get(trip_id),
                update=update_by_trip.get(trip_id),
            )
            if position is not None:
                positions.append(position)

        logger.debug(f"Reconciled {len(positions)} train positions")
        return positions

    def build_train_position(
        self,
        trip_id: str,
        vehicle: Optional[VehiclePosition] = None,
        update: Optional[TripUpdate] = None,
    ) -> Optional[TrainPosition]:
        """
        Merge the data known about one trip.

        Args:
            trip_id: Trip ID, used as the position's id.
            vehicle: Vehicle position for the trip, if any.
            update: Trip update for the trip, if any.

        Returns:
            TrainPosition, or None when neither source has a trip descriptor.
        """
        trip = vehicle.trip if vehicle is not None and vehicle.trip is not None else None
        if trip is None and update is not None:
            trip = update.trip
        if trip is None:
            return None

        nyct = trip.nyct

        current_stop_id = None
        current_status = UNKNOWN
        last_movement = None
        if vehicle is not None:
            current_stop_id = vehicle.stop_id
            if vehicle.current_status is not None:
                current_status = vehicle.current_status.description
            last_movement = to_datetime(vehicle.timestamp)

        return TrainPosition(
            id=trip_id,
            trip_id=trip_id,
            route_id=trip.route_id,
            train_id=nyct.train_id if nyct is not None else None,
            direction=self.convert_direction(nyct),
            is_assigned=bool(nyct is not None and nyct.is_assigned),
            current_stop_id=current_stop_id,
            current_status=current_status,
            last_movement_timestamp=last_movement,
            next_stops=self.extract_stop_infos(update),
        )

    def extract_stop_infos(self, update: Optional[TripUpdate]) -> List[StopInfo]:
        """
        Map every stop time update to a StopInfo, keeping feed order.

        Entries without any predicted time are kept.
        """
        if update is None:
            return []

        stops: List[StopInfo] = []
        for stop_time_update in update.stop_time_update:
            nyct = stop_time_update.nyct
            stops.append(
                StopInfo(
                    stop_id=stop_time_update.stop_id,
                    arrival_time=self._event_time(stop_time_update.arrival),
                    departure_time=self._event_time(stop_time_update.departure),
                    scheduled_track=nyct.scheduled_track if nyct is not None else None,
                    actual_track=nyct.actual_track if nyct is not None else None,
                )
            )
        return stops

    @staticmethod
    def convert_direction(nyct: Optional[NyctTripDescriptor]) -> str:
        """
        Get the short direction code from the NYCT trip extension.

        Returns:
            "N", "S", "E", "W", or "Unknown" when the extension or its
            direction is missing or unrecognized.
        """
        if nyct is None or nyct.direction is None:
            return UNKNOWN
        return DIRECTION_CODES.get(nyct.direction, UNKNOWN)

    @staticmethod
    def _event_time(event: Optional[StopTimeEvent]) -> Optional[datetime]:
        if event is None:
            return None
        return to_datetime(event.time)
