"""Main WhichWay train tracker class."""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from .mta_client import MTAClient
from .models import TrainPosition, strip_platform_suffix
from .reconciler import TrainPositionReconciler
from .station_resolver import StationNameResolver

logger = logging.getLogger(__name__)


class TrainTracker:
    """
    Tracks live subway train positions from a GTFS-Realtime feed.

    This class provides methods to:
    - Refresh train positions from the latest feed snapshot
    - Filter trains by route or current stop
    - Group trains by direction for display
    """

    def __init__(
        self,
        feed_provider=None,
        reconciler: Optional[TrainPositionReconciler] = None,
        station_resolver: Optional[StationNameResolver] = None,
    ):
        """
        Initialize the tracker.

        Args:
            feed_provider: Object with a fetch_feed() method returning a
                FeedMessage. Defaults to an MTAClient for the A/C/E feed.
            reconciler: Reconciler used to build positions from each feed.
            station_resolver: Resolver used for station names in describe().
        """
        self.feed_provider = feed_provider or MTAClient()
        self.reconciler = reconciler or TrainPositionReconciler()
        self.station_resolver = station_resolver or StationNameResolver()
        self.train_positions: List[TrainPosition] = []
        self.last_updated: Optional[datetime] = None

    def refresh(self) -> List[TrainPosition]:
        """
        Fetch the latest feed and rebuild all train positions.

        Returns:
            The new list of TrainPosition objects.

        Raises:
            Whatever the feed provider raises; previous positions are kept.
        """
        try:
            feed = self.feed_provider.fetch_feed()
        except Exception as e:
            logger.error(f"Failed to load train positions: {e}")
            raise

        self.train_positions = self.reconciler.process_feed(feed)
        self.last_updated = datetime.now(timezone.utc)
        logger.info(f"Loaded {len(self.train_positions)} train positions")
        return self.train_positions

    def get_trains_for_route(self, route_id: str) -> List[TrainPosition]:
        """Get all trains running on a route, sorted by trip ID."""
        trains = [train for train in self.train_positions if train.route_id == route_id]
        return sorted(trains, key=lambda train: train.trip_id)

    def get_trains_by_direction(self, route_id: Optional[str] = None) -> Dict[str, List[TrainPosition]]:
        """
        Group trains by rider-facing direction.

        Args:
            route_id: Optional route to restrict to.

        Returns:
            Dictionary organized as:
            {
                "Uptown/Bronx": [TrainPosition, ...],
                "Downtown/Brooklyn": [...],
            }
            Each group is sorted by trip ID.
        """
        trains = self.train_positions
        if route_id is not None:
            trains = [train for train in trains if train.route_id == route_id]

        result: Dict[str, List[TrainPosition]] = {}
        for train in trains:
            result.setdefault(train.direction_name, []).append(train)

        for direction in result:
            result[direction].sort(key=lambda train: train.trip_id)
        return result

    def get_trains_at_stop(self, stop_id: str) -> List[TrainPosition]:
        """Get trains whose current stop is this station, on either platform."""
        station_id = strip_platform_suffix(stop_id)
        return [
            train for train in self.train_positions
            if train.current_stop_id is not None
            and strip_platform_suffix(train.current_stop_id) == station_id
        ]

    def describe(self, train: TrainPosition) -> Dict[str, Optional[str]]:
        """
        Build display fields for a train.

        Returns:
            Dictionary with name, direction, status, last_station and
            next_station. Station fields are "Unknown" when not available.
        """
        last_station = "Unknown"
        if train.current_stop_id:
            last_station = self.station_resolver.resolve_name(train.current_stop_id)

        next_station = "Unknown"
        if train.next_stop is not None:
            next_station = self.station_resolver.resolve_name(train.next_stop.stop_id)

        return {
            "name": train.display_name,
            "train_id": train.train_id,
            "direction": train.direction_name,
            "status": train.current_status,
            "last_station": last_station,
            "next_station": next_station,
        }

    def cleanup(self) -> None:
        """Release resources and clear caches."""
        if isinstance(self.feed_provider, MTAClient):
            self.feed_provider.clear_cache()
        self.station_resolver.clear_cache()
        self.train_positions = []
        logger.info("Cleaned up tracker resources")
