"""Index feed entities by trip ID."""

import logging
from dataclasses import dataclass, field
from typing import Dict

from .models import FeedMessage, TripUpdate, VehiclePosition

logger = logging.getLogger(__name__)


@dataclass
class FeedIndex:
    """Vehicle positions and trip updates of one feed, keyed by trip ID."""
    vehicle_by_trip: Dict[str, VehiclePosition] = field(default_factory=dict)
    update_by_trip: Dict[str, TripUpdate] = field(default_factory=dict)


class FeedEntityIndexer:
    """
    Splits a feed into vehicle position and trip update lookup tables.

    When several entities of the same kind share a trip ID, the one that comes
    last in the feed replaces the earlier ones. Feeds are not expected to
    repeat trips, so which duplicate survives carries no meaning.
    """

    def index(self, feed: FeedMessage) -> FeedIndex:
        """
        Build both lookup tables in one pass over the feed entities.

        Args:
            feed: Decoded feed snapshot. It is not modified.

        Returns:
            FeedIndex with vehicle_by_trip and update_by_trip.
        """
        result = FeedIndex()

        for entity in feed.entities:
            vehicle = entity.vehicle
            if vehicle is not None and vehicle.trip is not None:
                trip_id = vehicle.trip.trip_id
                if trip_id:
                    if trip_id in result.vehicle_by_trip:
                        logger.debug(f"Duplicate vehicle position for trip {trip_id}, keeping entity {entity.id}")
                    result.vehicle_by_trip[trip_id] = vehicle
                else:
                    logger.warning(f"Skipping vehicle position in entity {entity.id}: empty trip ID")

            trip_update = entity.trip_update
            if trip_update is not None:
                if trip_update.trip is None or not trip_update.trip.trip_id:
                    logger.warning(f"Skipping trip update in entity {entity.id}: missing trip ID")
                    continue
                trip_id = trip_update.trip.trip_id
                if trip_id in result.update_by_trip:
                    logger.debug(f"Duplicate trip update for trip {trip_id}, keeping entity {entity.id}")
                result.update_by_trip[trip_id] = trip_update

        logger.debug(
            f"Indexed {len(result.vehicle_by_trip)} vehicle positions and "
            f"{len(result.update_by_trip)} trip updates from {len(feed.entities)} entities"
        )
        return result
