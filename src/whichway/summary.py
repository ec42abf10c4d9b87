"""Tabular views over reconciled train positions."""

import logging
import math
from datetime import datetime, timezone
from typing import Iterable, Optional

import pandas as pd

from .models import TrainPosition, strip_platform_suffix

logger = logging.getLogger(__name__)

POSITION_COLUMNS = [
    "trip_id",
    "route_id",
    "train_id",
    "direction",
    "is_assigned",
    "current_stop_id",
    "current_status",
    "last_movement_timestamp",
    "next_stop_id",
    "stop_count",
]

ARRIVAL_COLUMNS = ["trip_id", "route_id", "direction", "stop_id", "arrival_time", "minutes_away", "actual_track"]

# Predictions further in the past than this are considered stale
STALE_PREDICTION_SECONDS = 60


def positions_to_frame(positions: Iterable[TrainPosition]) -> pd.DataFrame:
    """One row per train, sorted by route and trip ID."""
    rows = [
        {
            "trip_id": train.trip_id,
            "route_id": train.route_id,
            "train_id": train.train_id,
            "direction": train.direction,
            "is_assigned": train.is_assigned,
            "current_stop_id": train.current_stop_id,
            "current_status": train.current_status,
            "last_movement_timestamp": train.last_movement_timestamp,
            "next_stop_id": train.next_stop.stop_id if train.next_stop else None,
            "stop_count": len(train.next_stops),
        }
        for train in positions
    ]
    frame = pd.DataFrame(rows, columns=POSITION_COLUMNS)
    return frame.sort_values(["route_id", "trip_id"], ignore_index=True)


def route_direction_counts(positions: Iterable[TrainPosition]) -> pd.DataFrame:
    """Count trains per (route_id, direction)."""
    frame = positions_to_frame(positions)
    return (
        frame.groupby(["route_id", "direction"])
        .size()
        .reset_index(name="trains")
    )


def upcoming_arrivals(
    positions: Iterable[TrainPosition],
    stop_id: str,
    now: Optional[datetime] = None,
) -> pd.DataFrame:
    """
    Get predicted arrivals at a station.

    Args:
        positions: Reconciled train positions.
        stop_id: Station or platform stop ID (e.g., "127" or "127N").
            A parent ID matches both platforms.
        now: Reference time. Defaults to the current UTC time.

    Returns:
        DataFrame with ARRIVAL_COLUMNS sorted by arrival time. Stops without
        any predicted time and predictions more than a minute old are left out.
    """
    if now is None:
        now = datetime.now(timezone.utc)

    match_station = stop_id == strip_platform_suffix(stop_id)
    rows = []
    for train in positions:
        for stop in train.next_stops:
            if match_station:
                if stop.station_id != stop_id:
                    continue
            elif stop.stop_id != stop_id:
                continue

            arrival_time = stop.arrival_time or stop.departure_time
            if arrival_time is None:
                continue

            seconds_away = (arrival_time - now).total_seconds()
            if seconds_away < -STALE_PREDICTION_SECONDS:
                continue

            rows.append(
                {
                    "trip_id": train.trip_id,
                    "route_id": train.route_id,
                    "direction": train.direction,
                    "stop_id": stop.stop_id,
                    "arrival_time": arrival_time,
                    # Round up to the next minute; trains due now show 0
                    "minutes_away": 0 if seconds_away <= 0 else math.ceil(seconds_away / 60),
                    "actual_track": stop.actual_track,
                }
            )

    logger.debug(f"Found {len(rows)} upcoming arrivals at {stop_id}")
    frame = pd.DataFrame(rows, columns=ARRIVAL_COLUMNS)
    return frame.sort_values("arrival_time", ignore_index=True)
