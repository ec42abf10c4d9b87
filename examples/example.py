"""Example usage of TrainTracker."""

import logging
import sys
from pathlib import Path

import requests

# Add src to path so we can import whichway
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from whichway.mta_client import MTAClient, feed_url_for_route
from whichway.summary import route_direction_counts, upcoming_arrivals
from whichway.train_tracker import TrainTracker

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


def print_route_trains(route_id: str, stop_id: str = None):
    """
    Fetch and display live trains for a route.

    Args:
        route_id: Route ID (e.g., "A" or "4")
        stop_id: Optional stop ID to list upcoming arrivals for (e.g., "A27")
    """
    print(f"\n{'='*70}")
    print(f"Fetching live trains for: {route_id}")
    print(f"{'='*70}\n")

    try:
        tracker = TrainTracker(feed_provider=MTAClient(feed_url=feed_url_for_route(route_id)))
        tracker.refresh()
    except ValueError as e:
        # Unknown route, or a feed that failed to decode
        print(f"Error: {e}")
        sys.exit(1)
    except requests.RequestException as e:
        logger.error(f"Failed to fetch data: {e}", exc_info=True)
        print(f"Error: {e}")
        sys.exit(1)

    print(f"Last updated: {tracker.last_updated.strftime('%H:%M:%S')} UTC\n")

    by_direction = tracker.get_trains_by_direction(route_id)
    if not by_direction:
        print("  No trains found")
    for direction, trains in by_direction.items():
        print(f"\n{direction}:")
        for train in trains:
            info = tracker.describe(train)
            train_id = info["train_id"] or "-"
            print(
                f"  {info['name']} [{train_id}] {info['status']}: "
                f"{info['last_station']} → {info['next_station']}"
            )

    print("\n" + "=" * 70)
    print("TRAINS PER ROUTE AND DIRECTION:")
    print("-" * 70)
    print(route_direction_counts(tracker.train_positions).to_string(index=False))

    if stop_id:
        print("\n" + "=" * 70)
        print(f"UPCOMING ARRIVALS AT {tracker.station_resolver.resolve_name(stop_id)}:")
        print("-" * 70)
        arrivals = upcoming_arrivals(tracker.train_positions, stop_id)
        if arrivals.empty:
            print("  No arrivals found")
        for row in arrivals.itertuples():
            track = f" (track {row.actual_track})" if row.actual_track else ""
            print(f"  {row.route_id} {row.direction}: {row.minutes_away:2d} min{track}")

    print("\n" + "=" * 70 + "\n")


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python example.py ROUTE_ID [STOP_ID]")
        sys.exit(1)
    print_route_trains(sys.argv[1], sys.argv[2] if len(sys.argv) > 2 else None)
