"""Tests for TrainTracker, StationNameResolver and the summary helpers."""

import unittest
from unittest.mock import MagicMock
from datetime import datetime, timedelta, timezone
import sys
from pathlib import Path

# Add src to path so we can import whichway
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from whichway.models import (
    FeedEntity,
    FeedHeader,
    FeedMessage,
    NyctTripDescriptor,
    StopInfo,
    StopTimeEvent,
    StopTimeUpdate,
    TrainPosition,
    TripDescriptor,
    TripUpdate,
    VehiclePosition,
    VehicleStopStatus,
)
from whichway.station_resolver import StationNameResolver
from whichway.summary import positions_to_frame, route_direction_counts, upcoming_arrivals
from whichway.train_tracker import TrainTracker

NOW = datetime(2025, 7, 9, 12, 0, tzinfo=timezone.utc)


def make_train(trip_id, route_id="A", direction="N", current_stop_id=None, next_stops=None) -> TrainPosition:
    return TrainPosition(
        id=trip_id,
        trip_id=trip_id,
        route_id=route_id,
        direction=direction,
        current_stop_id=current_stop_id,
        next_stops=next_stops or [],
    )


def create_feed() -> FeedMessage:
    """A/C trains in both directions, one only known from its trip update."""
    def vehicle(trip_id, route_id, direction, stop_id):
        return VehiclePosition(
            trip=TripDescriptor(trip_id=trip_id, route_id=route_id, nyct=NyctTripDescriptor(direction=direction)),
            stop_id=stop_id,
            current_status=VehicleStopStatus.STOPPED_AT,
        )

    update = TripUpdate(
        trip=TripDescriptor(trip_id="A3", route_id="A", nyct=NyctTripDescriptor(direction="SOUTH")),
        stop_time_update=[StopTimeUpdate(stop_id="A27S", arrival=StopTimeEvent(time=1752062460))],
    )
    return FeedMessage(
        header=FeedHeader(gtfs_realtime_version="1.0"),
        entities=[
            FeedEntity(id="1", vehicle=vehicle("A2", "A", "NORTH", "A27N")),
            FeedEntity(id="2", vehicle=vehicle("A1", "A", "NORTH", "A24N")),
            FeedEntity(id="3", vehicle=vehicle("C1", "C", "SOUTH", "A27S")),
            FeedEntity(id="4", trip_update=update),
        ],
    )


class TestTrainTracker(unittest.TestCase):
    """Test the tracker facade."""

    def setUp(self):
        self.provider = MagicMock()
        self.provider.fetch_feed.return_value = create_feed()
        self.tracker = TrainTracker(feed_provider=self.provider)

    def test_refresh(self):
        """Refreshing reconciles the provider's feed."""
        positions = self.tracker.refresh()

        self.assertEqual(len(positions), 4)
        self.assertIs(self.tracker.train_positions, positions)
        self.assertIsInstance(self.tracker.last_updated, datetime)
        self.provider.fetch_feed.assert_called_once()

    def test_refresh_failure_keeps_previous_positions(self):
        """Fetch errors propagate and leave the old positions in place."""
        self.tracker.refresh()
        self.provider.fetch_feed.side_effect = ValueError("bad feed")

        with self.assertRaises(ValueError):
            self.tracker.refresh()
        self.assertEqual(len(self.tracker.train_positions), 4)

    def test_get_trains_for_route(self):
        """Trains are filtered by route and sorted by trip ID."""
        self.tracker.refresh()

        trains = self.tracker.get_trains_for_route("A")

        self.assertEqual([train.trip_id for train in trains], ["A1", "A2", "A3"])

    def test_get_trains_by_direction(self):
        """Trains are grouped under rider-facing direction labels."""
        self.tracker.refresh()

        groups = self.tracker.get_trains_by_direction("A")

        self.assertEqual(set(groups), {"Uptown/Bronx", "Downtown/Brooklyn"})
        self.assertEqual([train.trip_id for train in groups["Uptown/Bronx"]], ["A1", "A2"])
        self.assertEqual([train.trip_id for train in groups["Downtown/Brooklyn"]], ["A3"])

    def test_get_trains_by_direction_all_routes(self):
        """Without a route every train is grouped."""
        self.tracker.refresh()

        groups = self.tracker.get_trains_by_direction()

        self.assertEqual(sum(len(trains) for trains in groups.values()), 4)

    def test_get_trains_at_stop(self):
        """Both platforms of a station match."""
        self.tracker.refresh()

        trains = self.tracker.get_trains_at_stop("A27")

        self.assertEqual(sorted(train.trip_id for train in trains), ["A2", "C1"])

    def test_describe(self):
        """Display fields use resolved station names."""
        train = make_train(
            "T1",
            route_id="A",
            direction="N",
            current_stop_id="A24N",
            next_stops=[StopInfo(stop_id="A27N")],
        )

        info = self.tracker.describe(train)

        self.assertEqual(info["name"], "A Train")
        self.assertEqual(info["direction"], "Uptown/Bronx")
        self.assertEqual(info["status"], "Unknown")
        self.assertEqual(info["last_station"], "59 St-Columbus Circle")
        self.assertEqual(info["next_station"], "42 St-Port Authority Bus Terminal")

    def test_describe_without_stops(self):
        """Missing stops are shown as Unknown."""
        info = self.tracker.describe(make_train("T1"))

        self.assertEqual(info["last_station"], "Unknown")
        self.assertEqual(info["next_station"], "Unknown")

    def test_cleanup(self):
        """Cleanup drops the current positions."""
        self.tracker.refresh()
        self.tracker.cleanup()

        self.assertEqual(self.tracker.train_positions, [])


class TestTrainPositionDisplay(unittest.TestCase):
    """Test display properties of the models."""

    def test_direction_names(self):
        """Direction codes map to NYC-style labels."""
        self.assertEqual(make_train("T", direction="N").direction_name, "Uptown/Bronx")
        self.assertEqual(make_train("T", direction="S").direction_name, "Downtown/Brooklyn")
        self.assertEqual(make_train("T", direction="E").direction_name, "East")
        self.assertEqual(make_train("T", direction="W").direction_name, "West")
        self.assertEqual(make_train("T", direction="Unknown").direction_name, "Unknown")

    def test_display_name_and_next_stop(self):
        train = make_train("T", route_id="L", next_stops=[StopInfo(stop_id="L01N"), StopInfo(stop_id="L02N")])

        self.assertEqual(train.display_name, "L Train")
        self.assertEqual(train.next_stop.stop_id, "L01N")
        self.assertIsNone(make_train("T").next_stop)

    def test_station_id(self):
        """Platform suffixes are stripped."""
        self.assertEqual(StopInfo(stop_id="127N").station_id, "127")
        self.assertEqual(StopInfo(stop_id="A27S").station_id, "A27")
        self.assertEqual(StopInfo(stop_id="127").station_id, "127")


class TestStationNameResolver(unittest.TestCase):
    """Test stop ID lookups."""

    def setUp(self):
        self.resolver = StationNameResolver()

    def test_resolve_platform_id(self):
        """Platform IDs resolve through their parent station."""
        self.assertEqual(self.resolver.resolve_name("127N"), "Times Sq-42 St")
        self.assertEqual(self.resolver.resolve_name("127S"), "Times Sq-42 St")
        self.assertEqual(self.resolver.resolve_name("127"), "Times Sq-42 St")

    def test_resolve_unknown_name(self):
        """Unknown stops get a generic name."""
        self.assertEqual(self.resolver.resolve_name("999N"), "Station 999")

    def test_resolve_coordinate(self):
        latitude, longitude = self.resolver.resolve_coordinate("631S")

        self.assertAlmostEqual(latitude, 40.7518, places=3)
        self.assertAlmostEqual(longitude, -73.9768, places=3)
        self.assertIsNone(self.resolver.resolve_coordinate("999N"))

    def test_add_station_mapping(self):
        """Runtime mappings are used until the cache is cleared."""
        self.resolver.add_station_mapping("H04", "Broad Channel", (40.608382, -73.815925))

        self.assertEqual(self.resolver.resolve_name("H04N"), "Broad Channel")
        self.assertEqual(self.resolver.resolve_coordinate("H04S"), (40.608382, -73.815925))

        self.resolver.clear_cache()

        self.assertEqual(self.resolver.resolve_name("H04"), "Station H04")
        self.assertEqual(self.resolver.resolve_name("127N"), "Times Sq-42 St")


class TestSummary(unittest.TestCase):
    """Test pandas views over positions."""

    def setUp(self):
        self.positions = [
            make_train(
                "A2",
                route_id="A",
                direction="N",
                next_stops=[
                    StopInfo(stop_id="A27N", arrival_time=NOW + timedelta(seconds=150), actual_track="A1"),
                    StopInfo(stop_id="A28N", arrival_time=NOW + timedelta(seconds=300)),
                ],
            ),
            make_train(
                "A1",
                route_id="A",
                direction="N",
                next_stops=[StopInfo(stop_id="A27N", departure_time=NOW + timedelta(seconds=30))],
            ),
            make_train(
                "C1",
                route_id="C",
                direction="S",
                next_stops=[
                    StopInfo(stop_id="A27S", arrival_time=NOW - timedelta(seconds=20)),
                    StopInfo(stop_id="A25S"),
                ],
            ),
            make_train(
                "C2",
                route_id="C",
                direction="S",
                next_stops=[StopInfo(stop_id="A27S", arrival_time=NOW - timedelta(seconds=600))],
            ),
        ]

    def test_positions_to_frame(self):
        """One row per train, sorted by route then trip."""
        frame = positions_to_frame(self.positions)

        self.assertEqual(list(frame["trip_id"]), ["A1", "A2", "C1", "C2"])
        self.assertEqual(list(frame["stop_count"]), [1, 2, 2, 1])
        self.assertEqual(frame.loc[1, "next_stop_id"], "A27N")

    def test_positions_to_frame_empty(self):
        frame = positions_to_frame([])

        self.assertTrue(frame.empty)
        self.assertIn("trip_id", frame.columns)

    def test_route_direction_counts(self):
        counts = route_direction_counts(self.positions)
        result = {(row.route_id, row.direction): row.trains for row in counts.itertuples()}

        self.assertEqual(result, {("A", "N"): 2, ("C", "S"): 2})

    def test_upcoming_arrivals_at_platform(self):
        """Platform IDs match only that platform, sorted by time."""
        arrivals = upcoming_arrivals(self.positions, "A27N", now=NOW)

        self.assertEqual(list(arrivals["trip_id"]), ["A1", "A2"])
        self.assertEqual(list(arrivals["minutes_away"]), [1, 3])
        self.assertEqual(arrivals.loc[1, "actual_track"], "A1")

    def test_upcoming_arrivals_at_station(self):
        """Parent IDs match both platforms; stale predictions are dropped."""
        arrivals = upcoming_arrivals(self.positions, "A27", now=NOW)

        self.assertEqual(list(arrivals["trip_id"]), ["C1", "A1", "A2"])
        self.assertEqual(arrivals.loc[0, "minutes_away"], 0)

    def test_upcoming_arrivals_skips_stops_without_times(self):
        arrivals = upcoming_arrivals(self.positions, "A25S", now=NOW)

        self.assertTrue(arrivals.empty)


if __name__ == "__main__":
    unittest.main()
