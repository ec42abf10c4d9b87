"""WhichWay - Live NYC subway train positions from MTA GTFS-Realtime feeds."""

__version__ = "0.1.0"

from .models import FeedMessage, TrainPosition, StopInfo
from .feed_decoder import FeedDecodeError, decode_feed
from .indexer import FeedEntityIndexer, FeedIndex
from .reconciler import TrainPositionReconciler
from .mta_client import MTAClient
from .station_resolver import StationNameResolver
from .train_tracker import TrainTracker

__all__ = [
    "TrainTracker",
    "TrainPositionReconciler",
    "FeedEntityIndexer",
    "FeedIndex",
    "MTAClient",
    "StationNameResolver",
    "FeedDecodeError",
    "decode_feed",
    "FeedMessage",
    "TrainPosition",
    "StopInfo",
]
