"""MTA GTFS-Realtime feed fetcher."""

import logging
import time
from typing import Dict, List, Optional, Tuple

import requests

from .feed_decoder import decode_feed
from .models import FeedMessage, TrainPosition
from .reconciler import TrainPositionReconciler

logger = logging.getLogger(__name__)

# MTA GTFS-Realtime feed URLs (subway only)
MTA_FEEDS = {
    "ace": "https://api-endpoint.mta.info/Dataservice/mtagtfsfeeds/nyct%2Fgtfs-ace",
    "bdfm": "https://api-endpoint.mta.info/Dataservice/mtagtfsfeeds/nyct%2Fgtfs-bdfm",
    "g": "https://api-endpoint.mta.info/Dataservice/mtagtfsfeeds/nyct%2Fgtfs-g",
    "jz": "https://api-endpoint.mta.info/Dataservice/mtagtfsfeeds/nyct%2Fgtfs-jz",
    "nqrw": "https://api-endpoint.mta.info/Dataservice/mtagtfsfeeds/nyct%2Fgtfs-nqrw",
    "l": "https://api-endpoint.mta.info/Dataservice/mtagtfsfeeds/nyct%2Fgtfs-l",
    "1234567": "https://api-endpoint.mta.info/Dataservice/mtagtfsfeeds/nyct%2Fgtfs",  # 1-7, S
    "si": "https://api-endpoint.mta.info/Dataservice/mtagtfsfeeds/nyct%2Fgtfs-si",
}

ROUTE_TO_FEED = {
    "A": "ace", "C": "ace", "E": "ace", "H": "ace", "FS": "ace",
    "B": "bdfm", "D": "bdfm", "F": "bdfm", "M": "bdfm",
    "G": "g",
    "J": "jz", "Z": "jz",
    "N": "nqrw", "Q": "nqrw", "R": "nqrw", "W": "nqrw",
    "L": "l",
    "1": "1234567", "2": "1234567", "3": "1234567", "4": "1234567",
    "5": "1234567", "6": "1234567", "7": "1234567", "GS": "1234567",
    "SI": "si",
}

DEFAULT_FEED_URL = MTA_FEEDS["ace"]
FEED_TIMEOUT_SECONDS = 10
CACHE_TTL_SECONDS = 30


def feed_url_for_route(route_id: str) -> str:
    """
    Get the feed URL that carries a route.

    Raises:
        ValueError: If the route is not served by any known feed.
    """
    feed_name = ROUTE_TO_FEED.get(route_id.upper())
    if feed_name is None:
        raise ValueError(f"No realtime feed known for route '{route_id}'")
    return MTA_FEEDS[feed_name]


class MTAClient:
    """Fetches and decodes MTA GTFS-Realtime feeds."""

    def __init__(
        self,
        feed_url: str = DEFAULT_FEED_URL,
        cache_ttl: float = CACHE_TTL_SECONDS,
        timeout: float = FEED_TIMEOUT_SECONDS,
        reconciler: Optional[TrainPositionReconciler] = None,
    ):
        """
        Initialize the MTA client.

        Args:
            feed_url: Feed fetched by fetch_feed() when no URL is given.
            cache_ttl: Seconds a fetched feed is reused before refetching.
            timeout: HTTP timeout in seconds.
            reconciler: Reconciler used by get_train_positions().
        """
        self.feed_url = feed_url
        self.timeout = timeout
        self.reconciler = reconciler or TrainPositionReconciler()
        self._cache: Dict[str, Tuple[bytes, float]] = {}  # feed_url -> (data, timestamp)
        self._cache_ttl = cache_ttl
        self._max_cache_size = len(MTA_FEEDS)

    def fetch_feed(self, feed_url: Optional[str] = None) -> FeedMessage:
        """
        Fetch and decode a GTFS-Realtime feed.

        Args:
            feed_url: Optional feed URL. Defaults to the client's feed.

        Returns:
            Decoded FeedMessage.

        Raises:
            requests.RequestException: If the feed cannot be fetched.
            FeedDecodeError: If the response is not a valid feed.
        """
        return decode_feed(self.fetch_feed_bytes(feed_url or self.feed_url))

    def get_train_positions(self, feed_urls: List[str] = None) -> List[TrainPosition]:
        """
        Get reconciled train positions.

        Args:
            feed_urls: Optional list of feed URLs. If None, queries the client's feed.

        Returns:
            List of TrainPosition objects in no particular order.
        """
        if feed_urls is None:
            feed_urls = [self.feed_url]

        positions: List[TrainPosition] = []
        for feed_url in feed_urls:
            positions.extend(self.reconciler.process_feed(self.fetch_feed(feed_url)))
        return positions

    def fetch_feed_bytes(self, feed_url: str) -> bytes:
        """
        Fetch and cache a GTFS-Realtime feed.

        Args:
            feed_url: Full URL to the feed.

        Returns:
            Raw protobuf bytes.
        """
        # Check cache
        now = time.time()
        if feed_url in self._cache:
            data, timestamp = self._cache[feed_url]
            if now - timestamp < self._cache_ttl:
                logger.debug(f"Using cached data for {feed_url}")
                return data

        # Evict expired entries to prevent unbounded growth
        self._evict_expired_cache(now)

        # Enforce max cache size
        if len(self._cache) >= self._max_cache_size:
            oldest_key = min(self._cache.keys(), key=lambda k: self._cache[k][1])
            del self._cache[oldest_key]

        logger.debug(f"Fetching {feed_url}")
        try:
            response = requests.get(feed_url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Failed to fetch {feed_url}: {e}")
            raise

        data = response.content
        self._cache[feed_url] = (data, now)
        return data

    def _evict_expired_cache(self, current_time: float) -> None:
        """Remove expired cache entries."""
        expired_keys = [
            url for url, (_, timestamp) in self._cache.items()
            if current_time - timestamp >= self._cache_ttl
        ]
        for key in expired_keys:
            del self._cache[key]

        if expired_keys:
            logger.debug(f"Evicted {len(expired_keys)} expired cache entries")

    def clear_cache(self) -> None:
        """Manually clear the cache."""
        self._cache.clear()
