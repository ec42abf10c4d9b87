"""Decode GTFS-Realtime protobuf messages into WhichWay value objects."""

import logging
from typing import Optional

from google.protobuf.message import DecodeError
from google.transit import gtfs_realtime_pb2

from . import nyct_subway
from .models import (
    FeedEntity,
    FeedHeader,
    FeedMessage,
    NyctStopTimeUpdate,
    NyctTripDescriptor,
    Position,
    StopTimeEvent,
    StopTimeUpdate,
    TripDescriptor,
    TripUpdate,
    VehiclePosition,
    VehicleStopStatus,
)

logger = logging.getLogger(__name__)


class FeedDecodeError(ValueError):
    """Raised when feed bytes are not a valid GTFS-Realtime FeedMessage."""


def _optional(message, field_name: str):
    """Return a scalar field's value, or None when it is not set on the wire."""
    return getattr(message, field_name) if message.HasField(field_name) else None


def decode_feed(data: bytes) -> FeedMessage:
    """
    Parse raw GTFS-Realtime bytes.

    Args:
        data: Protobuf bytes as served by the MTA feed endpoint.

    Returns:
        Decoded FeedMessage.

    Raises:
        FeedDecodeError: If the bytes are not a valid FeedMessage.
    """
    feed = gtfs_realtime_pb2.FeedMessage()
    try:
        feed.ParseFromString(data)
    except DecodeError as e:
        logger.error(f"Failed to decode GTFS-Realtime feed ({len(data)} bytes): {e}")
        raise FeedDecodeError(f"Invalid GTFS-Realtime feed: {e}") from e

    return from_protobuf(feed)


def from_protobuf(feed) -> FeedMessage:
    """Convert a parsed gtfs_realtime_pb2.FeedMessage into value objects."""
    message = FeedMessage(
        header=_decode_header(feed.header),
        entities=[_decode_entity(entity) for entity in feed.entity],
    )
    logger.debug(f"Decoded feed with {len(message.entities)} entities")
    return message


def _decode_header(header) -> FeedHeader:
    nyct_version = None
    if header.HasExtension(nyct_subway.nyct_feed_header):
        nyct_header = header.Extensions[nyct_subway.nyct_feed_header]
        nyct_version = _optional(nyct_header, "nyct_subway_version")

    return FeedHeader(
        gtfs_realtime_version=header.gtfs_realtime_version,
        timestamp=_optional(header, "timestamp"),
        nyct_subway_version=nyct_version,
    )


def _decode_entity(entity) -> FeedEntity:
    return FeedEntity(
        id=entity.id,
        vehicle=_decode_vehicle(entity.vehicle) if entity.HasField("vehicle") else None,
        trip_update=_decode_trip_update(entity.trip_update) if entity.HasField("trip_update") else None,
        has_alert=entity.HasField("alert"),
    )


def _decode_trip(trip) -> TripDescriptor:
    nyct = None
    if trip.HasExtension(nyct_subway.nyct_trip_descriptor):
        nyct = _decode_nyct_trip(trip.Extensions[nyct_subway.nyct_trip_descriptor])

    return TripDescriptor(
        trip_id=trip.trip_id,
        route_id=trip.route_id,
        start_date=_optional(trip, "start_date"),
        start_time=_optional(trip, "start_time"),
        nyct=nyct,
    )


def _decode_nyct_trip(nyct) -> NyctTripDescriptor:
    direction = None
    if nyct.HasField("direction"):
        # Values outside the published enum are kept as their number so the
        # reconciler can treat them as unrecognized.
        direction = nyct_subway.DIRECTION_NAMES.get(nyct.direction, str(nyct.direction))

    return NyctTripDescriptor(
        train_id=_optional(nyct, "train_id"),
        is_assigned=_optional(nyct, "is_assigned"),
        direction=direction,
    )


def _decode_vehicle(vehicle) -> VehiclePosition:
    position = None
    if vehicle.HasField("position"):
        position = Position(
            latitude=vehicle.position.latitude,
            longitude=vehicle.position.longitude,
            bearing=_optional(vehicle.position, "bearing"),
            speed=_optional(vehicle.position, "speed"),
        )

    return VehiclePosition(
        trip=_decode_trip(vehicle.trip) if vehicle.HasField("trip") else None,
        position=position,
        stop_id=_optional(vehicle, "stop_id"),
        current_status=_decode_status(vehicle),
        timestamp=_optional(vehicle, "timestamp"),
    )


def _decode_status(vehicle) -> Optional[VehicleStopStatus]:
    if not vehicle.HasField("current_status"):
        return None
    try:
        return VehicleStopStatus(vehicle.current_status)
    except ValueError:
        logger.warning(f"Unrecognized vehicle stop status {vehicle.current_status}")
        return None


def _decode_trip_update(trip_update) -> TripUpdate:
    return TripUpdate(
        trip=_decode_trip(trip_update.trip) if trip_update.HasField("trip") else None,
        stop_time_update=[_decode_stop_time_update(stu) for stu in trip_update.stop_time_update],
        timestamp=_optional(trip_update, "timestamp"),
    )


def _decode_event(stop_time_update, field_name: str) -> Optional[StopTimeEvent]:
    if not stop_time_update.HasField(field_name):
        return None
    event = getattr(stop_time_update, field_name)
    return StopTimeEvent(time=_optional(event, "time"), delay=_optional(event, "delay"))


def _decode_stop_time_update(stop_time_update) -> StopTimeUpdate:
    nyct = None
    if stop_time_update.HasExtension(nyct_subway.nyct_stop_time_update):
        nyct_update = stop_time_update.Extensions[nyct_subway.nyct_stop_time_update]
        nyct = NyctStopTimeUpdate(
            scheduled_track=_optional(nyct_update, "scheduled_track"),
            actual_track=_optional(nyct_update, "actual_track"),
        )

    return StopTimeUpdate(
        stop_id=stop_time_update.stop_id,
        arrival=_decode_event(stop_time_update, "arrival"),
        departure=_decode_event(stop_time_update, "departure"),
        nyct=nyct,
    )
