"""NYCT subway extensions to GTFS-Realtime.

MTA publishes ``nyct-subway.proto`` alongside its feeds. The standard
``gtfs-realtime-bindings`` package does not ship it, so the descriptors are
built here and registered in the same descriptor pool as
``gtfs_realtime_pb2``. Once this module is imported, parsing a FeedMessage
decodes the NYCT fields and they can be read through ``Extensions``:

    trip.HasExtension(nyct_trip_descriptor)
    trip.Extensions[nyct_trip_descriptor].train_id
"""

import logging

from google.protobuf import descriptor_pb2, message_factory
from google.transit import gtfs_realtime_pb2

logger = logging.getLogger(__name__)

NYCT_PROTO_FILE = "nyct-subway.proto"

# Extension field number reserved for NYCT in gtfs-realtime.proto
NYCT_EXTENSION_NUMBER = 1001

_PACKAGE = "transit_realtime"

_FieldProto = descriptor_pb2.FieldDescriptorProto


def _add_field(message, name: str, number: int, field_type: int, type_name: str = None, repeated: bool = False):
    """Append a field definition to a DescriptorProto."""
    field = message.field.add()
    field.name = name
    field.number = number
    field.type = field_type
    field.label = _FieldProto.LABEL_REPEATED if repeated else _FieldProto.LABEL_OPTIONAL
    if type_name:
        field.type_name = type_name
    return field


def _add_extension(file_proto, name: str, extendee: str, type_name: str):
    extension = file_proto.extension.add()
    extension.name = name
    extension.number = NYCT_EXTENSION_NUMBER
    extension.label = _FieldProto.LABEL_OPTIONAL
    extension.type = _FieldProto.TYPE_MESSAGE
    extension.type_name = type_name
    extension.extendee = extendee
    return extension


def build_file_proto() -> descriptor_pb2.FileDescriptorProto:
    """
    Build the FileDescriptorProto for nyct-subway.proto.

    Field numbers and enum values follow the schema published by MTA, so the
    result is wire compatible with the production feeds.
    """
    file_proto = descriptor_pb2.FileDescriptorProto()
    file_proto.name = NYCT_PROTO_FILE
    file_proto.package = _PACKAGE
    file_proto.syntax = "proto2"
    file_proto.dependency.append(gtfs_realtime_pb2.DESCRIPTOR.name)

    replacement = file_proto.message_type.add()
    replacement.name = "TripReplacementPeriod"
    _add_field(replacement, "route_id", 1, _FieldProto.TYPE_STRING)
    _add_field(replacement, "replacement_period", 2, _FieldProto.TYPE_MESSAGE, f".{_PACKAGE}.TimeRange")

    header = file_proto.message_type.add()
    header.name = "NyctFeedHeader"
    _add_field(header, "nyct_subway_version", 1, _FieldProto.TYPE_STRING)
    _add_field(
        header,
        "trip_replacement_period",
        2,
        _FieldProto.TYPE_MESSAGE,
        f".{_PACKAGE}.TripReplacementPeriod",
        repeated=True,
    )

    trip = file_proto.message_type.add()
    trip.name = "NyctTripDescriptor"
    _add_field(trip, "train_id", 1, _FieldProto.TYPE_STRING)
    _add_field(trip, "is_assigned", 2, _FieldProto.TYPE_BOOL)
    _add_field(trip, "direction", 3, _FieldProto.TYPE_ENUM, f".{_PACKAGE}.NyctTripDescriptor.Direction")
    direction = trip.enum_type.add()
    direction.name = "Direction"
    for name, number in (("NORTH", 1), ("EAST", 2), ("SOUTH", 3), ("WEST", 4)):
        value = direction.value.add()
        value.name = name
        value.number = number

    stop = file_proto.message_type.add()
    stop.name = "NyctStopTimeUpdate"
    _add_field(stop, "scheduled_track", 1, _FieldProto.TYPE_STRING)
    _add_field(stop, "actual_track", 2, _FieldProto.TYPE_STRING)

    _add_extension(file_proto, "nyct_feed_header", f".{_PACKAGE}.FeedHeader", f".{_PACKAGE}.NyctFeedHeader")
    _add_extension(file_proto, "nyct_trip_descriptor", f".{_PACKAGE}.TripDescriptor", f".{_PACKAGE}.NyctTripDescriptor")
    _add_extension(
        file_proto,
        "nyct_stop_time_update",
        f".{_PACKAGE}.TripUpdate.StopTimeUpdate",
        f".{_PACKAGE}.NyctStopTimeUpdate",
    )
    return file_proto


def _register(pool):
    """Add nyct-subway.proto to the pool unless another module already did."""
    try:
        return pool.FindFileByName(NYCT_PROTO_FILE)
    except KeyError:
        pass

    logger.debug(f"Registering {NYCT_PROTO_FILE} in the GTFS-Realtime descriptor pool")
    pool.AddSerializedFile(build_file_proto().SerializeToString())
    return pool.FindFileByName(NYCT_PROTO_FILE)


DESCRIPTOR = _register(gtfs_realtime_pb2.DESCRIPTOR.pool)

_classes = message_factory.GetMessageClassesForFiles([NYCT_PROTO_FILE], DESCRIPTOR.pool)

NyctFeedHeader = _classes[f"{_PACKAGE}.NyctFeedHeader"]
NyctTripDescriptor = _classes[f"{_PACKAGE}.NyctTripDescriptor"]
NyctStopTimeUpdate = _classes[f"{_PACKAGE}.NyctStopTimeUpdate"]

nyct_feed_header = DESCRIPTOR.extensions_by_name["nyct_feed_header"]
nyct_trip_descriptor = DESCRIPTOR.extensions_by_name["nyct_trip_descriptor"]
nyct_stop_time_update = DESCRIPTOR.extensions_by_name["nyct_stop_time_update"]

# Direction enum: name -> wire value and back
DIRECTION_VALUES = {
    value.name: value.number
    for value in NyctTripDescriptor.DESCRIPTOR.enum_types_by_name["Direction"].values
}
DIRECTION_NAMES = {number: name for name, number in DIRECTION_VALUES.items()}
