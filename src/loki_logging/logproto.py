"""
Loki push protocol messages

The message classes are built at import time from a file descriptor rather
than generated by protoc. Field numbers and types follow Loki's
``logproto.PushRequest``, so the wire bytes are what Loki expects.
"""

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory, timestamp_pb2

PACKAGE = "loki_logging.logproto"

_Field = descriptor_pb2.FieldDescriptorProto


def _build_file() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="loki_logging/logproto.proto",
        package=PACKAGE,
        syntax="proto3",
        dependency=["google/protobuf/timestamp.proto"],
    )

    entry = file_proto.message_type.add(name="EntryAdapter")
    entry.field.add(
        name="timestamp",
        number=1,
        label=_Field.LABEL_OPTIONAL,
        type=_Field.TYPE_MESSAGE,
        type_name=".google.protobuf.Timestamp",
    )
    entry.field.add(
        name="line", number=2, label=_Field.LABEL_OPTIONAL, type=_Field.TYPE_STRING
    )

    stream = file_proto.message_type.add(name="StreamAdapter")
    stream.field.add(
        name="labels", number=1, label=_Field.LABEL_OPTIONAL, type=_Field.TYPE_STRING
    )
    stream.field.add(
        name="entries",
        number=2,
        label=_Field.LABEL_REPEATED,
        type=_Field.TYPE_MESSAGE,
        type_name=f".{PACKAGE}.EntryAdapter",
    )

    push = file_proto.message_type.add(name="PushRequest")
    push.field.add(
        name="streams",
        number=1,
        label=_Field.LABEL_REPEATED,
        type=_Field.TYPE_MESSAGE,
        type_name=f".{PACKAGE}.StreamAdapter",
    )
    return file_proto


# Private pool so the messages never clash with another copy of logproto
_pool = descriptor_pool.DescriptorPool()
_pool.AddSerializedFile(timestamp_pb2.DESCRIPTOR.serialized_pb)
_pool.AddSerializedFile(_build_file().SerializeToString())


def _message_class(name: str):
    return message_factory.GetMessageClass(
        _pool.FindMessageTypeByName(f"{PACKAGE}.{name}")
    )


EntryAdapter = _message_class("EntryAdapter")
StreamAdapter = _message_class("StreamAdapter")
PushRequest = _message_class("PushRequest")
