"""
geometry_codec.py  –  Protobuf envelope for the window geometry file
====================================================================

Wire schema (proto3, package ``wingeometry``):

    message Position { int32 x = 1;     int32 y = 2; }
    message Size     { int32 width = 1; int32 height = 2; }
    message Window   { string name = 1; Position position = 2;
                       Size size = 3;   bool maximized = 4; }
    message Windows  { repeated Window windows = 1; }

The descriptors are built at import time from a FileDescriptorProto, so no
generated ``_pb2`` module has to be kept in sync with the schema.

Records are written sorted by window id, which makes the file byte-for-byte
reproducible for the same window set.  On load, a name that appears twice
keeps the last record.
"""

from __future__ import annotations

from typing import BinaryIO, Dict, Mapping

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory
from google.protobuf.message import DecodeError, EncodeError

from window_geometry import (
    GeometryDecodeError,
    GeometryEncodeError,
    WindowGeometry,
    WindowID,
)

PACKAGE = "wingeometry"

_F = descriptor_pb2.FieldDescriptorProto


# ══════════════════════════════════════════════════════════════════════════
#  Schema
# ══════════════════════════════════════════════════════════════════════════
def _file_descriptor() -> descriptor_pb2.FileDescriptorProto:
    fdp = descriptor_pb2.FileDescriptorProto(
        name="window_geometry.proto", package=PACKAGE, syntax="proto3",
    )

    position = fdp.message_type.add(name="Position")
    position.field.add(name="x", number=1, type=_F.TYPE_INT32, label=_F.LABEL_OPTIONAL)
    position.field.add(name="y", number=2, type=_F.TYPE_INT32, label=_F.LABEL_OPTIONAL)

    size = fdp.message_type.add(name="Size")
    size.field.add(name="width",  number=1, type=_F.TYPE_INT32, label=_F.LABEL_OPTIONAL)
    size.field.add(name="height", number=2, type=_F.TYPE_INT32, label=_F.LABEL_OPTIONAL)

    window = fdp.message_type.add(name="Window")
    window.field.add(name="name", number=1, type=_F.TYPE_STRING, label=_F.LABEL_OPTIONAL)
    window.field.add(name="position", number=2, type=_F.TYPE_MESSAGE,
                     label=_F.LABEL_OPTIONAL, type_name=f".{PACKAGE}.Position")
    window.field.add(name="size", number=3, type=_F.TYPE_MESSAGE,
                     label=_F.LABEL_OPTIONAL, type_name=f".{PACKAGE}.Size")
    window.field.add(name="maximized", number=4, type=_F.TYPE_BOOL, label=_F.LABEL_OPTIONAL)

    windows = fdp.message_type.add(name="Windows")
    windows.field.add(name="windows", number=1, type=_F.TYPE_MESSAGE,
                      label=_F.LABEL_REPEATED, type_name=f".{PACKAGE}.Window")
    return fdp


_POOL = descriptor_pool.DescriptorPool()
_POOL.AddSerializedFile(_file_descriptor().SerializeToString())

PbWindow  = message_factory.GetMessageClass(_POOL.FindMessageTypeByName(f"{PACKAGE}.Window"))
PbWindows = message_factory.GetMessageClass(_POOL.FindMessageTypeByName(f"{PACKAGE}.Windows"))


# ══════════════════════════════════════════════════════════════════════════
#  Encode / decode
# ══════════════════════════════════════════════════════════════════════════
def encode_windows(windows: Mapping[WindowID, WindowGeometry]) -> bytes:
    envelope = PbWindows()
    try:
        for id in sorted(windows):
            w = windows[id]
            pb = envelope.windows.add()
            pb.name = str(w.id)
            pb.position.x, pb.position.y = w.x, w.y
            pb.size.width, pb.size.height = w.width, w.height
            pb.maximized = bool(w.maximized)
        return envelope.SerializeToString()
    except (ValueError, TypeError, EncodeError) as exc:
        raise GeometryEncodeError(f"cannot marshal the windows: {exc}") from exc


def decode_windows(payload: bytes) -> Dict[WindowID, WindowGeometry]:
    envelope = PbWindows()
    try:
        envelope.ParseFromString(payload)
    except DecodeError as exc:
        raise GeometryDecodeError(f"cannot unmarshal the windows: {exc}") from exc

    result: Dict[WindowID, WindowGeometry] = {}
    for pb in envelope.windows:
        result[pb.name] = WindowGeometry(
            id=pb.name,
            x=pb.position.x,
            y=pb.position.y,
            width=pb.size.width,
            height=pb.size.height,
            maximized=pb.maximized,
        )
    return result


def write_payload(data: bytes, writer: BinaryIO) -> None:
    n = writer.write(data)
    if n is not None and n != len(data):
        raise GeometryEncodeError(f"could only write {n} of {len(data)} bytes")


def store_windows(windows: Mapping[WindowID, WindowGeometry], writer: BinaryIO) -> None:
    write_payload(encode_windows(windows), writer)


def load_windows(reader: BinaryIO) -> Dict[WindowID, WindowGeometry]:
    return decode_windows(reader.read())


def format_windows(windows: Mapping[WindowID, WindowGeometry]) -> str:
    return "".join(f"{windows[id]}\n" for id in sorted(windows))
