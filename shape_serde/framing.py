"""
Record framing shared by the full decoder and the envelope extractor.

A serialized record is laid out as

    type_code(1 byte) | shape_1 | shape_2 | ... | shape_n

For a GeometryCollection every shape is prefixed by its length as a
little-endian int32. Any other type carries exactly one shape that runs to the
end of the buffer.
"""
from __future__ import annotations
import struct
from typing import Iterator, Union

from .errors import MalformedRecord
from .types import GeometryTypeName, from_code

BytesLike = Union[bytes, bytearray, memoryview]

_LENGTH = struct.Struct("<i")


def as_view(data: BytesLike) -> memoryview:
    view = memoryview(data)
    if view.format != "B" or view.ndim != 1:
        view = view.cast("B")
    return view


def read_type_code(view: memoryview) -> GeometryTypeName:
    if len(view) == 0:
        raise MalformedRecord("Missing geometry type code")
    return from_code(view[0])


def iter_payloads(view: memoryview) -> Iterator[memoryview]:
    """Yield each shape payload of a non-empty record, in stored order."""
    is_collection = read_type_code(view) is GeometryTypeName.GEOMETRY_COLLECTION
    offset = 1
    end = len(view)
    while offset < end:
        if is_collection:
            if end - offset < _LENGTH.size:
                raise MalformedRecord(
                    f"Truncated length prefix at offset {offset}: {end - offset} bytes left"
                )
            (length,) = _LENGTH.unpack_from(view, offset)
            offset += _LENGTH.size
            if length < 0 or length > end - offset:
                raise MalformedRecord(
                    f"Shape length {length} at offset {offset - _LENGTH.size} "
                    f"exceeds remaining {end - offset} bytes"
                )
        else:
            length = end - offset
        yield view[offset:offset + length]
        offset += length


def write_record(type_code: GeometryTypeName, payloads) -> bytes:
    """Frame already-encoded shape payloads behind their record type code."""
    out = bytearray()
    out.append(int(type_code))
    if type_code is GeometryTypeName.GEOMETRY_COLLECTION:
        for payload in payloads:
            out += _LENGTH.pack(len(payload))
            out += payload
    else:
        count = 0
        for payload in payloads:
            count += 1
            if count > 1:
                raise ValueError(f"{type_code.name} record takes exactly one shape")
            out += payload
        if count != 1:
            raise ValueError(f"{type_code.name} record takes exactly one shape, got none")
    return bytes(out)
