from __future__ import annotations
from typing import Iterator, List, Optional, Protocol
import logging

from .framing import BytesLike, as_view, iter_payloads, read_type_code, write_record
from .types import type_name, value_of

logger = logging.getLogger(__name__)


class ShapeCodec(Protocol):
    """Geometry model plugged into GeometrySerde."""
    def geometry_type(self, geometry) -> str: ...
    def decompose(self, geometry) -> Iterator: ...
    def encode_shape(self, geometry) -> bytes: ...
    def decode_shape(self, payload) -> object: ...
    def make_collection(self, geometries: List) -> object: ...
    def estimate_memory_size(self, geometry) -> int: ...


class GeometrySerde:
    """
    Serializes geometries into the compact record layout and back.

    The geometry model (decomposition, per-shape payloads, collections, size
    estimates) is supplied by ``codec``; this class only owns the record
    framing around it. Without a codec the shapely-backed ESRI shape codec is
    loaded on construction.
    """

    def __init__(self, codec: Optional[ShapeCodec] = None):
        if codec is None:
            from .shapes import EsriShapeCodec
            codec = EsriShapeCodec()
        self.codec = codec

    def serialize(self, geometry) -> bytes:
        type_code = value_of(self.codec.geometry_type(geometry))
        payloads = (self.codec.encode_shape(g) for g in self.codec.decompose(geometry))
        data = write_record(type_code, payloads)
        logger.debug("Serialized %s into %d bytes", type_code.name, len(data))
        return data

    def deserialize(self, data: Optional[BytesLike]):
        if data is None:
            return None
        view = as_view(data)

        geometries: List = []
        if len(view) > 0:
            for payload in iter_payloads(view):
                geometries.append(self.codec.decode_shape(payload))
            logger.debug(
                "Deserialized %s record with %d shape(s) from %d bytes",
                type_name(read_type_code(view)), len(geometries), len(view),
            )

        if not geometries:
            return self.codec.make_collection([])
        if len(geometries) == 1:
            return geometries[0]
        return self.codec.make_collection(geometries)

    def estimated_memory_size(self, geometry) -> int:
        return self.codec.estimate_memory_size(geometry)


_default: Optional[GeometrySerde] = None


def default_serde() -> GeometrySerde:
    global _default
    if _default is None:
        _default = GeometrySerde()
    return _default


def serialize(geometry) -> bytes:
    return default_serde().serialize(geometry)


def deserialize(data: Optional[BytesLike]):
    return default_serde().deserialize(data)


def get_estimated_memory_size_in_bytes(geometry) -> int:
    return default_serde().estimated_memory_size(geometry)
