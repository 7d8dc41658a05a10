"""
Native shape payloads.

Each atomic geometry is stored as an ESRI shape record body (the part of a
.shp record after its header), little-endian:

    Point       int32 type=1, double x, double y
    MultiPoint  int32 type=8, 4d bbox, int32 numPoints, numPoints * 2d
    PolyLine    int32 type=3, 4d bbox, int32 numParts, int32 numPoints,
                numParts * int32 part start, numPoints * 2d
    Polygon     int32 type=5, same layout as PolyLine

Polygon exterior rings are clockwise and holes counter-clockwise. Empty shapes
write NaN coordinates and zero counts. Only XY is stored.
"""
from __future__ import annotations
from typing import Iterable, Iterator, List
import math
import struct

import numpy as np
import shapely
from shapely.geometry import (
    Point,
    LineString,
    Polygon,
    MultiPoint,
    MultiLineString,
    MultiPolygon,
    GeometryCollection,
)
from shapely.geometry.polygon import orient

from .envelope import POINT_TYPE, is_esri_nan
from .errors import InvalidGeometryType, MalformedRecord
from . import types

POLYLINE_TYPE = 3
POLYGON_TYPE = 5
MULTIPOINT_TYPE = 8

# Rough per-object cost of a geometry or one of its parts.
GEOMETRY_OVERHEAD_BYTES = 64
COORDINATE_BYTES = 16

_MARKER = struct.Struct("<i")
_POINT = struct.Struct("<i2d")
_MULTIPOINT_HEADER = struct.Struct("<i4di")
_MULTIPATH_HEADER = struct.Struct("<i4d2i")
_NAN_BBOX = (math.nan, math.nan, math.nan, math.nan)


class EsriShapeCodec:
    """Shapely geometries <-> ESRI shape bodies."""

    def geometry_type(self, geometry) -> str:
        return geometry.geom_type

    def decompose(self, geometry) -> Iterator:
        if geometry.geom_type == types.GEOMETRY_COLLECTION:
            for member in geometry.geoms:
                yield from self.decompose(member)
        else:
            yield geometry

    def make_collection(self, geometries: List) -> GeometryCollection:
        return GeometryCollection(list(geometries))

    def estimate_memory_size(self, geometry) -> int:
        parts = int(shapely.get_num_geometries(geometry))
        coords = int(shapely.get_num_coordinates(geometry))
        return GEOMETRY_OVERHEAD_BYTES * (1 + parts) + COORDINATE_BYTES * coords

    # ------------------------------ encode ------------------------------- #
    def encode_shape(self, geometry) -> bytes:
        kind = geometry.geom_type
        if kind == types.POINT:
            if geometry.is_empty:
                return _POINT.pack(POINT_TYPE, math.nan, math.nan)
            x, y = geometry.x, geometry.y
            # A point is empty as a whole; both ordinates carry the marker.
            if is_esri_nan(x) or is_esri_nan(y):
                return _POINT.pack(POINT_TYPE, math.nan, math.nan)
            return _POINT.pack(POINT_TYPE, x, y)
        if kind == types.MULTI_POINT:
            return _encode_multipoint(shapely.get_coordinates(geometry))
        if kind in (types.LINE_STRING, types.MULTI_LINE_STRING):
            lines = [geometry] if kind == types.LINE_STRING else list(geometry.geoms)
            paths = [shapely.get_coordinates(line) for line in lines if not line.is_empty]
            return _encode_multipath(POLYLINE_TYPE, paths)
        if kind in (types.POLYGON, types.MULTI_POLYGON):
            polygons = [geometry] if kind == types.POLYGON else list(geometry.geoms)
            rings = []
            for polygon in polygons:
                if polygon.is_empty:
                    continue
                oriented = orient(polygon, sign=-1.0)
                rings.append(shapely.get_coordinates(oriented.exterior))
                rings.extend(shapely.get_coordinates(hole) for hole in oriented.interiors)
            return _encode_multipath(POLYGON_TYPE, rings)
        raise InvalidGeometryType(f"Cannot encode {kind} as a single shape")

    # ------------------------------ decode ------------------------------- #
    def decode_shape(self, payload):
        view = memoryview(payload)
        if len(view) < _MARKER.size:
            raise MalformedRecord(f"Shape payload of {len(view)} bytes has no type marker")
        (shape_type,) = _MARKER.unpack_from(view, 0)

        if shape_type == POINT_TYPE:
            _need(view, _POINT.size, "point")
            _, x, y = _POINT.unpack_from(view, 0)
            if is_esri_nan(x):
                return Point()
            return Point(x, y)
        if shape_type == MULTIPOINT_TYPE:
            return _decode_multipoint(view)
        if shape_type == POLYLINE_TYPE:
            paths = _decode_multipath(view)
            if len(paths) == 1:
                return LineString(paths[0])
            return MultiLineString(paths)
        if shape_type == POLYGON_TYPE:
            polygons = _group_rings(_decode_multipath(view))
            if len(polygons) == 1:
                return polygons[0]
            return MultiPolygon(polygons)
        raise MalformedRecord(f"Unsupported shape type: {shape_type}")


# --------------------------------- helpers ------------------------------------

def _bbox(coords: np.ndarray):
    if len(coords) == 0:
        return _NAN_BBOX
    mins = coords.min(axis=0)
    maxs = coords.max(axis=0)
    return float(mins[0]), float(mins[1]), float(maxs[0]), float(maxs[1])


def _encode_multipoint(coords: np.ndarray) -> bytes:
    out = bytearray(_MULTIPOINT_HEADER.pack(MULTIPOINT_TYPE, *_bbox(coords), len(coords)))
    out += np.ascontiguousarray(coords, dtype="<f8").tobytes()
    return bytes(out)


def _encode_multipath(shape_type: int, parts: List[np.ndarray]) -> bytes:
    sizes = [len(p) for p in parts]
    coords = np.vstack(parts) if parts else np.empty((0, 2))
    starts = np.cumsum([0] + sizes)[:-1]
    out = bytearray(_MULTIPATH_HEADER.pack(shape_type, *_bbox(coords), len(parts), len(coords)))
    out += np.asarray(starts, dtype="<i4").tobytes()
    out += np.ascontiguousarray(coords, dtype="<f8").tobytes()
    return bytes(out)


def _need(view: memoryview, size: int, what: str):
    if len(view) < size:
        raise MalformedRecord(f"Truncated {what} shape: need {size} bytes, have {len(view)}")


def _read_coords(view: memoryview, offset: int, count: int) -> np.ndarray:
    _need(view, offset + 16 * count, "coordinate")
    if count == 0:
        return np.empty((0, 2))
    flat = np.frombuffer(view, dtype="<f8", count=2 * count, offset=offset)
    return flat.reshape(count, 2).astype(float)


def _decode_multipoint(view: memoryview):
    _need(view, _MULTIPOINT_HEADER.size, "multipoint")
    *_, count = _MULTIPOINT_HEADER.unpack_from(view, 0)
    if count < 0:
        raise MalformedRecord(f"Negative point count: {count}")
    coords = _read_coords(view, _MULTIPOINT_HEADER.size, count)
    if count == 0:
        return Point()
    if count == 1:
        return Point(coords[0])
    return MultiPoint(coords)


def _decode_multipath(view: memoryview) -> List[np.ndarray]:
    _need(view, _MULTIPATH_HEADER.size, "multipath")
    *_, num_parts, num_points = _MULTIPATH_HEADER.unpack_from(view, 0)
    if num_parts < 0 or num_points < 0:
        raise MalformedRecord(f"Negative counts: parts={num_parts} points={num_points}")
    offset = _MULTIPATH_HEADER.size
    _need(view, offset + 4 * num_parts, "multipath")
    if num_parts == 0:
        _read_coords(view, offset, num_points)
        return []
    starts = np.frombuffer(view, dtype="<i4", count=num_parts, offset=offset).astype(np.int64)
    offset += 4 * num_parts
    coords = _read_coords(view, offset, num_points)

    if starts[0] != 0 or np.any(np.diff(starts) <= 0) or starts[-1] >= num_points:
        raise MalformedRecord(f"Invalid part offsets {starts.tolist()} for {num_points} points")
    return np.split(coords, starts[1:])


def _group_rings(rings: Iterable[np.ndarray]) -> List[Polygon]:
    """Clockwise rings open a new polygon; counter-clockwise rings are its holes."""
    groups: List[List[np.ndarray]] = []
    for ring in rings:
        is_hole = bool(shapely.is_ccw(shapely.linearrings(ring)))
        if is_hole and groups:
            groups[-1].append(ring)
        else:
            groups.append([ring])
    return [Polygon(group[0], group[1:]) for group in groups]
