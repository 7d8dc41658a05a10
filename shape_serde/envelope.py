from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple
import logging
import math
import struct

from .errors import InconsistentEmptyMarker, MalformedRecord
from .framing import BytesLike, as_view, iter_payloads

logger = logging.getLogger(__name__)

# Native ESRI shape marker of a single point; every other shape starts with its bbox.
POINT_TYPE = 1
# ESRI writes empty coordinates as a large negative magic value in older payloads.
AV_NAN_THRESHOLD = -1.0e38

_MARKER = struct.Struct("<i")
_XY = struct.Struct("<2d")
_BBOX = struct.Struct("<4d")


# ------------------------------- NaN handling ---------------------------------

def translate_from_av_nan(value: float) -> float:
    return math.nan if value < AV_NAN_THRESHOLD else value


def is_esri_nan(value: float) -> bool:
    return math.isnan(value) or math.isnan(translate_from_av_nan(value))


# --------------------------------- Envelope -----------------------------------

@dataclass(frozen=True)
class Envelope:
    """Axis-aligned bounding rectangle of a serialized geometry."""
    xmin: float
    ymin: float
    xmax: float
    ymax: float

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        return self.xmin, self.ymin, self.xmax, self.ymax

    def merge(self, other: Optional["Envelope"]) -> "Envelope":
        if other is None:
            return self
        return Envelope(
            min(self.xmin, other.xmin),
            min(self.ymin, other.ymin),
            max(self.xmax, other.xmax),
            max(self.ymax, other.ymax),
        )

    def intersects(self, other: "Envelope") -> bool:
        return not (
            self.xmax < other.xmin or self.xmin > other.xmax
            or self.ymax < other.ymin or self.ymin > other.ymax
        )


def merge_envelopes(a: Optional[Envelope], b: Optional[Envelope]) -> Optional[Envelope]:
    """Union of two envelopes where ``None`` means "no envelope"."""
    if a is None:
        return b
    return a.merge(b)


# ------------------------------- Extraction -----------------------------------

def deserialize_envelope(data: Optional[BytesLike]) -> Optional[Envelope]:
    """
    Bounding envelope of a serialized geometry without decoding its shapes.

    Only the native type marker and the leading point or bbox of each shape
    payload are read. Returns ``None`` for a missing buffer, an empty buffer or a
    geometry whose shapes are all empty.
    """
    if data is None:
        return None
    view = as_view(data)
    if len(view) == 0:
        return None

    overall: Optional[Envelope] = None
    shapes = 0
    for payload in iter_payloads(view):
        overall = merge_envelopes(overall, _shape_envelope(payload))
        shapes += 1
    logger.debug("Envelope of %d shape(s): %s", shapes, overall)
    return overall


def _shape_envelope(payload: memoryview) -> Optional[Envelope]:
    if len(payload) < _MARKER.size:
        raise MalformedRecord(f"Shape payload of {len(payload)} bytes has no type marker")
    (shape_type,) = _MARKER.unpack_from(payload, 0)

    if shape_type == POINT_TYPE:
        x, y = _unpack(_XY, payload)
        x_empty = is_esri_nan(x)
        if x_empty != is_esri_nan(y):
            raise InconsistentEmptyMarker(f"Point has mixed empty coordinates: ({x}, {y})")
        if x_empty:
            return None
        return Envelope(x, y, x, y)

    xmin, ymin, xmax, ymax = _unpack(_BBOX, payload)
    empties = [is_esri_nan(v) for v in (xmin, ymin, xmax, ymax)]
    if any(empties) and not all(empties):
        raise InconsistentEmptyMarker(
            f"Shape type {shape_type} bbox has mixed empty bounds: ({xmin}, {ymin}, {xmax}, {ymax})"
        )
    if empties[0]:
        return None
    return Envelope(xmin, ymin, xmax, ymax)


def _unpack(layout: struct.Struct, payload: memoryview):
    if len(payload) < _MARKER.size + layout.size:
        raise MalformedRecord(
            f"Shape payload of {len(payload)} bytes is too short for its leading bounds"
        )
    return layout.unpack_from(payload, _MARKER.size)
