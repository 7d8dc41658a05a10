"""
Column-level helpers over pyarrow binary arrays.

Geometry columns arrive as WKB (GeoParquet) and are converted to serialized
shapes, or read back, one array at a time. Envelopes are computed straight from
the serialized bytes so pruning a column never builds geometries.
"""
from __future__ import annotations
from typing import Optional, Sequence, Tuple
import logging

import numpy as np
import pyarrow as pa
from shapely import from_wkb, to_wkb

from .envelope import Envelope, deserialize_envelope
from .serde import GeometrySerde, default_serde

logger = logging.getLogger(__name__)

ENVELOPE_COLUMNS = ("xmin", "ymin", "xmax", "ymax")


def _as_array(values) -> pa.Array:
    if isinstance(values, pa.ChunkedArray):
        return values.combine_chunks()
    if isinstance(values, pa.Array):
        return values
    return pa.array(values, type=pa.binary())


def serialize_wkb_array(values, serde: Optional[GeometrySerde] = None) -> pa.Array:
    """WKB binary array -> serialized shape binary array. Nulls stay null."""
    serde = serde or default_serde()
    arr = _as_array(values)
    geoms = from_wkb(arr.to_numpy(zero_copy_only=False))
    out = [None if g is None else serde.serialize(g) for g in geoms]
    logger.debug("Serialized %d WKB values", len(out))
    return pa.array(out, type=pa.binary())


def deserialize_to_wkb_array(values, serde: Optional[GeometrySerde] = None) -> pa.Array:
    """Serialized shape binary array -> WKB binary array. Nulls stay null."""
    serde = serde or default_serde()
    arr = _as_array(values)
    geoms = np.empty(len(arr), dtype=object)
    geoms[:] = [serde.deserialize(v) for v in arr.to_pylist()]
    encoded = to_wkb(geoms, hex=False).tolist()
    logger.debug("Deserialized %d shapes to WKB", len(encoded))
    return pa.array(encoded, type=pa.binary())


def envelope_table(values) -> pa.Table:
    """Per-row envelope columns; a row with no envelope is null in all four."""
    arr = _as_array(values)
    n = len(arr)
    bounds = np.full((n, 4), np.nan)
    missing = np.ones(n, dtype=bool)
    for i, v in enumerate(arr.to_pylist()):
        env = deserialize_envelope(v)
        if env is not None:
            bounds[i] = env.bounds
            missing[i] = False
    cols = [pa.array(bounds[:, j], mask=missing, type=pa.float64()) for j in range(4)]
    return pa.table(cols, names=list(ENVELOPE_COLUMNS))


def overall_envelope(values) -> Optional[Envelope]:
    overall: Optional[Envelope] = None
    for v in _as_array(values).to_pylist():
        env = deserialize_envelope(v)
        if env is not None:
            overall = env if overall is None else overall.merge(env)
    return overall


def filter_by_envelope(
    table: pa.Table,
    bbox: Sequence[float],
    geom_col: str = "geometry",
) -> pa.Table:
    """Rows of ``table`` whose serialized geometry envelope touches ``bbox``."""
    if geom_col not in table.column_names:
        raise ValueError(f"Missing geometry column '{geom_col}'")
    query = Envelope(*_as_bbox(bbox))
    keep = []
    for v in table[geom_col].to_pylist():
        env = deserialize_envelope(v)
        keep.append(env is not None and env.intersects(query))
    logger.debug("Envelope filter kept %d/%d rows", sum(keep), table.num_rows)
    return table.filter(pa.array(keep, type=pa.bool_()))


def _as_bbox(bbox: Sequence[float]) -> Tuple[float, float, float, float]:
    if len(bbox) != 4:
        raise ValueError(f"Four numbers required for bbox. Got: {bbox}")
    xmin, ymin, xmax, ymax = (float(v) for v in bbox)
    return xmin, ymin, xmax, ymax
