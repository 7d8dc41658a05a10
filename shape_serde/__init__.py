from .envelope import Envelope, deserialize_envelope, is_esri_nan, merge_envelopes, translate_from_av_nan
from .errors import InconsistentEmptyMarker, InvalidGeometryType, MalformedRecord, ShapeSerdeError
from .serde import GeometrySerde, ShapeCodec, deserialize, get_estimated_memory_size_in_bytes, serialize
from .types import GeometryTypeName, value_of

__all__ = [
    "Envelope",
    "deserialize_envelope",
    "is_esri_nan",
    "merge_envelopes",
    "translate_from_av_nan",
    "InconsistentEmptyMarker",
    "InvalidGeometryType",
    "MalformedRecord",
    "ShapeSerdeError",
    "GeometrySerde",
    "deserialize",
    "get_estimated_memory_size_in_bytes",
    "serialize",
    "ShapeCodec",
    "GeometryTypeName",
    "value_of",
]
