from enum import IntEnum

from .errors import InvalidGeometryType, MalformedRecord


class GeometryTypeName(IntEnum):
    """Leading byte of every serialized record. Codes are part of the wire format."""
    POINT = 0
    MULTI_POINT = 1
    LINE_STRING = 2
    MULTI_LINE_STRING = 3
    POLYGON = 4
    MULTI_POLYGON = 5
    GEOMETRY_COLLECTION = 6


POINT = "Point"
LINE_STRING = "LineString"
POLYGON = "Polygon"
MULTI_POINT = "MultiPoint"
MULTI_LINE_STRING = "MultiLineString"
MULTI_POLYGON = "MultiPolygon"
GEOMETRY_COLLECTION = "GeometryCollection"

_BY_NAME = {
    POINT: GeometryTypeName.POINT,
    MULTI_POINT: GeometryTypeName.MULTI_POINT,
    LINE_STRING: GeometryTypeName.LINE_STRING,
    MULTI_LINE_STRING: GeometryTypeName.MULTI_LINE_STRING,
    POLYGON: GeometryTypeName.POLYGON,
    MULTI_POLYGON: GeometryTypeName.MULTI_POLYGON,
    GEOMETRY_COLLECTION: GeometryTypeName.GEOMETRY_COLLECTION,
}
_BY_CODE = {code: name for name, code in _BY_NAME.items()}


def value_of(type_name: str) -> GeometryTypeName:
    try:
        return _BY_NAME[type_name]
    except (KeyError, TypeError):
        raise InvalidGeometryType(f"Invalid Geometry Type: {type_name}") from None


def from_code(code: int) -> GeometryTypeName:
    try:
        return GeometryTypeName(code)
    except ValueError:
        raise MalformedRecord(f"Unknown geometry type code: {code}") from None


def type_name(code: GeometryTypeName) -> str:
    """Canonical name for a type code, e.g. ``"MultiPolygon"``."""
    return _BY_CODE[GeometryTypeName(code)]
