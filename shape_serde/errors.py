class ShapeSerdeError(Exception):
    """Base error for serialized shape handling."""


class InvalidGeometryType(ShapeSerdeError, ValueError):
    """Geometry type name is not one of the seven serializable types."""


class MalformedRecord(ShapeSerdeError, ValueError):
    """Serialized bytes do not follow the record layout."""


class InconsistentEmptyMarker(ShapeSerdeError):
    """Some, but not all, sibling coordinates carry the empty marker."""
