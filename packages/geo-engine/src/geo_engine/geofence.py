import math

from geo_engine.models import BoundingBox, GeoPoint

MAX_LATITUDE = 90.0
MAX_LONGITUDE = 180.0


def is_valid_point(point: GeoPoint) -> bool:
    if not (math.isfinite(point.lat) and math.isfinite(point.lon)):
        return False
    return abs(point.lat) <= MAX_LATITUDE and abs(point.lon) <= MAX_LONGITUDE


def bounding_box_around(center: GeoPoint, half_span_degrees: float) -> BoundingBox:
    """Square box of +/- half_span_degrees around center, in viewbox order."""
    if half_span_degrees <= 0:
        raise ValueError("half_span_degrees must be > 0")
    return BoundingBox(
        left=center.lon - half_span_degrees,
        top=center.lat + half_span_degrees,
        right=center.lon + half_span_degrees,
        bottom=center.lat - half_span_degrees,
    )
