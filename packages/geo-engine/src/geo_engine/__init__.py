"""Geo engine core package."""

from geo_engine.distance import EARTH_RADIUS_METERS, haversine_distance_meters
from geo_engine.geofence import bounding_box_around, is_valid_point
from geo_engine.models import BoundingBox, GeoPoint

__all__ = [
    "BoundingBox",
    "EARTH_RADIUS_METERS",
    "GeoPoint",
    "bounding_box_around",
    "haversine_distance_meters",
    "is_valid_point",
]
