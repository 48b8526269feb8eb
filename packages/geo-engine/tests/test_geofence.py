import math

import pytest

from geo_engine.geofence import bounding_box_around, is_valid_point
from geo_engine.models import GeoPoint


def test_bounding_box_uses_viewbox_order() -> None:
    box = bounding_box_around(GeoPoint(lat=10.0, lon=20.0), half_span_degrees=0.5)

    assert box.left == 19.5
    assert box.top == 10.5
    assert box.right == 20.5
    assert box.bottom == 9.5
    assert box.as_viewbox() == "19.5,10.5,20.5,9.5"


def test_bounding_box_rejects_non_positive_span() -> None:
    with pytest.raises(ValueError):
        bounding_box_around(GeoPoint(lat=10.0, lon=20.0), half_span_degrees=0)


def test_is_valid_point_bounds() -> None:
    assert is_valid_point(GeoPoint(lat=90.0, lon=-180.0))
    assert not is_valid_point(GeoPoint(lat=90.5, lon=0.0))
    assert not is_valid_point(GeoPoint(lat=0.0, lon=181.0))
    assert not is_valid_point(GeoPoint(lat=math.nan, lon=0.0))
