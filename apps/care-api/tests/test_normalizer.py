from __future__ import annotations

import pytest
from geo_engine.models import GeoPoint

from care_api.normalizer import (
    extract_services,
    format_service_name,
    normalize_batch,
    normalize_nominatim,
    normalize_overpass,
    normalize_record,
)
from care_api.schemas.facility import FacilitySource
from care_api.schemas.provider import NominatimPlace, OverpassElement

ORIGIN = GeoPoint(lat=40.7128, lon=-74.0060)


def test_normalize_overpass_node_with_full_tags() -> None:
    element = OverpassElement.model_validate(
        {
            "id": 101,
            "lat": 40.7138,
            "lon": -74.0070,
            "tags": {
                "amenity": "hospital",
                "name": "Mercy Hospital",
                "name:en": "Mercy Hospital EN",
                "contact:phone": "+1 555 0100",
                "healthcare:speciality": "cardiology;general_surgery",
                "service:emergency": "yes",
                "service:x_ray": "yes",
                "service:dialysis": "no",
            },
        }
    )

    facility = normalize_overpass(element, ORIGIN)

    assert facility is not None
    assert facility.id == "overpass-101"
    assert facility.name == "Mercy Hospital"
    assert facility.type == "hospital"
    assert facility.phone == "+1 555 0100"
    assert facility.source is FacilitySource.OVERPASS
    assert facility.services == ["Cardiology", "General Surgery", "Emergency", "X Ray"]
    assert facility.raw_attributes["service:dialysis"] == "no"
    assert 100 < facility.distance_meters < 200


def test_normalize_overpass_way_uses_center() -> None:
    element = OverpassElement.model_validate(
        {"id": 7, "type": "way", "center": {"lat": 40.72, "lon": -74.0}, "tags": {"name:en": "East Clinic"}}
    )

    facility = normalize_overpass(element, ORIGIN)

    assert facility is not None
    assert facility.coordinates.lat == 40.72
    assert facility.name == "East Clinic"
    assert facility.type == "unknown"
    assert facility.phone is None


def test_normalize_overpass_defaults_name_and_phone_chain() -> None:
    element = OverpassElement.model_validate(
        {"id": 8, "lat": 40.7, "lon": -74.0, "tags": {"amenity": "doctors", "emergency:phone": "911"}}
    )

    facility = normalize_overpass(element, ORIGIN)

    assert facility is not None
    assert facility.name == "Unknown Facility"
    assert facility.phone == "911"


def test_normalize_overpass_without_coordinates_returns_none() -> None:
    element = OverpassElement.model_validate({"id": 9, "tags": {"amenity": "clinic"}})

    assert normalize_overpass(element, ORIGIN) is None


def test_pharmacy_defaults_service_when_none_tagged() -> None:
    assert extract_services({"amenity": "pharmacy"}) == ["Pharmacy"]
    assert extract_services({"amenity": "pharmacy", "service:vaccination": "yes"}) == ["Vaccination"]
    assert extract_services({"amenity": "clinic"}) == []


def test_services_are_deduplicated_in_first_seen_order() -> None:
    tags = {"healthcare:speciality": "emergency;paediatrics;emergency", "service:emergency": "yes"}

    assert extract_services(tags) == ["Emergency", "Paediatrics"]


def test_format_service_name() -> None:
    assert format_service_name("general_surgery") == "General Surgery"
    assert format_service_name(" mri ") == "Mri"


def test_normalize_nominatim_prefers_extratags_name() -> None:
    place = NominatimPlace.model_validate(
        {
            "place_id": 555,
            "lat": "40.7200",
            "lon": "-74.0100",
            "type": "hospital",
            "class": "amenity",
            "display_name": "Downtown Hospital, 1 Main St, New York",
            "name": "Downtown",
            "extratags": {"name": "Downtown Medical Center", "contact:phone": "+1 555 0200"},
        }
    )

    facility = normalize_nominatim(place, ORIGIN)

    assert facility is not None
    assert facility.id == "nominatim-555"
    assert facility.name == "Downtown Medical Center"
    assert facility.type == "hospital"
    assert facility.phone == "+1 555 0200"
    assert facility.source is FacilitySource.NOMINATIM
    assert facility.services == []
    assert facility.raw_attributes == {"name": "Downtown Medical Center", "contact:phone": "+1 555 0200"}


def test_normalize_nominatim_falls_back_to_display_name_and_class() -> None:
    place = NominatimPlace.model_validate(
        {
            "place_id": 556,
            "lat": "40.7",
            "lon": "-74.0",
            "class": "amenity",
            "display_name": "Riverside Clinic, Hudson St, New York",
        }
    )

    facility = normalize_nominatim(place, ORIGIN)

    assert facility is not None
    assert facility.name == "Riverside Clinic"
    assert facility.type == "amenity"
    assert facility.phone is None
    assert facility.raw_attributes == {}


def test_normalize_record_dispatches_on_variant() -> None:
    overpass = OverpassElement.model_validate({"id": 1, "lat": 40.7, "lon": -74.0, "tags": {}})
    nominatim = NominatimPlace.model_validate({"place_id": 2, "lat": "40.7", "lon": "-74.0", "display_name": "X"})

    assert normalize_record(overpass, ORIGIN).source is FacilitySource.OVERPASS
    assert normalize_record(nominatim, ORIGIN).source is FacilitySource.NOMINATIM
    with pytest.raises(TypeError):
        normalize_record({"id": 1}, ORIGIN)


def test_normalize_batch_skips_malformed_records() -> None:
    rows = [
        {"id": 1, "lat": 40.7, "lon": -74.0, "tags": {"amenity": "clinic"}},
        {"id": 2, "tags": {"amenity": "clinic"}},
        {"lat": 40.7, "lon": -74.0},
        "not-a-record",
        {"id": 3, "center": {"lat": 40.71, "lon": -74.01}, "tags": {"amenity": "hospital"}},
    ]

    facilities = normalize_batch(rows, OverpassElement, ORIGIN)

    assert [facility.id for facility in facilities] == ["overpass-1", "overpass-3"]
