from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from typing import Any

from geo_engine.distance import haversine_distance_meters
from geo_engine.models import GeoPoint
from pydantic import BaseModel, ValidationError

from care_api.schemas.facility import Coordinates, Facility, FacilitySource
from care_api.schemas.provider import NominatimPlace, OverpassElement, ProviderRecord

logger = logging.getLogger(__name__)

UNKNOWN_FACILITY_NAME = "Unknown Facility"
UNKNOWN_FACILITY_TYPE = "unknown"
SPECIALITY_TAG = "healthcare:speciality"
SERVICE_TAG_PREFIX = "service:"


def format_service_name(raw: str) -> str:
    words = raw.strip().replace("_", " ").split(" ")
    return " ".join(word[:1].upper() + word[1:] for word in words if word)


def extract_services(tags: dict[str, str]) -> list[str]:
    services: dict[str, None] = {}
    speciality = tags.get(SPECIALITY_TAG)
    if speciality:
        for entry in speciality.split(";"):
            name = format_service_name(entry)
            if name:
                services.setdefault(name, None)
    for key, value in tags.items():
        if key.startswith(SERVICE_TAG_PREFIX) and value == "yes":
            name = format_service_name(key[len(SERVICE_TAG_PREFIX):])
            if name:
                services.setdefault(name, None)
    if not services and tags.get("amenity") == "pharmacy":
        services["Pharmacy"] = None
    return list(services)


def _first_present(mapping: dict[str, Any], *keys: str) -> Any | None:
    for key in keys:
        value = mapping.get(key)
        if value:
            return value
    return None


def _resolve_overpass_point(element: OverpassElement) -> GeoPoint | None:
    lat, lon = element.lat, element.lon
    if (lat is None or lon is None) and element.center is not None:
        lat, lon = element.center.lat, element.center.lon
    if lat is None or lon is None or not (math.isfinite(lat) and math.isfinite(lon)):
        return None
    return GeoPoint(lat=lat, lon=lon)


def normalize_overpass(element: OverpassElement, origin: GeoPoint) -> Facility | None:
    point = _resolve_overpass_point(element)
    if point is None:
        return None
    tags = element.tags
    return Facility(
        id=f"overpass-{element.id}",
        name=_first_present(tags, "name", "name:en") or UNKNOWN_FACILITY_NAME,
        type=tags.get("amenity") or UNKNOWN_FACILITY_TYPE,
        coordinates=Coordinates(lat=point.lat, lon=point.lon),
        phone=_first_present(tags, "phone", "contact:phone", "emergency:phone"),
        distance_meters=haversine_distance_meters(origin, point),
        source=FacilitySource.OVERPASS,
        services=extract_services(tags),
        raw_attributes=dict(tags),
    )


def normalize_nominatim(place: NominatimPlace, origin: GeoPoint) -> Facility | None:
    if not (math.isfinite(place.lat) and math.isfinite(place.lon)):
        return None
    point = GeoPoint(lat=place.lat, lon=place.lon)
    extratags = place.extratags or {}
    name = extratags.get("name") or place.name or place.display_name.split(",")[0].strip()
    phone = _first_present(extratags, "phone", "contact:phone")
    return Facility(
        id=f"nominatim-{place.place_id}",
        name=name or UNKNOWN_FACILITY_NAME,
        type=place.type or place.class_ or UNKNOWN_FACILITY_TYPE,
        coordinates=Coordinates(lat=point.lat, lon=point.lon),
        phone=str(phone) if phone else None,
        distance_meters=haversine_distance_meters(origin, point),
        source=FacilitySource.NOMINATIM,
        services=[],
        raw_attributes=dict(extratags),
    )


def normalize_record(record: ProviderRecord, origin: GeoPoint) -> Facility | None:
    if isinstance(record, OverpassElement):
        return normalize_overpass(record, origin)
    if isinstance(record, NominatimPlace):
        return normalize_nominatim(record, origin)
    raise TypeError(f"unsupported provider record: {type(record).__name__}")


def normalize_batch(
    rows: Iterable[dict[str, Any]],
    record_type: type[BaseModel],
    origin: GeoPoint,
) -> list[Facility]:
    """Validate raw provider rows and normalize them, skipping unusable records."""
    facilities: list[Facility] = []
    skipped = 0
    for row in rows:
        try:
            record = record_type.model_validate(row)
            facility = normalize_record(record, origin)
        except (ValidationError, TypeError, ValueError):
            facility = None
        if facility is None:
            skipped += 1
            continue
        facilities.append(facility)
    if skipped:
        logger.debug(
            "provider_records_skipped",
            extra={"record_type": record_type.__name__, "skipped": skipped, "kept": len(facilities)},
        )
    return facilities
