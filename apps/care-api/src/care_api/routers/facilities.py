from __future__ import annotations

import hmac

from devkit.config import ServiceSettings
from fastapi import APIRouter, Depends, Header, Query

from care_api.cache import FacilityCache
from care_api.dependencies import get_discovery_service, get_facility_cache, get_settings
from care_api.errors import AggregateDiscoveryError, ApiError, InputError
from care_api.response import success_response
from care_api.schemas.facility import GeocodeResult, NearbyQuery
from care_api.services.discovery_service import FacilityDiscoveryService, filter_facilities

router = APIRouter(prefix="/v1/facilities", tags=["facilities"])

DISCOVERY_FAILED_MESSAGE = (
    "Could not find facilities even with fallback. Please retry, or enter an address manually."
)


def _validate_admin_token(expected: str | None, header_token: str | None) -> None:
    if not expected:
        raise ApiError("CACHE_ADMIN_NOT_CONFIGURED", "Cache administration is not configured", 503)
    if not header_token or not hmac.compare_digest(header_token, expected):
        raise ApiError("UNAUTHORIZED", "Invalid admin token", 401)


@router.get("/nearby")
async def nearby_facilities(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    radius: int = Query(default=5000, gt=0, le=50_000),
    category: str = Query(default="medical", min_length=1, max_length=64),
    q: str | None = Query(default=None, max_length=128),
    service: FacilityDiscoveryService = Depends(get_discovery_service),
) -> dict:
    query = NearbyQuery(lat=lat, lon=lon, radius=radius, category=category)
    try:
        facilities = await service.discover(query.lat, query.lon, query.radius, query.category)
    except InputError as exc:
        raise ApiError("VALIDATION_ERROR", str(exc), 422) from exc
    except AggregateDiscoveryError as exc:
        raise ApiError("DISCOVERY_UNAVAILABLE", DISCOVERY_FAILED_MESSAGE, 503) from exc

    data = [facility.model_dump(mode="json") for facility in filter_facilities(facilities, q)]
    meta: dict[str, object] = {"count": len(data), "radius": query.radius, "category": query.category}
    if q and q.strip():
        meta["query"] = q.strip()
        meta["total"] = len(facilities)
    return success_response(data, meta=meta)


@router.get("/geocode")
async def geocode_address(
    q: str = Query(..., min_length=1, max_length=512),
    service: FacilityDiscoveryService = Depends(get_discovery_service),
) -> dict:
    try:
        point = await service.geocode(q)
    except InputError as exc:
        raise ApiError("VALIDATION_ERROR", str(exc), 422) from exc
    except TimeoutError as exc:
        raise ApiError("UPSTREAM_TIMEOUT", "Geocoding timeout", 504) from exc
    except ApiError:
        raise
    except Exception as exc:
        raise ApiError("UPSTREAM_FAILURE", "Geocoding failed", 502) from exc
    if point is None:
        raise ApiError("NOT_FOUND", "Could not find coordinates for that address", 404)
    return success_response(GeocodeResult(lat=point.lat, lon=point.lon).model_dump(), meta={})


@router.delete("/cache")
async def clear_facility_cache(
    cache: FacilityCache = Depends(get_facility_cache),
    settings: ServiceSettings = Depends(get_settings),
    x_admin_token: str | None = Header(default=None),
) -> dict:
    _validate_admin_token(settings.CACHE_ADMIN_TOKEN, x_admin_token)
    removed = await cache.clear()
    return success_response({"invalidated_keys": removed}, meta={"prefix": cache.prefix})
