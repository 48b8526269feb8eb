from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Sequence
from typing import Protocol

from geo_engine.geofence import is_valid_point
from geo_engine.models import GeoPoint

from care_api.cache import FacilityCache
from care_api.clients.nominatim_client import NominatimClient
from care_api.errors import AggregateDiscoveryError, InputError, ProviderError, RateLimitError
from care_api.observability import DiscoveryOutcome
from care_api.providers import FacilityProvider
from care_api.schemas.facility import Facility

logger = logging.getLogger(__name__)

DEFAULT_RADIUS_METERS = 5000
DEFAULT_CATEGORY = "medical"
DEFAULT_PROVIDER_TIMEOUT_SECONDS = 10.0


class DiscoveryRecorder(Protocol):
    def record_discovery(self, outcome: DiscoveryOutcome) -> None: ...


class FacilityDiscoveryService:
    """Finds nearby facilities through a cached, ordered provider chain.

    The first provider is the primary source. Later providers are consulted
    only while the accumulated result is still empty, either because earlier
    providers failed or because they found nothing. A result is cached only
    when no provider in the chain failed; if every provider failed the call
    raises ``AggregateDiscoveryError``.
    """

    def __init__(
        self,
        providers: Sequence[FacilityProvider],
        cache: FacilityCache,
        provider_timeout_seconds: float = DEFAULT_PROVIDER_TIMEOUT_SECONDS,
        geocoder: NominatimClient | None = None,
        recorder: DiscoveryRecorder | None = None,
    ) -> None:
        if not providers:
            raise ValueError("at least one facility provider is required")
        self._providers = list(providers)
        self._cache = cache
        self._provider_timeout_seconds = provider_timeout_seconds
        self._geocoder = geocoder
        self._recorder = recorder

    async def discover(
        self,
        lat: float,
        lon: float,
        radius: int = DEFAULT_RADIUS_METERS,
        category: str = DEFAULT_CATEGORY,
    ) -> list[Facility]:
        origin = self._validate(lat, lon, radius, category)
        cache_key = self._cache.generate_key(origin.lat, origin.lon, radius, category)
        cached = await self._cache.get(cache_key)
        if cached is not None:
            logger.info("discovery_cache_hit", extra={"cache_key": cache_key, "facility_count": len(cached)})
            self._record("cache", "cache_hit")
            return cached

        facilities: list[Facility] = []
        failures: list[ProviderError] = []
        for provider in self._providers:
            try:
                found = await asyncio.wait_for(
                    provider.search(origin, radius, category),
                    timeout=self._provider_timeout_seconds,
                )
            except (ProviderError, TimeoutError) as exc:
                failure = self._as_provider_error(provider, exc)
                failures.append(failure)
                logger.warning(
                    "provider_failed",
                    extra={
                        "provider": provider.provider_name,
                        "rate_limited": isinstance(failure, RateLimitError),
                        "error": failure.message,
                    },
                )
                self._record(provider.provider_name, "failed")
                continue
            self._record(provider.provider_name, "success" if found else "empty")
            facilities.extend(found)
            if facilities:
                break

        if len(failures) == len(self._providers):
            logger.error(
                "discovery_failed",
                extra={"cache_key": cache_key, "providers": [failure.provider for failure in failures]},
            )
            raise AggregateDiscoveryError(failures)

        ranked = sorted(_unique_by_id(facilities), key=lambda facility: facility.distance_meters)
        if failures:
            logger.info(
                "discovery_degraded",
                extra={"cache_key": cache_key, "facility_count": len(ranked), "failed": len(failures)},
            )
        else:
            await self._cache.set(cache_key, ranked)
        logger.info("discovery_completed", extra={"cache_key": cache_key, "facility_count": len(ranked)})
        return ranked

    async def geocode(self, address: str) -> GeoPoint | None:
        if not address or not address.strip():
            raise InputError("address must not be empty")
        if self._geocoder is None:
            raise RuntimeError("geocoder is not configured")
        return await asyncio.wait_for(
            self._geocoder.geocode(address.strip()),
            timeout=self._provider_timeout_seconds,
        )

    @staticmethod
    def _validate(lat: float, lon: float, radius: int, category: str) -> GeoPoint:
        if lat is None or lon is None:
            raise InputError("lat and lon are required")
        try:
            origin = GeoPoint(lat=float(lat), lon=float(lon))
        except (TypeError, ValueError) as exc:
            raise InputError("lat and lon must be numbers") from exc
        if not is_valid_point(origin):
            raise InputError("lat must be within [-90, 90] and lon within [-180, 180]")
        if not isinstance(radius, int) or radius <= 0:
            raise InputError("radius must be a positive integer")
        if not category:
            raise InputError("category must not be empty")
        return origin

    def _as_provider_error(self, provider: FacilityProvider, exc: Exception) -> ProviderError:
        if isinstance(exc, ProviderError):
            return exc
        return ProviderError(provider.provider_name, f"no response within {self._provider_timeout_seconds}s")

    def _record(self, provider: str, outcome: str) -> None:
        if self._recorder is not None:
            self._recorder.record_discovery(DiscoveryOutcome(provider=provider, outcome=outcome))


def _unique_by_id(facilities: Sequence[Facility]) -> list[Facility]:
    seen: set[str] = set()
    unique: list[Facility] = []
    for facility in facilities:
        if facility.id in seen or not math.isfinite(facility.distance_meters):
            continue
        seen.add(facility.id)
        unique.append(facility)
    return unique


def filter_facilities(facilities: Sequence[Facility], query: str | None) -> list[Facility]:
    """Keeps facilities whose name, type or any service contains ``query``, ignoring case."""
    needle = (query or "").strip().lower()
    if not needle:
        return list(facilities)
    return [
        facility
        for facility in facilities
        if needle in facility.name.lower()
        or needle in facility.type.lower()
        or any(needle in service.lower() for service in facility.services)
    ]
