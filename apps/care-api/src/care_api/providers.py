from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from geo_engine.models import GeoPoint

from care_api.clients.nominatim_client import NominatimClient
from care_api.clients.overpass_client import OverpassClient
from care_api.normalizer import normalize_batch
from care_api.schemas.facility import Facility
from care_api.schemas.provider import NominatimPlace, OverpassElement

logger = logging.getLogger(__name__)

FALLBACK_SEARCH_TERM = "hospital"


class FacilityProvider(ABC):
    """One link of the discovery chain: search POIs near a point."""

    provider_name: str

    @abstractmethod
    async def search(self, origin: GeoPoint, radius_meters: int, category: str) -> list[Facility]:
        raise NotImplementedError


class OverpassProvider(FacilityProvider):
    provider_name = "overpass"

    def __init__(self, client: OverpassClient) -> None:
        self._client = client

    async def search(self, origin: GeoPoint, radius_meters: int, category: str) -> list[Facility]:
        rows = await self._client.fetch_elements(origin.lat, origin.lon, radius_meters)
        facilities = normalize_batch(rows, OverpassElement, origin)
        logger.info(
            "provider_search_completed",
            extra={
                "provider": self.provider_name,
                "category": category,
                "raw_count": len(rows),
                "facility_count": len(facilities),
            },
        )
        return facilities


class NominatimProvider(FacilityProvider):
    """Free-text fallback; searches a fixed term inside a viewbox instead of a radius."""

    provider_name = "nominatim"

    def __init__(self, client: NominatimClient, search_term: str = FALLBACK_SEARCH_TERM) -> None:
        self._client = client
        self._search_term = search_term

    async def search(self, origin: GeoPoint, radius_meters: int, category: str) -> list[Facility]:
        rows = await self._client.search(self._search_term, origin.lat, origin.lon)
        facilities = normalize_batch(rows, NominatimPlace, origin)
        logger.info(
            "provider_search_completed",
            extra={
                "provider": self.provider_name,
                "category": category,
                "search_term": self._search_term,
                "raw_count": len(rows),
                "facility_count": len(facilities),
            },
        )
        return facilities
