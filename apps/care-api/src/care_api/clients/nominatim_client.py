from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
from geo_engine.geofence import bounding_box_around
from geo_engine.models import GeoPoint

from care_api.errors import ProviderError, RateLimitError

PROVIDER_NAME = "nominatim"
# 0.1 degree is roughly 11 km at the equator.
DEFAULT_VIEWBOX_HALF_SPAN_DEGREES = 0.1
DEFAULT_SEARCH_LIMIT = 20


class NominatimClient:
    """Nominatim search client; every request carries the identifying User-Agent."""

    def __init__(
        self,
        base_url: str,
        user_agent: str,
        timeout_seconds: float = 10.0,
        client_factory: Callable[[], httpx.AsyncClient] | None = None,
    ) -> None:
        if not user_agent:
            raise ValueError("user_agent is required by the Nominatim usage policy")
        self._base_url = base_url.rstrip("/")
        self._user_agent = user_agent
        self._timeout_seconds = timeout_seconds
        self._client_factory = client_factory

    async def search(
        self,
        query: str,
        lat: float,
        lon: float,
        limit: int = DEFAULT_SEARCH_LIMIT,
        half_span_degrees: float = DEFAULT_VIEWBOX_HALF_SPAN_DEGREES,
    ) -> list[dict[str, Any]]:
        viewbox = bounding_box_around(GeoPoint(lat=lat, lon=lon), half_span_degrees)
        params: dict[str, Any] = {
            "q": query,
            "format": "json",
            "limit": limit,
            "viewbox": viewbox.as_viewbox(),
            "bounded": 1,
            "addressdetails": 1,
            "extratags": 1,
        }
        payload = await self._get_search(params)
        if not isinstance(payload, list):
            raise ProviderError(PROVIDER_NAME, "search response is not an array")
        return payload

    async def geocode(self, address: str) -> GeoPoint | None:
        payload = await self._get_search({"q": address, "format": "json", "limit": 1})
        if not isinstance(payload, list) or not payload:
            return None
        first = payload[0]
        try:
            return GeoPoint(lat=float(first["lat"]), lon=float(first["lon"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise ProviderError(PROVIDER_NAME, "geocode candidate has no coordinates") from exc

    async def _get_search(self, params: dict[str, Any]) -> Any:
        headers = {"User-Agent": self._user_agent}
        try:
            factory = self._client_factory or (lambda: httpx.AsyncClient(timeout=self._timeout_seconds))
            async with factory() as client:
                response = await client.get(f"{self._base_url}/search", params=params, headers=headers)
        except httpx.TimeoutException as exc:
            raise ProviderError(PROVIDER_NAME, "request timed out") from exc
        except httpx.HTTPError as exc:
            raise ProviderError(PROVIDER_NAME, "request failed") from exc

        if response.status_code == 429:
            raise RateLimitError(PROVIDER_NAME, "rate limit exceeded (429)")
        if response.is_error:
            raise ProviderError(PROVIDER_NAME, f"unexpected status {response.status_code}")
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(PROVIDER_NAME, "response is not JSON") from exc
