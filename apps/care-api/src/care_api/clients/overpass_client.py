from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

import httpx

from care_api.errors import ProviderError, RateLimitError

PROVIDER_NAME = "overpass"
DEFAULT_AMENITIES: tuple[str, ...] = ("hospital", "clinic", "pharmacy", "doctors")


def build_overpass_query(
    lat: float,
    lon: float,
    radius_meters: int,
    amenities: Sequence[str] = DEFAULT_AMENITIES,
    server_timeout_seconds: int = 25,
) -> str:
    selector = f'["amenity"~"{"|".join(amenities)}"](around:{radius_meters},{lat},{lon})'
    return (
        f"[out:json][timeout:{server_timeout_seconds}];\n"
        "(\n"
        f"  node{selector};\n"
        f"  way{selector};\n"
        f"  relation{selector};\n"
        ");\n"
        "out center tags;"
    )


class OverpassClient:
    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 10.0,
        client_factory: Callable[[], httpx.AsyncClient] | None = None,
    ) -> None:
        self._base_url = base_url
        self._timeout_seconds = timeout_seconds
        self._client_factory = client_factory

    async def fetch_elements(
        self,
        lat: float,
        lon: float,
        radius_meters: int,
        amenities: Sequence[str] = DEFAULT_AMENITIES,
    ) -> list[dict[str, Any]]:
        query = build_overpass_query(lat, lon, radius_meters, amenities)
        try:
            factory = self._client_factory or (lambda: httpx.AsyncClient(timeout=self._timeout_seconds))
            async with factory() as client:
                response = await client.post(self._base_url, data={"data": query})
        except httpx.TimeoutException as exc:
            raise ProviderError(PROVIDER_NAME, "request timed out") from exc
        except httpx.HTTPError as exc:
            raise ProviderError(PROVIDER_NAME, "request failed") from exc

        if response.status_code == 429:
            raise RateLimitError(PROVIDER_NAME, "rate limit exceeded (429)")
        if response.is_error:
            raise ProviderError(PROVIDER_NAME, f"unexpected status {response.status_code}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise ProviderError(PROVIDER_NAME, "response is not JSON") from exc
        elements = payload.get("elements") if isinstance(payload, dict) else None
        if not isinstance(elements, list):
            raise ProviderError(PROVIDER_NAME, "response has no elements array")
        return elements
