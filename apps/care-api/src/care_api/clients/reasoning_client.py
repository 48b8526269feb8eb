from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

import httpx

from care_api.errors import ApiError


class ReasoningClient:
    """Client for the downstream text-in/text-out reasoning service."""

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 30.0,
        client_factory: Callable[[], httpx.AsyncClient] | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._client_factory = client_factory

    async def send(self, message: str, history: Sequence[dict[str, Any]] = ()) -> str:
        payload = {"message": message, "history": list(history)}
        try:
            factory = self._client_factory or (lambda: httpx.AsyncClient(timeout=self._timeout_seconds))
            async with factory() as client:
                response = await client.post(f"{self._base_url}/chat", json=payload)
                response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise ApiError("UPSTREAM_TIMEOUT", "Reasoning service timeout", 504) from exc
        except httpx.HTTPError as exc:
            raise ApiError("UPSTREAM_FAILURE", "Reasoning service failure", 502) from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise ApiError("UPSTREAM_FAILURE", "Invalid reasoning service response", 502) from exc
        text = data.get("text") if isinstance(data, dict) else None
        if not isinstance(text, str):
            raise ApiError("UPSTREAM_FAILURE", "Invalid reasoning service response", 502)
        return text
