from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class ServiceSettings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore")

    SERVICE_NAME: str = "service"
    REDIS_URL: str | None = None
    OVERPASS_API_URL: str = "https://overpass-api.de/api/interpreter"
    NOMINATIM_API_URL: str = "https://nominatim.openstreetmap.org"
    NOMINATIM_USER_AGENT: str = "TairisHealthApp/1.0"
    PROVIDER_TIMEOUT_SECONDS: float = 10.0
    FACILITY_CACHE_TTL_SECONDS: int = 300
    CACHE_READ_TIMEOUT_SECONDS: float = 1.0
    CACHE_ADMIN_TOKEN: str | None = None
    REASONING_SERVICE_URL: str | None = None
    REASONING_TIMEOUT_SECONDS: float = 30.0
    DEFAULT_COUNTRY_CODE: str | None = None
    RED_FLAG_PHRASES: str | None = None

    def red_flag_phrases(self) -> list[str] | None:
        if not self.RED_FLAG_PHRASES:
            return None
        phrases = [item.strip() for item in self.RED_FLAG_PHRASES.split(",") if item.strip()]
        return phrases or None


def load_settings(service_name: str) -> ServiceSettings:
    return ServiceSettings(SERVICE_NAME=service_name)
