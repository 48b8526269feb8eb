from __future__ import annotations

from devkit.config import ServiceSettings, load_settings
from devkit.redis import create_redis_client
from trust_safety.emergency_numbers import EmergencyNumberResolver
from trust_safety.immediate_action import ImmediateActionComposer
from trust_safety.red_flags import DEFAULT_RED_FLAG_PHRASES, RedFlagClassifier
from trust_safety.triage_prompt import TriagePromptBuilder

from care_api.cache import CacheStore, FacilityCache, InMemoryCacheStore, RedisCacheStore
from care_api.clients.nominatim_client import NominatimClient
from care_api.clients.overpass_client import OverpassClient
from care_api.clients.reasoning_client import ReasoningClient
from care_api.observability import (
    CompositeApiMetricsCollector,
    InMemoryApiMetricsCollector,
    PrometheusApiMetricsCollector,
)
from care_api.providers import NominatimProvider, OverpassProvider
from care_api.services.discovery_service import FacilityDiscoveryService
from care_api.services.triage_service import TriageService

settings = load_settings("nearby-care-api")

_redis_client = create_redis_client(settings.REDIS_URL)
_cache_store: CacheStore
if _redis_client is not None:
    _cache_store = RedisCacheStore(_redis_client)
else:
    _cache_store = InMemoryCacheStore()
_facility_cache = FacilityCache(
    store=_cache_store,
    ttl_seconds=settings.FACILITY_CACHE_TTL_SECONDS,
    read_timeout_seconds=settings.CACHE_READ_TIMEOUT_SECONDS,
)

_api_metrics = InMemoryApiMetricsCollector()
_prom_metrics = PrometheusApiMetricsCollector()
_composite_metrics = CompositeApiMetricsCollector([_api_metrics, _prom_metrics])

_nominatim_client = NominatimClient(
    base_url=settings.NOMINATIM_API_URL,
    user_agent=settings.NOMINATIM_USER_AGENT,
    timeout_seconds=settings.PROVIDER_TIMEOUT_SECONDS,
)
_discovery_service = FacilityDiscoveryService(
    providers=[
        OverpassProvider(
            OverpassClient(base_url=settings.OVERPASS_API_URL, timeout_seconds=settings.PROVIDER_TIMEOUT_SECONDS),
        ),
        NominatimProvider(_nominatim_client),
    ],
    cache=_facility_cache,
    provider_timeout_seconds=settings.PROVIDER_TIMEOUT_SECONDS,
    geocoder=_nominatim_client,
    recorder=_composite_metrics,
)

_emergency_number_resolver = EmergencyNumberResolver()
_reasoning_client = (
    ReasoningClient(base_url=settings.REASONING_SERVICE_URL, timeout_seconds=settings.REASONING_TIMEOUT_SECONDS)
    if settings.REASONING_SERVICE_URL
    else None
)
_triage_service = TriageService(
    classifier=RedFlagClassifier(settings.red_flag_phrases() or DEFAULT_RED_FLAG_PHRASES),
    composer=ImmediateActionComposer(resolver=_emergency_number_resolver),
    prompt_builder=TriagePromptBuilder(),
    reasoning_client=_reasoning_client,
    default_country_code=settings.DEFAULT_COUNTRY_CODE,
)


def get_settings() -> ServiceSettings:
    return settings


def get_facility_cache() -> FacilityCache:
    return _facility_cache


def get_discovery_service() -> FacilityDiscoveryService:
    return _discovery_service


def get_triage_service() -> TriageService:
    return _triage_service


def get_emergency_number_resolver() -> EmergencyNumberResolver:
    return _emergency_number_resolver


def get_api_metrics() -> InMemoryApiMetricsCollector:
    return _api_metrics


def get_prometheus_metrics() -> PrometheusApiMetricsCollector:
    return _prom_metrics


def get_composite_metrics() -> CompositeApiMetricsCollector:
    return _composite_metrics
