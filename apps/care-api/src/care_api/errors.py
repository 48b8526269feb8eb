from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ApiError(Exception):
    code: str
    message: str
    status_code: int


class CareError(Exception):
    """Base exception for discovery and triage failures."""


class InputError(CareError):
    """Raised when coordinates or text input are missing or invalid."""


class ProviderError(CareError):
    """Raised when a facility provider returns a malformed or non-success response."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message


class RateLimitError(ProviderError):
    """Raised when a provider answers HTTP 429."""


class CacheWriteError(CareError):
    """Raised by cache writes; always logged and swallowed by the caller."""


class AggregateDiscoveryError(CareError):
    """Raised when every provider in the discovery chain failed."""

    def __init__(self, failures: list[ProviderError]) -> None:
        providers = ", ".join(failure.provider for failure in failures) or "none"
        super().__init__(f"all facility providers failed: {providers}")
        self.failures = failures
