from __future__ import annotations

from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any

from trust_safety.emergency_numbers import EmergencyNumberResolver

IMMEDIATE_ACTION_INTENT = "IMMEDIATE_ACTION"
CALL_EMERGENCY_ACTION = "CALL_EMERGENCY"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ImmediateActionResponse:
    preferred_emergency_numbers: list[str]
    call_uri: str
    message: str
    timestamp_utc: str
    intent: str = IMMEDIATE_ACTION_INTENT
    action: str = CALL_EMERGENCY_ACTION
    confirm_before_call: bool = True
    meta: dict[str, str] = field(default_factory=lambda: {"source": "system", "confidence": "high"})

    @property
    def primary_number(self) -> str:
        return self.preferred_emergency_numbers[0]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class ImmediateActionComposer:
    def __init__(
        self,
        resolver: EmergencyNumberResolver | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._resolver = resolver or EmergencyNumberResolver()
        self._clock = clock

    def compose(self, reason: str, country_code: str | None = None) -> ImmediateActionResponse:
        numbers = self._resolver.resolve(country_code)
        primary = numbers[0]
        return ImmediateActionResponse(
            preferred_emergency_numbers=numbers,
            call_uri=f"tel:{primary}",
            message=f"Critical symptoms detected ({reason}). Call emergency services immediately.",
            timestamp_utc=self._clock().astimezone(timezone.utc).isoformat(),
        )
