from __future__ import annotations

import copy
import json
from collections.abc import Sequence
from dataclasses import asdict, dataclass
from typing import Any, Protocol

MAX_CONTEXT_FACILITIES = 3
NO_FACILITY_INDEX = -1
VITALS_NOT_PROVIDED = "Not provided"

TRIAGE_ACTIONS: tuple[str, ...] = ("CALL_AMBULANCE", "GO_ER", "VISIT_CLINIC", "HOME_CARE")

TRIAGE_PERSONA = "You are Tairis, an emergency medical triage assistant. Your goal is SPEED and SAFETY."

TRIAGE_INSTRUCTIONS: tuple[str, ...] = (
    "Analyze the user's input for symptoms.",
    "Check for RED FLAGS: Unconscious, Not Breathing, Heavy Bleeding, Chest Pain, Stroke.",
    "If RED FLAG detected: Return intent 'IMMEDIATE_ACTION' with action 'CALL_EMERGENCY'.",
    f"If no red flag: choose exactly one triage action from {', '.join(TRIAGE_ACTIONS)}.",
    f"Select the best facility from the provided context list by its index, or {NO_FACILITY_INDEX} if none fits.",
    "Output STRICT JSON matching the output schema.",
    "NEVER invent phone numbers or facility details. Use ONLY the provided context.",
    "Always include the disclaimer.",
)

TRIAGE_OUTPUT_SCHEMA: dict[str, Any] = {
    "intent": "TRIAGE_AND_RESOURCES | IMMEDIATE_ACTION",
    "triage": {
        "action": " | ".join(TRIAGE_ACTIONS),
        "confidence": "low | medium | high",
        "reason": "string",
    },
    "recommended_facility_index": f"number (index in context list, or {NO_FACILITY_INDEX})",
    "disclaimer": "string",
}


class FacilityLike(Protocol):
    name: str
    type: str
    distance_meters: float
    phone: str | None
    services: list[str]


@dataclass(frozen=True)
class PromptFacility:
    index: int
    name: str
    type: str
    distance_m: int
    phone: str | None
    services: list[str]


@dataclass(frozen=True)
class TriagePrompt:
    role: str
    content: str
    instructions: list[str]
    context: list[PromptFacility]
    input: dict[str, str]
    output_schema: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def to_message(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)


class TriagePromptBuilder:
    """Builds the payload sent to the downstream reasoning service.

    Only the nearest facilities are embedded, and only the fields the
    reasoning step may cite; raw provider attributes never leave the core.
    """

    def __init__(self, max_facilities: int = MAX_CONTEXT_FACILITIES) -> None:
        if not 0 <= max_facilities <= MAX_CONTEXT_FACILITIES:
            raise ValueError(f"max_facilities must be between 0 and {MAX_CONTEXT_FACILITIES}")
        self._max_facilities = max_facilities

    def build(
        self,
        symptoms: str,
        vitals: str | None,
        facilities: Sequence[FacilityLike],
    ) -> TriagePrompt:
        nearest = sorted(facilities, key=lambda facility: facility.distance_meters)[: self._max_facilities]
        context = [
            PromptFacility(
                index=index,
                name=facility.name,
                type=facility.type,
                distance_m=round(facility.distance_meters),
                phone=facility.phone,
                services=list(facility.services or []),
            )
            for index, facility in enumerate(nearest)
        ]
        return TriagePrompt(
            role="system",
            content=TRIAGE_PERSONA,
            instructions=list(TRIAGE_INSTRUCTIONS),
            context=context,
            input={"symptoms": symptoms, "vitals": vitals or VITALS_NOT_PROVIDED},
            output_schema=copy.deepcopy(TRIAGE_OUTPUT_SCHEMA),
        )
