from __future__ import annotations

import pytest
from trust_safety.immediate_action import ImmediateActionComposer
from trust_safety.red_flags import RedFlagClassifier
from trust_safety.triage_prompt import TriagePromptBuilder

from care_api.errors import ApiError, InputError
from care_api.schemas.facility import Coordinates, Facility, FacilitySource
from care_api.services.triage_service import TriageService


class RecordingReasoningClient:
    def __init__(self, reply: str = "Visit a clinic within 24 hours.") -> None:
        self.reply = reply
        self.calls: list[tuple[str, list]] = []

    async def send(self, message: str, history=()) -> str:
        self.calls.append((message, list(history)))
        return self.reply


def _facility(index: int) -> Facility:
    return Facility(
        id=f"overpass-{index}",
        name=f"Facility {index}",
        type="clinic",
        coordinates=Coordinates(lat=40.7, lon=-74.0),
        phone=f"+1 555 010{index}",
        distance_meters=100.0 * index,
        source=FacilitySource.OVERPASS,
    )


def _service(client: RecordingReasoningClient | None, **kwargs) -> TriageService:
    return TriageService(
        classifier=RedFlagClassifier(),
        composer=ImmediateActionComposer(),
        prompt_builder=TriagePromptBuilder(),
        reasoning_client=client,
        **kwargs,
    )


@pytest.mark.asyncio
async def test_red_flag_suppresses_reasoning_call() -> None:
    client = RecordingReasoningClient()
    outcome = await _service(client).triage("My father has chest pain", country_code="US")

    assert outcome.is_emergency
    assert outcome.immediate_action.preferred_emergency_numbers == ["911"]
    assert "(chest pain)" in outcome.immediate_action.message
    assert client.calls == []


@pytest.mark.asyncio
async def test_red_flag_in_vitals_is_detected() -> None:
    client = RecordingReasoningClient()
    outcome = await _service(client).triage("feels odd", vitals="patient unconscious, pulse weak")

    assert outcome.is_emergency
    assert client.calls == []


@pytest.mark.asyncio
async def test_default_country_code_is_used() -> None:
    outcome = await _service(None, default_country_code="IN").triage("possible stroke")

    assert outcome.immediate_action.preferred_emergency_numbers == ["112", "102", "108"]


@pytest.mark.asyncio
async def test_non_emergency_sends_prompt_with_three_nearest() -> None:
    client = RecordingReasoningClient()
    facilities = [_facility(index) for index in range(1, 6)]
    history = [{"role": "user", "content": "hello"}]

    outcome = await _service(client).triage("sore throat", "37.8C", facilities, history=history)

    assert not outcome.is_emergency
    assert outcome.reply == "Visit a clinic within 24 hours."
    assert len(outcome.prompt.context) == 3
    message, sent_history = client.calls[0]
    assert "Facility 3" in message
    assert "Facility 4" not in message
    assert "+1 555 0105" not in message
    assert sent_history == history


@pytest.mark.asyncio
async def test_missing_reasoning_client_is_reported() -> None:
    with pytest.raises(ApiError) as exc_info:
        await _service(None).triage("sore throat")

    assert exc_info.value.status_code == 503


@pytest.mark.asyncio
async def test_blank_symptoms_raise_input_error() -> None:
    with pytest.raises(InputError):
        await _service(RecordingReasoningClient()).triage("   ")
