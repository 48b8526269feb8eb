import json
from dataclasses import dataclass, field

import pytest

from trust_safety.triage_prompt import TRIAGE_ACTIONS, TriagePromptBuilder


@dataclass
class StubFacility:
    name: str
    type: str
    distance_meters: float
    phone: str | None = None
    services: list[str] = field(default_factory=list)
    raw_attributes: dict = field(default_factory=dict)


def _facilities() -> list[StubFacility]:
    return [
        StubFacility("Alpha Hospital", "hospital", 120.4, "+1 555 0100", ["Emergency"]),
        StubFacility("Beta Clinic", "clinic", 480.6),
        StubFacility("Gamma Pharmacy", "pharmacy", 910.0, None, ["Pharmacy"]),
        StubFacility("Delta Hospital", "hospital", 1500.0, "+1 555 0400", raw_attributes={"secret": "x"}),
        StubFacility("Epsilon Clinic", "clinic", 2100.0, "+1 555 0500"),
    ]


def test_build_embeds_only_three_nearest() -> None:
    prompt = TriagePromptBuilder().build("fever", "38.5C", _facilities())
    message = prompt.to_message()

    assert [item.name for item in prompt.context] == ["Alpha Hospital", "Beta Clinic", "Gamma Pharmacy"]
    assert [item.index for item in prompt.context] == [0, 1, 2]
    assert "Delta Hospital" not in message
    assert "Epsilon Clinic" not in message
    assert "+1 555 0400" not in message
    assert "+1 555 0500" not in message


def test_build_picks_nearest_regardless_of_input_order() -> None:
    prompt = TriagePromptBuilder().build("fever", None, list(reversed(_facilities())))
    message = prompt.to_message()

    assert [item.name for item in prompt.context] == ["Alpha Hospital", "Beta Clinic", "Gamma Pharmacy"]
    assert [item.index for item in prompt.context] == [0, 1, 2]
    assert "Delta Hospital" not in message
    assert "Epsilon Clinic" not in message


def test_build_keeps_input_order_for_equal_distances() -> None:
    facilities = [
        StubFacility("North Clinic", "clinic", 300.0),
        StubFacility("South Clinic", "clinic", 300.0),
        StubFacility("Near Pharmacy", "pharmacy", 50.0),
    ]

    prompt = TriagePromptBuilder().build("fever", None, facilities)

    assert [item.name for item in prompt.context] == ["Near Pharmacy", "North Clinic", "South Clinic"]


@pytest.mark.parametrize("limit", [-1, 4, 5])
def test_builder_rejects_context_limits_outside_zero_to_three(limit: int) -> None:
    with pytest.raises(ValueError):
        TriagePromptBuilder(max_facilities=limit)


def test_builder_with_smaller_limit() -> None:
    prompt = TriagePromptBuilder(max_facilities=1).build("fever", None, _facilities())

    assert [item.name for item in prompt.context] == ["Alpha Hospital"]

def test_build_rounds_distance_and_omits_raw_attributes() -> None:
    prompt = TriagePromptBuilder().build("fever", None, _facilities())
    payload = prompt.to_dict()

    assert payload["context"][0] == {
        "index": 0,
        "name": "Alpha Hospital",
        "type": "hospital",
        "distance_m": 120,
        "phone": "+1 555 0100",
        "services": ["Emergency"],
    }
    assert payload["context"][1]["distance_m"] == 481
    assert "raw_attributes" not in json.dumps(payload)


def test_build_defaults_missing_vitals() -> None:
    prompt = TriagePromptBuilder().build("sore throat", None, [])

    assert prompt.input == {"symptoms": "sore throat", "vitals": "Not provided"}
    assert prompt.context == []


def test_build_declares_fixed_instructions() -> None:
    prompt = TriagePromptBuilder().build("cough", "normal", _facilities())
    instructions = " ".join(prompt.instructions)

    assert prompt.role == "system"
    for action in TRIAGE_ACTIONS:
        assert action in instructions
        assert action in prompt.output_schema["triage"]["action"]
    assert "-1" in instructions
    assert "NEVER invent phone numbers" in instructions


def test_to_message_is_json() -> None:
    prompt = TriagePromptBuilder().build("cough", "normal", _facilities())
    decoded = json.loads(prompt.to_message())

    assert decoded["input"]["symptoms"] == "cough"
    assert len(decoded["context"]) == 3
