from __future__ import annotations

from fastapi.testclient import TestClient
from trust_safety.immediate_action import ImmediateActionComposer
from trust_safety.red_flags import RedFlagClassifier
from trust_safety.triage_prompt import TriagePromptBuilder

from care_api.app import create_app
from care_api.dependencies import get_triage_service
from care_api.services.triage_service import TriageService


class CountingReasoningClient:
    def __init__(self) -> None:
        self.messages: list[str] = []

    async def send(self, message: str, history=()) -> str:
        self.messages.append(message)
        return "Rest, fluids, and see a clinic if it persists."


def _facility_payload(index: int) -> dict:
    return {
        "id": f"overpass-{index}",
        "name": f"Facility {index}",
        "type": "clinic",
        "coordinates": {"lat": 40.7 + index / 1000, "lon": -74.0},
        "phone": f"+1 555 010{index}",
        "distance_meters": 100.0 * index,
        "source": "Overpass",
        "services": [],
        "raw_attributes": {"note": f"raw-{index}"},
    }


def _client(reasoning: CountingReasoningClient) -> TestClient:
    app = create_app()
    service = TriageService(
        classifier=RedFlagClassifier(),
        composer=ImmediateActionComposer(),
        prompt_builder=TriagePromptBuilder(),
        reasoning_client=reasoning,
    )
    app.dependency_overrides[get_triage_service] = lambda: service
    return TestClient(app)


def test_triage_red_flag_returns_immediate_action() -> None:
    reasoning = CountingReasoningClient()
    response = _client(reasoning).post(
        "/v1/triage",
        json={"symptoms": "He is not breathing", "country_code": "UK", "facilities": [_facility_payload(1)]},
    )
    body = response.json()

    assert response.status_code == 200
    assert body["data"]["intent"] == "IMMEDIATE_ACTION"
    assert body["data"]["confirm_before_call"] is True
    assert body["data"]["preferred_emergency_numbers"] == ["999", "112"]
    assert body["data"]["call_uri"] == "tel:999"
    assert [action["type"] for action in body["meta"]["actions"]] == ["call", "share"]
    assert reasoning.messages == []


def test_triage_red_flag_shares_nearest_facility_from_unsorted_list() -> None:
    facilities = [_facility_payload(5), _facility_payload(2), _facility_payload(4)]
    response = _client(CountingReasoningClient()).post(
        "/v1/triage",
        json={"symptoms": "chest pain and sweating", "country_code": "US", "facilities": facilities},
    )
    share = response.json()["meta"]["actions"][1]

    assert share["type"] == "share"
    assert share["target"].endswith(f"q={40.7 + 2 / 1000},-74.0")


def test_triage_prompt_endpoint_uses_nearest_from_unsorted_list() -> None:
    facilities = [_facility_payload(index) for index in (5, 4, 3, 2, 1)]
    response = _client(CountingReasoningClient()).post(
        "/v1/triage/prompt", json={"symptoms": "cough", "facilities": facilities}
    )
    context = response.json()["data"]["context"]

    assert [item["name"] for item in context] == ["Facility 1", "Facility 2", "Facility 3"]
    assert "Facility 5" not in response.text

def test_triage_without_red_flag_calls_reasoning() -> None:
    reasoning = CountingReasoningClient()
    facilities = [_facility_payload(index) for index in range(1, 6)]
    response = _client(reasoning).post("/v1/triage", json={"symptoms": "runny nose", "facilities": facilities})
    body = response.json()

    assert response.status_code == 200
    assert body["data"] == {"intent": "TRIAGE", "text": "Rest, fluids, and see a clinic if it persists."}
    assert body["meta"]["context_size"] == 3
    assert "Facility 4" not in reasoning.messages[0]
    assert "raw-1" not in reasoning.messages[0]


def test_triage_prompt_endpoint_performs_no_reasoning_call() -> None:
    reasoning = CountingReasoningClient()
    facilities = [_facility_payload(index) for index in range(1, 6)]
    response = _client(reasoning).post("/v1/triage/prompt", json={"symptoms": "cough", "facilities": facilities})
    body = response.json()

    assert response.status_code == 200
    assert [item["name"] for item in body["data"]["context"]] == ["Facility 1", "Facility 2", "Facility 3"]
    assert reasoning.messages == []


def test_triage_validation_error_shape() -> None:
    response = _client(CountingReasoningClient()).post("/v1/triage", json={"symptoms": ""})

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_emergency_numbers_endpoint() -> None:
    client = TestClient(create_app())
    response = client.get("/v1/emergency-numbers?country_code=FR")
    body = response.json()

    assert response.status_code == 200
    assert body["data"] == {"numbers": ["112"], "call_uri": "tel:112"}
