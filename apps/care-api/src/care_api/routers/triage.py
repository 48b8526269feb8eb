from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from trust_safety.emergency_numbers import EmergencyNumberResolver
from trust_safety.quick_actions import build_call_action, build_share_action

from care_api.dependencies import get_emergency_number_resolver, get_triage_service
from care_api.errors import ApiError, InputError
from care_api.response import success_response
from care_api.schemas.triage import TriagePromptRequest, TriageReply, TriageRequest
from care_api.services.triage_service import TriageService

router = APIRouter(prefix="/v1", tags=["triage"])


@router.post("/triage")
async def triage(
    body: TriageRequest,
    service: TriageService = Depends(get_triage_service),
) -> dict:
    try:
        outcome = await service.triage(
            symptoms=body.symptoms,
            vitals=body.vitals,
            facilities=body.facilities,
            country_code=body.country_code,
            history=[turn.model_dump() for turn in body.history],
        )
    except InputError as exc:
        raise ApiError("VALIDATION_ERROR", str(exc), 422) from exc

    if outcome.immediate_action is not None:
        immediate = outcome.immediate_action
        actions = [build_call_action(immediate.primary_number)]
        nearest = min(body.facilities, key=lambda facility: facility.distance_meters, default=None)
        if nearest is not None:
            actions.append(build_share_action(nearest.coordinates.lat, nearest.coordinates.lon))
        return success_response(immediate.to_dict(), meta={"actions": [action.to_dict() for action in actions]})

    reply = TriageReply(text=outcome.reply or "")
    context_size = len(outcome.prompt.context) if outcome.prompt else 0
    return success_response(reply.model_dump(), meta={"context_size": context_size})


@router.post("/triage/prompt")
async def triage_prompt(
    body: TriagePromptRequest,
    service: TriageService = Depends(get_triage_service),
) -> dict:
    try:
        prompt = service.build_prompt(body.symptoms, body.vitals, body.facilities)
    except InputError as exc:
        raise ApiError("VALIDATION_ERROR", str(exc), 422) from exc
    return success_response(prompt.to_dict(), meta={"context_size": len(prompt.context)})


@router.get("/emergency-numbers")
async def emergency_numbers(
    country_code: str | None = Query(default=None, max_length=8),
    resolver: EmergencyNumberResolver = Depends(get_emergency_number_resolver),
) -> dict:
    numbers = resolver.resolve(country_code)
    return success_response(
        {"numbers": numbers, "call_uri": f"tel:{numbers[0]}"},
        meta={"country_code": country_code},
    )
