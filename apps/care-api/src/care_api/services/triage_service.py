from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from trust_safety.immediate_action import ImmediateActionComposer, ImmediateActionResponse
from trust_safety.red_flags import RedFlagClassifier
from trust_safety.triage_prompt import FacilityLike, TriagePrompt, TriagePromptBuilder

from care_api.clients.reasoning_client import ReasoningClient
from care_api.errors import ApiError, InputError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TriageOutcome:
    immediate_action: ImmediateActionResponse | None = None
    prompt: TriagePrompt | None = None
    reply: str | None = None

    @property
    def is_emergency(self) -> bool:
        return self.immediate_action is not None


class TriageService:
    def __init__(
        self,
        classifier: RedFlagClassifier,
        composer: ImmediateActionComposer,
        prompt_builder: TriagePromptBuilder,
        reasoning_client: ReasoningClient | None = None,
        default_country_code: str | None = None,
    ) -> None:
        self._classifier = classifier
        self._composer = composer
        self._prompt_builder = prompt_builder
        self._reasoning_client = reasoning_client
        self._default_country_code = default_country_code

    def assess(
        self,
        symptoms: str,
        vitals: str | None = None,
        country_code: str | None = None,
    ) -> ImmediateActionResponse | None:
        reason = self._classifier.classify("\n".join(part for part in (symptoms, vitals) if part))
        if reason is None:
            return None
        return self._composer.compose(reason, country_code or self._default_country_code)

    def build_prompt(
        self,
        symptoms: str,
        vitals: str | None,
        facilities: Sequence[FacilityLike],
    ) -> TriagePrompt:
        if not symptoms or not symptoms.strip():
            raise InputError("symptoms must not be empty")
        return self._prompt_builder.build(symptoms.strip(), vitals, facilities)

    async def triage(
        self,
        symptoms: str,
        vitals: str | None = None,
        facilities: Sequence[FacilityLike] = (),
        country_code: str | None = None,
        history: Sequence[dict[str, Any]] = (),
    ) -> TriageOutcome:
        """Run the red-flag check, then the remote reasoning call only when it is clear."""
        if not symptoms or not symptoms.strip():
            raise InputError("symptoms must not be empty")

        immediate = self.assess(symptoms, vitals, country_code)
        if immediate is not None:
            logger.warning(
                "triage_short_circuited",
                extra={"component": "triage", "primary_number": immediate.primary_number},
            )
            return TriageOutcome(immediate_action=immediate)

        prompt = self.build_prompt(symptoms, vitals, facilities)
        if self._reasoning_client is None:
            raise ApiError("UPSTREAM_UNAVAILABLE", "Reasoning service is not configured", 503)
        reply = await self._reasoning_client.send(prompt.to_message(), history)
        logger.info("triage_completed", extra={"component": "triage", "context_size": len(prompt.context)})
        return TriageOutcome(prompt=prompt, reply=reply)
