from __future__ import annotations

import logging
from collections.abc import Iterable

logger = logging.getLogger(__name__)

# Order matters: classify() reports the first phrase of this list that matches.
DEFAULT_RED_FLAG_PHRASES: tuple[str, ...] = (
    "unconscious",
    "not breathing",
    "difficulty breathing",
    "heavy bleeding",
    "chest pain",
    "stroke",
    "poison",
    "heart attack",
    "severe burn",
    "anaphylaxis",
    "choking",
    "seizure",
)


class RedFlagClassifier:
    """Keyword classifier for life-threatening symptoms.

    Runs locally and never raises; callers must check it before any remote
    reasoning call and skip that call when it reports a match.
    """

    def __init__(self, phrases: Iterable[str] = DEFAULT_RED_FLAG_PHRASES) -> None:
        normalized = tuple(phrase.strip().lower() for phrase in phrases if phrase and phrase.strip())
        if not normalized:
            raise ValueError("phrases must not be empty")
        self._phrases = normalized

    @property
    def phrases(self) -> tuple[str, ...]:
        return self._phrases

    def classify(self, text: str | None) -> str | None:
        if not text:
            return None
        lowered = text.lower()
        for phrase in self._phrases:
            if phrase in lowered:
                logger.warning("red_flag_detected", extra={"component": "trust_safety", "phrase": phrase})
                return phrase
        return None

    def detect(self, text: str | None) -> bool:
        return self.classify(text) is not None
