"""Local safety triage: red flags, emergency numbers, and reasoning prompts."""

from trust_safety.emergency_numbers import EmergencyNumberResolver
from trust_safety.immediate_action import ImmediateActionComposer, ImmediateActionResponse
from trust_safety.quick_actions import QuickAction, build_call_action, build_navigate_action, build_share_action
from trust_safety.red_flags import DEFAULT_RED_FLAG_PHRASES, RedFlagClassifier
from trust_safety.triage_prompt import TRIAGE_ACTIONS, TriagePrompt, TriagePromptBuilder

__all__ = [
    "DEFAULT_RED_FLAG_PHRASES",
    "EmergencyNumberResolver",
    "ImmediateActionComposer",
    "ImmediateActionResponse",
    "QuickAction",
    "RedFlagClassifier",
    "TRIAGE_ACTIONS",
    "TriagePrompt",
    "TriagePromptBuilder",
    "build_call_action",
    "build_navigate_action",
    "build_share_action",
]
