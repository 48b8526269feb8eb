from __future__ import annotations

from pydantic import BaseModel, Field

from care_api.schemas.facility import Facility


class ChatTurn(BaseModel):
    role: str
    content: str


class TriageRequest(BaseModel):
    symptoms: str = Field(min_length=1, max_length=4000)
    vitals: str | None = Field(default=None, max_length=1000)
    country_code: str | None = Field(default=None, max_length=8)
    facilities: list[Facility] = Field(default_factory=list)
    history: list[ChatTurn] = Field(default_factory=list)


class TriagePromptRequest(BaseModel):
    symptoms: str = Field(min_length=1, max_length=4000)
    vitals: str | None = Field(default=None, max_length=1000)
    facilities: list[Facility] = Field(default_factory=list)


class TriageReply(BaseModel):
    intent: str = "TRIAGE"
    text: str
