"""Raw record shapes returned by the two facility providers."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class OverpassCenter(BaseModel):
    lat: float | None = None
    lon: float | None = None


class OverpassElement(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int | str
    type: str | None = None
    lat: float | None = None
    lon: float | None = None
    center: OverpassCenter | None = None
    tags: dict[str, str] = Field(default_factory=dict)


class NominatimPlace(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    place_id: int | str
    lat: float
    lon: float
    type: str | None = None
    class_: str | None = Field(default=None, alias="class")
    display_name: str = ""
    name: str | None = None
    extratags: dict[str, Any] | None = None


ProviderRecord = OverpassElement | NominatimPlace
