from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class FacilitySource(str, Enum):
    OVERPASS = "Overpass"
    NOMINATIM = "Nominatim"


class Coordinates(BaseModel):
    lat: float
    lon: float


class Facility(BaseModel):
    id: str
    name: str
    type: str
    coordinates: Coordinates
    phone: str | None = None
    distance_meters: float = Field(ge=0)
    source: FacilitySource
    services: list[str] = Field(default_factory=list)
    raw_attributes: dict[str, Any] = Field(default_factory=dict)


class NearbyQuery(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)
    radius: int = Field(default=5000, gt=0, le=50_000)
    category: str = Field(default="medical", min_length=1, max_length=64)


class GeocodeResult(BaseModel):
    lat: float
    lon: float
