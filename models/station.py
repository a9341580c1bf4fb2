from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class DiagramCoords(BaseModel):
    """Position on the static route diagram, as CSS percentages."""

    model_config = ConfigDict(frozen=True)

    x: str
    y: str


class RealCoords(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float
    lng: float


class Station(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., min_length=1)
    name: str
    lines: List[str] = Field(default_factory=list)
    coords: DiagramCoords
    plus_code: Optional[str] = Field(default=None, alias="plusCode")
    # None means the station cannot be shown on an interactive map.
    real_coords: Optional[RealCoords] = Field(default=None, alias="realCoords")

    @property
    def has_map_placement(self) -> bool:
        return self.real_coords is not None
