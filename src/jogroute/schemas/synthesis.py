"""Route synthesis request/response schemas."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, model_validator


class LatLng(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class SynthesisRequestModel(BaseModel):
    start: Optional[LatLng] = Field(default=None, description="Start coordinates.")
    start_query: Optional[str] = Field(default=None, description="Free-text start place, resolved when start is omitted.")
    end: Optional[LatLng] = Field(default=None, description="End coordinates (point-to-point only).")
    end_query: Optional[str] = Field(default=None, description="Free-text end place, resolved when end is omitted.")
    target_distance: float = Field(..., description="Desired route length in `unit`.")
    unit: Literal["km", "mi"] = "km"
    mode: Literal["loop", "point-to-point"] = "loop"
    seed: Optional[int] = Field(default=None, description="Seed for reproducible waypoint sampling.")

    @model_validator(mode="after")
    def _strip_queries(self) -> "SynthesisRequestModel":
        if self.start_query is not None:
            self.start_query = self.start_query.strip() or None
        if self.end_query is not None:
            self.end_query = self.end_query.strip() or None
        return self


class StepModel(BaseModel):
    instruction: str
    instruction_html: str
    distance_text: str
    duration_text: str


class LegModel(BaseModel):
    label: str
    distance_text: str
    duration_text: str
    steps: List[StepModel]


class RouteModel(BaseModel):
    origin: LatLng
    destination: LatLng
    waypoints: List[LatLng]
    total_distance_km: float
    total_duration_seconds: float
    wkt: Optional[str] = None


class SynthesisResponseModel(BaseModel):
    estimated_distance: float
    unit: Literal["km", "mi"]
    mode: Literal["loop", "point-to-point"]
    outcome: str
    route: RouteModel
    directions: List[LegModel]
    directions_text: str
    map_overlay: Dict[str, Any]
    metadata: Dict[str, Any]


class PlaceModel(BaseModel):
    query: str
    location: Optional[LatLng]
