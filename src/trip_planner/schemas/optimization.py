"""Optimization request/response schemas (wire format of the routing service)."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

Objective = Literal["time", "distance"]
VehicleProfile = Literal["car", "bike", "foot"]
AvoidOption = Literal["tolls", "ferries", "highways"]


class OptimizationOptions(BaseModel):
    """User-tunable knobs; the defaults are what "reset options" returns to."""

    objective: Objective = "time"
    vehicle_profile: VehicleProfile = "car"
    avoid: List[AvoidOption] = Field(default_factory=list)
    prompt: Optional[str] = Field(default=None, max_length=500)

    @field_validator("avoid")
    @classmethod
    def _dedupe_avoid(cls, value: List[str]) -> List[str]:
        deduped: List[str] = []
        for item in value:
            if item not in deduped:
                deduped.append(item)
        return deduped


class LocationPayload(BaseModel):
    id: str
    name: str
    lat: float
    lng: float
    fixed_seq: Optional[bool] = None
    seq: Optional[int] = None


class OptimizationRequest(BaseModel):
    trip_id: str
    day_id: str
    start: LocationPayload
    stops: List[LocationPayload]
    end: LocationPayload
    objective: Objective
    vehicle_profile: VehicleProfile
    units: Literal["metric"] = "metric"
    avoid: Optional[List[AvoidOption]] = None
    prompt: Optional[str] = None

    def to_payload(self) -> dict:
        """JSON body with optional fields omitted rather than sent as null."""
        return self.model_dump(exclude_none=True)


class OptimizedLocation(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    type: Optional[str] = None
    name: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    seq: Optional[int] = None
    distance_from_prev_km: Optional[float] = None
    duration_from_prev_min: Optional[float] = None


class RouteSummary(BaseModel):
    stop_count: int = 0
    total_distance_km: float = 0.0
    total_duration_min: float = 0.0


class Diagnostics(BaseModel):
    warnings: List[str] = Field(default_factory=list)
    assumptions: List[str] = Field(default_factory=list)
    computation_notes: List[str] = Field(default_factory=list)


class OptimizationResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    version: Optional[str] = None
    objective: Optional[str] = None
    units: Optional[str] = None
    ordered: List[OptimizedLocation]
    summary: RouteSummary = Field(default_factory=RouteSummary)
    geometry: Dict[str, Any] = Field(default_factory=dict)
    diagnostics: Diagnostics = Field(default_factory=Diagnostics)


class ServiceErrorItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    code: str
    message: Optional[str] = None


class ServiceErrorBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    version: Optional[str] = None
    errors: List[ServiceErrorItem]
