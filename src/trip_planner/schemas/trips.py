"""Trip, day, and stop schemas used by the CRUD service and the HTTP API."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.domain import Day, Place, Stop
from .optimization import OptimizationOptions


class PlaceModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    address: Optional[str] = None
    lat: Optional[float] = Field(default=None, ge=-90, le=90)
    lon: Optional[float] = Field(default=None, ge=-180, le=180)

    def to_domain(self) -> Place:
        return Place(id=self.id, name=self.name, address=self.address, lat=self.lat, lon=self.lon)


class StopModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    seq: int = Field(..., ge=1)
    kind: Literal["start", "via", "end"] = "via"
    fixed: bool = False
    place: PlaceModel

    def to_domain(self) -> Stop:
        return Stop(id=self.id, place=self.place.to_domain(), seq=self.seq, kind=self.kind, fixed=self.fixed)


class DayModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    trip_id: str
    seq: Optional[int] = None
    stops: List[StopModel] = Field(default_factory=list)

    def to_domain(self) -> Day:
        return Day(
            id=self.id,
            trip_id=self.trip_id,
            seq=self.seq,
            stops=[stop.to_domain() for stop in self.stops],
        )


class BaselineModel(BaseModel):
    distance_km: float = Field(..., ge=0)
    duration_min: float = Field(..., ge=0)


class OptimizationPreviewRequest(BaseModel):
    day: DayModel
    options: OptimizationOptions = Field(default_factory=OptimizationOptions)
    baseline: Optional[BaselineModel] = None


class DayOptimizationRequest(BaseModel):
    options: OptimizationOptions = Field(default_factory=OptimizationOptions)
    baseline: Optional[BaselineModel] = None


class StopOrderItem(BaseModel):
    stop_id: str
    seq: int = Field(..., ge=1)


class AcceptOrderRequest(BaseModel):
    order: List[StopOrderItem] = Field(..., min_length=1)


class OptimizationOutcomeResponse(BaseModel):
    attempt: int
    state: str
    stale: bool = False
    result: Optional[Dict[str, Any]] = None
    error: Optional[Dict[str, Any]] = None
