"""Optimization result models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ...models.domain import Stop
from ...schemas.optimization import OptimizationResponse


class OptimizationState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    REQUESTING = "requesting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(slots=True)
class ErrorReport:
    validation_errors: List[str] = field(default_factory=list)
    routing_errors: List[str] = field(default_factory=list)
    system_errors: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.validation_errors or self.routing_errors or self.system_errors)

    @property
    def retryable(self) -> bool:
        return bool(self.routing_errors or self.system_errors)

    def to_dict(self) -> dict:
        return {
            "validation_errors": list(self.validation_errors),
            "routing_errors": list(self.routing_errors),
            "system_errors": list(self.system_errors),
            "suggestions": list(self.suggestions),
            "has_errors": self.has_errors,
            "retryable": self.retryable,
        }


@dataclass(slots=True)
class ReconciledOrder:
    """Stops in the service's visiting order, with seq renumbered from 1."""

    stops: List[Stop]
    original_count: int
    returned_count: int
    warnings: List[str] = field(default_factory=list)

    @property
    def size_mismatch(self) -> bool:
        return self.original_count != self.returned_count


@dataclass(frozen=True, slots=True)
class RouteMetrics:
    distance_km: float
    duration_min: float


@dataclass(frozen=True, slots=True)
class Savings:
    distance_saved: float
    time_saved: float
    distance_saved_percent: float
    time_saved_percent: float


@dataclass(slots=True)
class OptimizationResult:
    response: OptimizationResponse
    order: ReconciledOrder
    baseline: RouteMetrics
    savings: Savings

    @property
    def stops(self) -> List[Stop]:
        return self.order.stops

    @property
    def warnings(self) -> List[str]:
        return [*self.order.warnings, *self.response.diagnostics.warnings]


@dataclass(slots=True)
class OptimizationOutcome:
    """What one ``optimize`` call ended with, as seen by that call's caller."""

    attempt: int
    state: OptimizationState
    result: Optional[OptimizationResult] = None
    error: Optional[ErrorReport] = None
    stale: bool = False
