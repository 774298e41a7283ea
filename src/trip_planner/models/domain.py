"""Domain models for trip days, stops, and places."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Optional

StopKind = Literal["start", "via", "end"]
STOP_KINDS: tuple[str, ...] = ("start", "via", "end")
ANCHOR_KINDS: tuple[str, ...] = ("start", "end")


@dataclass(frozen=True, slots=True)
class Place:
    """A named location. Coordinates may be missing when the place was never geocoded."""

    id: str
    name: str
    lat: Optional[float]
    lon: Optional[float]
    address: Optional[str] = None

    def __post_init__(self) -> None:
        if self.lat is not None and not -90.0 <= self.lat <= 90.0:
            raise ValueError(f"Latitude {self.lat} for place '{self.id}' is outside [-90, 90].")
        if self.lon is not None and not -180.0 <= self.lon <= 180.0:
            raise ValueError(f"Longitude {self.lon} for place '{self.id}' is outside [-180, 180].")

    @property
    def has_coordinates(self) -> bool:
        return self.lat is not None and self.lon is not None


@dataclass(slots=True)
class Stop:
    """A waypoint within a day. Start and end stops are always fixed."""

    id: str
    place: Place
    seq: int
    kind: StopKind = "via"
    fixed: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.seq, bool) or not isinstance(self.seq, int) or self.seq < 1:
            raise ValueError(f"Stop '{self.id}' has invalid seq {self.seq!r}; expected a positive integer.")
        if self.kind not in STOP_KINDS:
            raise ValueError(f"Stop '{self.id}' has invalid kind {self.kind!r}; expected one of {STOP_KINDS}.")
        if self.kind in ANCHOR_KINDS:
            self.fixed = True


@dataclass(slots=True)
class Day:
    """A single day of a trip; stop order is defined by ``Stop.seq``."""

    id: str
    trip_id: str
    stops: List[Stop] = field(default_factory=list)
    seq: Optional[int] = None
