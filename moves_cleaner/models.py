from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar, Mapping, Optional, Tuple, Union

from .constants import MOVE, OFF, PLACE


@dataclass(frozen=True)
class Location:
    lat: float
    lon: float

    @property
    def as_latlon(self) -> Tuple[float, float]:
        return (self.lat, self.lon)


@dataclass(frozen=True)
class TrackPoint:
    lat: float
    lon: float
    time: datetime
    raw_time: Any = field(default=None, compare=False, repr=False)

    @property
    def as_latlon(self) -> Tuple[float, float]:
        return (self.lat, self.lon)

    @property
    def location(self) -> Location:
        return Location(lat=self.lat, lon=self.lon)


@dataclass(frozen=True)
class PlaceInfo:
    id: Any
    location: Location
    name: Optional[str] = None
    place_type: Optional[str] = None
    extra: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Move:
    """Transit between places.

    A compound move lists its sub-episodes in ``activities``; a plain move
    carries ``track_points``. Sub-activities may leave their times unset and
    pick them up from the parent when flattened.

    ``raw`` keeps the record values the codec rewrites (times, ``type``) so
    they can be written back unchanged.
    """

    type: ClassVar[str] = MOVE

    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    activity: Optional[str] = None
    group: Optional[str] = None
    track_points: Tuple[TrackPoint, ...] = ()
    activities: Optional[Tuple["Move", ...]] = None
    duration: Optional[int] = None
    distance: Optional[int] = None
    extra: Mapping[str, Any] = field(default_factory=dict)
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True)
class Place:
    type: ClassVar[str] = PLACE

    start_time: datetime
    end_time: datetime
    place: PlaceInfo
    activities: Optional[Tuple[Move, ...]] = None
    extra: Mapping[str, Any] = field(default_factory=dict)
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True)
class Off:
    type: ClassVar[str] = OFF

    start_time: datetime
    end_time: datetime
    extra: Mapping[str, Any] = field(default_factory=dict)
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)


Segment = Union[Place, Move, Off]
