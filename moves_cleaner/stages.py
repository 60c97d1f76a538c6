from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import replace
from operator import attrgetter
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from .constants import DEFAULT_NEAR_THRESHOLD_M
from .geo import is_location_near, path_distance_m
from .merge import merge_adjacent
from .models import Location, Move, Off, Place, Segment
from .time_utils import seconds_between, unix_seconds

logger = logging.getLogger(__name__)

NeighbourFn = Callable[[Segment, Optional[Segment], Optional[Segment]], Segment]


def ensure_segment_list(segments: Iterable[Segment]) -> List[Segment]:
    if segments is None or isinstance(segments, (str, bytes, Mapping)):
        raise TypeError(f"Expected a sequence of segments, got {type(segments).__name__}")
    try:
        return list(segments)
    except TypeError as exc:
        raise TypeError(f"Expected a sequence of segments, got {type(segments).__name__}") from exc


def locations_of_segment(segment: Segment) -> List[Location]:
    if isinstance(segment, Place):
        return [segment.place.location]
    if isinstance(segment, Move):
        return [point.location for point in segment.track_points or ()]
    return []


def is_same_move(a: Segment, b: Segment) -> bool:
    return isinstance(a, Move) and isinstance(b, Move) and a.activity == b.activity


def is_same_place(a: Segment, b: Segment) -> bool:
    return isinstance(a, Place) and isinstance(b, Place) and a.place.id == b.place.id


def is_same_segment(a: Segment, b: Segment) -> bool:
    return a.type == b.type and a.start_time == b.start_time and a.end_time == b.end_time


def _segment_key(segment: Segment) -> Tuple[str, int, int]:
    return (segment.type, unix_seconds(segment.start_time), unix_seconds(segment.end_time))


def _inherit_timing(activity: Move, parent: Move) -> Move:
    return replace(
        activity,
        start_time=activity.start_time if activity.start_time is not None else parent.start_time,
        end_time=activity.end_time if activity.end_time is not None else parent.end_time,
    )


def flatten_move_segments(segments: Iterable[Segment]) -> List[Segment]:
    expanded: List[Segment] = []
    for segment in ensure_segment_list(segments):
        if isinstance(segment, Move) and segment.activities is not None:
            expanded.extend(
                _inherit_timing(activity, segment) for activity in segment.activities if activity
            )
        elif segment:
            expanded.append(segment)

    flattened: List[Segment] = []
    seen = set()
    for segment in expanded:
        key = _segment_key(segment)
        if key in seen:
            continue
        seen.add(key)
        flattened.append(segment)
    return flattened


def sort_segments(segments: Iterable[Segment]) -> List[Segment]:
    return sorted(ensure_segment_list(segments), key=lambda segment: unix_seconds(segment.start_time))


def _merge_moves(a: Move, b: Move) -> Move:
    track_points = tuple(sorted((a.track_points or ()) + (b.track_points or ()), key=attrgetter("time")))
    return replace(
        a,
        end_time=b.end_time,
        duration=seconds_between(a.start_time, b.end_time),
        distance=path_distance_m(track_points),
        track_points=track_points,
    )


def _unique_segments(segments: Sequence[Segment]) -> Tuple[Segment, ...]:
    unique: List[Segment] = []
    for segment in segments:
        if not any(is_same_segment(kept, segment) for kept in unique):
            unique.append(segment)
    return tuple(unique)


def _merge_places(a: Place, b: Place) -> Place:
    return replace(
        a,
        end_time=b.end_time,
        activities=_unique_segments(tuple(a.activities or ()) + tuple(b.activities or ())),
    )


def merge_move_segments(segments: Iterable[Segment]) -> List[Segment]:
    return merge_adjacent(ensure_segment_list(segments), is_same_move, _merge_moves)


def merge_place_segments(segments: Iterable[Segment]) -> List[Segment]:
    return merge_adjacent(ensure_segment_list(segments), is_same_place, _merge_places)


def map_with_neighbours(segments: Sequence[Segment], fn: NeighbourFn) -> List[Segment]:
    """Apply ``fn(current, previous, following)`` along ``segments``.

    ``previous`` is the value ``fn`` returned for the prior element.
    ``following`` is the raw next element, and is only supplied while
    ``index + 1 < len(segments) - 1``; the final two elements get ``None``.
    """

    mapped: List[Segment] = []
    previous: Optional[Segment] = None
    last_index = len(segments) - 1
    for index, segment in enumerate(segments):
        following = segments[index + 1] if index + 1 < last_index else None
        previous = fn(segment, previous, following)
        mapped.append(previous)
    return mapped


def close_gaps(
    segments: Iterable[Segment],
    near_threshold_m: float = DEFAULT_NEAR_THRESHOLD_M,
) -> List[Segment]:
    """Stretch place segments to touch neighbours recorded at the same spot."""

    def close(current: Segment, previous: Optional[Segment], following: Optional[Segment]) -> Segment:
        if not isinstance(current, Place):
            return current

        if previous is not None:
            previous_locations = locations_of_segment(previous)
            previous_end = previous_locations[-1] if previous_locations else None
            current_start = locations_of_segment(current)[0]
            if is_location_near(current_start, previous_end, near_threshold_m):
                logger.debug("Pulling start of place %s back to %s", current.place.id, previous.end_time)
                current = replace(current, start_time=previous.end_time)

        if following is not None:
            current_end = locations_of_segment(current)[-1]
            following_locations = locations_of_segment(following)
            following_start = following_locations[0] if following_locations else None
            if is_location_near(current_end, following_start, near_threshold_m):
                logger.debug("Pushing end of place %s forward to %s", current.place.id, following.start_time)
                current = replace(current, end_time=following.start_time)

        return current

    return map_with_neighbours(ensure_segment_list(segments), close)


def filter_off_segments(segments: Iterable[Segment]) -> List[Segment]:
    return [segment for segment in ensure_segment_list(segments) if not isinstance(segment, Off)]
