"""Conversion between JSON-compatible storyline records and typed segments."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from .cleaner import MovesCleaner
from .config import CleanerConfig
from .constants import MOVE, OFF, PLACE
from .models import Location, Move, Off, Place, PlaceInfo, Segment, TrackPoint
from .time_utils import format_timestamp, parse_timestamp

_COMMON_KEYS = {"type", "startTime", "endTime"}
_MOVE_KEYS = _COMMON_KEYS | {"activity", "group", "trackPoints", "activities", "duration", "distance"}
_PLACE_KEYS = _COMMON_KEYS | {"place", "activities"}
_PLACE_INFO_KEYS = {"id", "name", "type", "location"}

TimeTexts = Mapping[datetime, Any]


def _optional_time(record: Mapping[str, Any], key: str) -> Optional[datetime]:
    raw = record.get(key)
    return parse_timestamp(raw) if raw is not None else None


def _required_time(record: Mapping[str, Any], key: str) -> datetime:
    raw = record.get(key)
    if raw is None:
        raise ValueError(f"{record.get('type', 'segment')} record is missing {key!r}")
    return parse_timestamp(raw)


def _extra(record: Mapping[str, Any], known: set) -> Dict[str, Any]:
    return {key: value for key, value in record.items() if key not in known}


def _raw(record: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: record[key] for key in _COMMON_KEYS if key in record}


def _location_from_record(record: Mapping[str, Any]) -> Location:
    return Location(lat=float(record["lat"]), lon=float(record["lon"]))


def _track_point_from_record(record: Mapping[str, Any]) -> TrackPoint:
    return TrackPoint(
        lat=float(record["lat"]),
        lon=float(record["lon"]),
        time=parse_timestamp(record["time"]),
        raw_time=record["time"],
    )


def _move_from_record(record: Mapping[str, Any]) -> Move:
    activities = record.get("activities")
    return Move(
        start_time=_optional_time(record, "startTime"),
        end_time=_optional_time(record, "endTime"),
        activity=record.get("activity"),
        group=record.get("group"),
        track_points=tuple(_track_point_from_record(point) for point in record.get("trackPoints") or ()),
        activities=tuple(_move_from_record(item) for item in activities if item) if activities is not None else None,
        duration=record.get("duration"),
        distance=record.get("distance"),
        extra=_extra(record, _MOVE_KEYS),
        raw=_raw(record),
    )


def _place_from_record(record: Mapping[str, Any]) -> Place:
    place = record["place"]
    activities = record.get("activities")
    return Place(
        start_time=_required_time(record, "startTime"),
        end_time=_required_time(record, "endTime"),
        place=PlaceInfo(
            id=place.get("id"),
            location=_location_from_record(place["location"]),
            name=place.get("name"),
            place_type=place.get("type"),
            extra=_extra(place, _PLACE_INFO_KEYS),
        ),
        activities=tuple(_move_from_record(item) for item in activities if item) if activities is not None else None,
        extra=_extra(record, _PLACE_KEYS),
        raw=_raw(record),
    )


def segment_from_record(record: Mapping[str, Any]) -> Segment:
    """Decode one top-level segment record.

    Top-level segments must carry ``startTime`` and ``endTime``; only the
    sub-activities of a compound move may omit them.
    """

    segment_type = record.get("type")
    if segment_type == PLACE:
        return _place_from_record(record)
    if segment_type == MOVE:
        _required_time(record, "startTime")
        _required_time(record, "endTime")
        return _move_from_record(record)
    if segment_type == OFF:
        return Off(
            start_time=_required_time(record, "startTime"),
            end_time=_required_time(record, "endTime"),
            extra=_extra(record, _COMMON_KEYS),
            raw=_raw(record),
        )
    raise ValueError(f"Unrecognised segment type {segment_type!r}")


def _iter_segment_records(payload: Any) -> Iterable[Mapping[str, Any]]:
    if isinstance(payload, Mapping) and "segments" in payload:
        yield from payload["segments"] or ()
        return
    if isinstance(payload, list):
        for entry in payload:
            if entry is None:
                continue
            if isinstance(entry, Mapping) and "segments" in entry and "type" not in entry:
                # storyline day: {"date": ..., "segments": [...] or null}
                yield from entry["segments"] or ()
            else:
                yield entry
        return
    raise ValueError("Unrecognised storyline payload structure")


def segments_from_payload(payload: Any) -> List[Segment]:
    """Decode a parsed storyline export into segments.

    ``payload`` may be a list of segment records, a list of storyline days
    (each with a ``segments`` list), or a mapping with a ``segments`` key.
    """

    return [segment_from_record(record) for record in _iter_segment_records(payload) if record]


def _collect_time_texts(segments: Iterable[Segment], texts: Dict[datetime, Any]) -> Dict[datetime, Any]:
    for segment in segments:
        for key in ("startTime", "endTime"):
            if segment.raw.get(key) is not None:
                texts.setdefault(parse_timestamp(segment.raw[key]), segment.raw[key])
        if isinstance(segment, Move):
            for point in segment.track_points:
                if point.raw_time is not None:
                    texts.setdefault(point.time, point.raw_time)
        activities = getattr(segment, "activities", None)
        if activities:
            _collect_time_texts(activities, texts)
    return texts


def _time_text(value: datetime, texts: TimeTexts, iso: bool) -> Any:
    if not iso and value in texts:
        return texts[value]
    return format_timestamp(value, iso)


def _times(segment: Segment, texts: TimeTexts, iso: bool) -> Dict[str, Any]:
    times: Dict[str, Any] = {}
    if segment.start_time is not None:
        times["startTime"] = _time_text(segment.start_time, texts, iso)
    if segment.end_time is not None:
        times["endTime"] = _time_text(segment.end_time, texts, iso)
    return times


def _move_to_record(move: Move, texts: TimeTexts, iso: bool, top_level: bool) -> Dict[str, Any]:
    record: Dict[str, Any] = dict(move.extra)
    # sub-activities from exports carry no type unless they were flattened
    if top_level or "type" in move.raw:
        record["type"] = MOVE
    record.update(_times(move, texts, iso))
    if move.activity is not None:
        record["activity"] = move.activity
    if move.group is not None:
        record["group"] = move.group
    if move.duration is not None:
        record["duration"] = move.duration
    if move.distance is not None:
        record["distance"] = move.distance
    if move.track_points:
        record["trackPoints"] = [
            {"lat": point.lat, "lon": point.lon, "time": _time_text(point.time, texts, iso)}
            for point in move.track_points
        ]
    if move.activities is not None:
        record["activities"] = [_move_to_record(activity, texts, iso, False) for activity in move.activities]
    return record


def _segment_to_record(segment: Segment, texts: TimeTexts, iso: bool) -> Dict[str, Any]:
    if isinstance(segment, Move):
        return _move_to_record(segment, texts, iso, True)

    record: Dict[str, Any] = dict(segment.extra)
    record["type"] = segment.type
    record.update(_times(segment, texts, iso))
    if isinstance(segment, Place):
        info = segment.place
        place: Dict[str, Any] = dict(info.extra)
        place["id"] = info.id
        if info.name is not None:
            place["name"] = info.name
        if info.place_type is not None:
            place["type"] = info.place_type
        place["location"] = {"lat": info.location.lat, "lon": info.location.lon}
        record["place"] = place
        if segment.activities is not None:
            record["activities"] = [
                _move_to_record(activity, texts, iso, False) for activity in segment.activities
            ]
    return record


def segment_to_record(segment: Segment, iso: bool = False) -> Dict[str, Any]:
    """Encode a segment as a JSON-compatible dict.

    Instants read from records are written back in their original form.
    New instants use the compact storyline form, or ISO-8601 when ``iso`` is
    set or the instant has fractional seconds. ``iso`` rewrites every time.
    """

    return _segment_to_record(segment, _collect_time_texts([segment], {}), iso)


def segments_to_records(segments: Iterable[Segment], iso: bool = False) -> List[Dict[str, Any]]:
    segments = list(segments)
    texts = _collect_time_texts(segments, {})
    return [_segment_to_record(segment, texts, iso) for segment in segments]


def clean_records(
    payload: Any,
    config: Union[CleanerConfig, Mapping[str, Any], None] = None,
    iso: bool = False,
) -> List[Dict[str, Any]]:
    """Decode ``payload``, run the full cleaning pipeline, and encode the result."""

    segments = segments_from_payload(payload)
    # off segments may be dropped while their instants live on in neighbours
    texts = _collect_time_texts(segments, {})
    cleaned = MovesCleaner(config).apply(segments)
    return [_segment_to_record(segment, texts, iso) for segment in cleaned]
