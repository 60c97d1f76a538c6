from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from moves_cleaner.models import Location, Move, Off, Place
from moves_cleaner.records import (
    clean_records,
    segment_from_record,
    segment_to_record,
    segments_from_payload,
)

CET = timezone(timedelta(hours=1))

PLACE_RECORD = {
    "type": "place",
    "startTime": "20130315T081500+0100",
    "endTime": "20130315T090000+0100",
    "place": {
        "id": 7,
        "name": "Cafe",
        "type": "foursquare",
        "foursquareId": "4df0fdb17d8ba370a011d24c",
        "location": {"lat": 52.3702, "lon": 4.8952},
    },
    "activities": [
        {
            "activity": "walking",
            "group": "walking",
            "startTime": "20130315T082000+0100",
            "endTime": "20130315T082500+0100",
            "steps": 300,
        }
    ],
    "lastUpdate": "20130316T000000Z",
}

MOVE_RECORD = {
    "type": "move",
    "startTime": "20130315T090000+0100",
    "endTime": "20130315T093000+0100",
    "activities": [
        {
            "activity": "cycling",
            "group": "cycling",
            "duration": 1800,
            "distance": 4200,
            "trackPoints": [
                {"lat": 52.3702, "lon": 4.8952, "time": "20130315T090000+0100"},
                {"lat": 52.3802, "lon": 4.9052, "time": "20130315T091500+0100"},
            ],
        }
    ],
}


def test_place_record_decodes():
    segment = segment_from_record(PLACE_RECORD)
    assert isinstance(segment, Place)
    assert segment.start_time == datetime(2013, 3, 15, 8, 15, tzinfo=CET)
    assert segment.place.id == 7
    assert segment.place.location == Location(52.3702, 4.8952)
    assert segment.place.place_type == "foursquare"
    assert segment.place.extra == {"foursquareId": "4df0fdb17d8ba370a011d24c"}
    assert segment.extra == {"lastUpdate": "20130316T000000Z"}
    (activity,) = segment.activities
    assert activity.activity == "walking"
    assert activity.extra == {"steps": 300}


def test_compound_move_record_decodes():
    segment = segment_from_record(MOVE_RECORD)
    assert isinstance(segment, Move)
    (activity,) = segment.activities
    assert activity.start_time is None
    assert activity.distance == 4200
    assert [p.time.minute for p in activity.track_points] == [0, 15]


def test_off_and_unknown_types():
    assert isinstance(segment_from_record({"type": "off", "startTime": 0, "endTime": 1000}), Off)
    with pytest.raises(ValueError):
        segment_from_record({"type": "teleport", "startTime": 0, "endTime": 1000})


def test_records_round_trip_keeps_unknown_keys():
    assert segment_to_record(segment_from_record(PLACE_RECORD)) == PLACE_RECORD


def test_segment_to_record_iso():
    record = segment_to_record(segment_from_record(PLACE_RECORD), iso=True)
    assert record["startTime"] == "2013-03-15T08:15:00+01:00"


def test_payload_shapes():
    days = [
        {"date": "20130315", "segments": [PLACE_RECORD]},
        {"date": "20130316", "segments": None},
        {"date": "20130317", "segments": [MOVE_RECORD]},
    ]
    assert [s.type for s in segments_from_payload(days)] == ["place", "move"]
    assert [s.type for s in segments_from_payload([MOVE_RECORD, None, PLACE_RECORD])] == ["move", "place"]
    assert [s.type for s in segments_from_payload({"segments": [PLACE_RECORD]})] == ["place"]
    with pytest.raises(ValueError):
        segments_from_payload("not a payload")


def test_clean_records_flattens_and_drops_off():
    off_record = {"type": "off", "startTime": "20130315T093000+0100", "endTime": "20130315T100000+0100"}
    result = clean_records([MOVE_RECORD, off_record, PLACE_RECORD])
    assert [r["type"] for r in result] == ["place", "move"]
    cycling = result[1]
    assert cycling["activity"] == "cycling"
    assert cycling["startTime"] == "20130315T090000+0100"
    assert cycling["endTime"] == "20130315T093000+0100"
    assert "activities" not in cycling


def test_times_keep_their_original_form():
    record = {"type": "off", "startTime": "2013-03-15T07:15:00.500Z", "endTime": 1363332600000}
    assert segment_to_record(segment_from_record(record)) == record


def test_new_fractional_times_fall_back_to_iso():
    segment = segment_from_record({"type": "off", "startTime": 0, "endTime": 1000})
    shifted = replace(segment, start_time=datetime(2013, 3, 15, 7, 15, 0, 250000, tzinfo=timezone.utc))
    assert segment_to_record(shifted)["startTime"] == "2013-03-15T07:15:00.250000+00:00"


def test_merged_move_keeps_each_side_text():
    first = {
        "type": "move",
        "activity": "walking",
        "startTime": "2013-03-15T07:00:00Z",
        "endTime": "2013-03-15T07:10:00Z",
    }
    second = {**first, "startTime": "2013-03-15T07:10:00Z", "endTime": "2013-03-15T07:20:00.750Z"}
    (merged,) = clean_records([first, second])
    assert merged["startTime"] == "2013-03-15T07:00:00Z"
    assert merged["endTime"] == "2013-03-15T07:20:00.750Z"
    assert merged["duration"] == 1200


def test_place_activities_pass_through_untyped():
    (place,) = clean_records([PLACE_RECORD])
    assert place["activities"] == PLACE_RECORD["activities"]
    assert "type" not in place["activities"][0]


def test_merged_places_always_list_activities():
    bare = {key: value for key, value in PLACE_RECORD.items() if key != "activities"}
    later = {**bare, "startTime": "20130315T090000+0100", "endTime": "20130315T100000+0100"}
    assert "activities" not in clean_records([bare])[0]
    (merged,) = clean_records([bare, later])
    assert merged["activities"] == []
    assert merged["endTime"] == "20130315T100000+0100"


@pytest.mark.parametrize("missing", ["startTime", "endTime"])
def test_top_level_segments_need_times(missing):
    record = {key: value for key, value in MOVE_RECORD.items() if key != missing}
    with pytest.raises(ValueError):
        segment_from_record(record)
