import json

import pytest
from pydantic import ValidationError

from shared.schemas import (
    SEGMENT_RESPONSE_SCHEMA,
    SubtitleSegment,
    format_timestamp,
    parse_segments,
    parse_timestamp,
)


def test_parse_timestamp_variants() -> None:
    assert parse_timestamp("00:00:20,000") == 20.0
    assert parse_timestamp("01:02:03,456") == pytest.approx(3723.456)
    assert parse_timestamp("00:00:01.5") == pytest.approx(1.5)
    assert parse_timestamp("02:03,040") == pytest.approx(123.04)


@pytest.mark.parametrize("bad", ["", "1:2", "00:61:00,000", "00:00:00,0000", "abc"])
def test_parse_timestamp_rejects_garbage(bad: str) -> None:
    with pytest.raises(ValueError):
        parse_timestamp(bad)


def test_format_timestamp() -> None:
    assert format_timestamp(0) == "00:00:00,000"
    assert format_timestamp(3723.456) == "01:02:03,456"
    with pytest.raises(ValueError):
        format_timestamp(-1)


def test_segment_normalizes_and_strips() -> None:
    seg = SubtitleSegment(start="0:01.2", end="00:00:02,000", text="  hi there ")
    assert seg.start == "00:00:01,200"
    assert seg.text == "hi there"
    assert seg.start_sec == pytest.approx(1.2)


def test_segment_invariants() -> None:
    with pytest.raises(ValidationError):
        SubtitleSegment(start="00:00:03,000", end="00:00:02,000", text="late")
    with pytest.raises(ValidationError):
        SubtitleSegment(start="00:00:01,000", end="00:00:02,000", text="")
    # Zero-length segment is allowed
    SubtitleSegment(start="00:00:01,000", end="00:00:01,000", text="blip")


def test_parse_segments_keeps_order_of_equal_starts() -> None:
    raw = json.dumps([
        {"start": "00:00:01,000", "end": "00:00:02,000", "text": "b"},
        {"start": "00:00:00,000", "end": "00:00:01,000", "text": "a"},
        {"start": "00:00:01,000", "end": "00:00:01,500", "text": "c"},
    ])
    assert [s.text for s in parse_segments(raw)] == ["a", "b", "c"]


def test_parse_segments_rejects_non_array() -> None:
    with pytest.raises(ValueError, match="JSON array"):
        parse_segments('{"start": "00:00:00,000"}')
    with pytest.raises(ValueError, match="not valid JSON"):
        parse_segments("Sure! Here is your transcript")
    with pytest.raises(ValueError, match="segment schema"):
        parse_segments('[{"start": "00:00:00,000", "text": "no end"}]')


def test_response_schema_requires_all_fields() -> None:
    items = SEGMENT_RESPONSE_SCHEMA["items"]
    assert SEGMENT_RESPONSE_SCHEMA["type"] == "array"
    assert set(items["required"]) == {"start", "end", "text"}
    assert all(p == {"type": "string"} for p in items["properties"].values())
