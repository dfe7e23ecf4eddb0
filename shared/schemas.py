from __future__ import annotations
import json
import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, TypeAdapter, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

# HH:MM:SS,mmm is canonical; models also emit "." separators, short fractions
# and MM:SS without hours.
_TS_RE = re.compile(r"^(?:(\d{1,2}):)?(\d{1,2}):(\d{2})(?:[,.](\d{1,3}))?$")


def parse_timestamp(timestamp: str) -> float:
    """Convert a subtitle timestamp (HH:MM:SS,mmm) to seconds."""
    m = _TS_RE.match(timestamp.strip())
    if not m:
        raise ValueError(f"Invalid timestamp: {timestamp!r}")
    hours, minutes, seconds, frac = m.groups()
    if int(minutes) > 59 or int(seconds) > 59:
        raise ValueError(f"Invalid timestamp: {timestamp!r}")
    # "1,5" means 500 ms, not 5 ms
    millis = int((frac or "0").ljust(3, "0"))
    return int(hours or 0) * 3600 + int(minutes) * 60 + int(seconds) + millis / 1000.0


def format_timestamp(seconds: float) -> str:
    """Convert seconds to HH:MM:SS,mmm"""
    if seconds < 0:
        raise ValueError(f"Negative timestamp: {seconds}")
    total_ms = int(round(seconds * 1000))
    hours, rem = divmod(total_ms, 3600 * 1000)
    minutes, rem = divmod(rem, 60 * 1000)
    secs, millis = divmod(rem, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d},{millis:03d}"


class SubtitleSegment(BaseModel):
    """One timed line of transcribed speech."""
    start: str  # HH:MM:SS,mmm
    end: str    # HH:MM:SS,mmm
    text: str

    @field_validator("start", "end")
    @classmethod
    def _normalize_timestamp(cls, v: str) -> str:
        return format_timestamp(parse_timestamp(v))

    @field_validator("text")
    @classmethod
    def _non_empty_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("text must not be empty")
        return v

    @model_validator(mode="after")
    def _start_before_end(self) -> "SubtitleSegment":
        if self.start_sec > self.end_sec:
            raise ValueError(f"start {self.start} is after end {self.end}")
        return self

    @property
    def start_sec(self) -> float:
        return parse_timestamp(self.start)

    @property
    def end_sec(self) -> float:
        return parse_timestamp(self.end)


class TranscriptionRequest(BaseModel):
    # Optional so the handler owns the "missing field" response
    mimeType: Optional[str] = None
    data: Optional[str] = None

    def is_complete(self) -> bool:
        return bool(self.mimeType) and bool(self.data)


TranscriptionResult = TypeAdapter(List[SubtitleSegment])


# Structured-output schema handed to the model (OpenAPI subset)
SEGMENT_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "start": {"type": "string"},
            "end": {"type": "string"},
            "text": {"type": "string"},
        },
        "required": ["start", "end", "text"],
    },
}


def parse_segments(raw_json: str) -> List[SubtitleSegment]:
    """Validate model output text into ordered segments.

    Entries with blank text are dropped. Raises ValueError when the text
    is not JSON or an entry violates the segment shape.
    """
    try:
        items = json.loads(raw_json)
    except json.JSONDecodeError as e:
        raise ValueError(f"Response is not valid JSON: {e.msg}")
    if not isinstance(items, list):
        raise ValueError(f"Expected a JSON array, got {type(items).__name__}")

    kept = [it for it in items if not (isinstance(it, dict) and not str(it.get("text") or "").strip())]
    try:
        segments = TranscriptionResult.validate_python(kept)
    except PydanticValidationError as e:
        raise ValueError(f"Response does not match the segment schema: {e.error_count()} error(s), first: {e.errors()[0]['msg']}")
    # sorted() is stable, so equal starts keep the model's order
    return sorted(segments, key=lambda s: s.start_sec)


def segments_to_json(segments: List[SubtitleSegment]) -> str:
    return TranscriptionResult.dump_json(segments).decode("utf-8")
