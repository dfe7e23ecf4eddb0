"""
Transcribe an audio file through the transcription API and save subtitles.

Usage:
    python -m tools.transcribe_audio talk.wav                   # writes talk.srt
    python -m tools.transcribe_audio talk.mp3 --format json --out talk.json
    python -m tools.transcribe_audio clip.bin --mime-type audio/wav --endpoint http://host:8080/api/generate
"""
import argparse
import json
import os
import sys
from typing import List, Optional

from shared.errors import TranscriptionError
from shared.schemas import SubtitleSegment
from shared.srt import to_srt
from shared.transcribe_client import generate_transcription


def render(segments: List[SubtitleSegment], fmt: str) -> str:
    if fmt == "json":
        return json.dumps([s.model_dump() for s in segments], ensure_ascii=False, indent=2)
    return to_srt(segments)


def default_output_path(audio_path: str, fmt: str) -> str:
    return os.path.splitext(audio_path)[0] + (".json" if fmt == "json" else ".srt")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Generate subtitles for an audio file")
    parser.add_argument("audio", help="Path to the audio file")
    parser.add_argument("--endpoint", help="Transcription endpoint (default: TRANSCRIBE_ENDPOINT)")
    parser.add_argument("--mime-type", help="Override the detected mime type")
    parser.add_argument("--format", choices=["srt", "json"], default="srt")
    parser.add_argument("--out", help="Output path ('-' for stdout)")
    args = parser.parse_args(argv)

    if not os.path.isfile(args.audio):
        print(f"[ERROR] File not found: {args.audio}", file=sys.stderr)
        return 2

    print(f"== Transcribing: {args.audio}", file=sys.stderr)
    try:
        segments = generate_transcription(args.audio, mime_type=args.mime_type, endpoint=args.endpoint)
    except TranscriptionError as e:
        print(f"[ERROR] {e.message}", file=sys.stderr)
        return 1

    print(f"Got {len(segments)} subtitle segments", file=sys.stderr)
    if segments:
        first = segments[0]
        print(f"First segment: [{first.start} - {first.end}] {first.text[:50]}", file=sys.stderr)

    output = render(segments, args.format)
    out_path = args.out or default_output_path(args.audio, args.format)
    if out_path == "-":
        sys.stdout.write(output)
    else:
        with open(out_path, "w", encoding="utf-8") as fh:
            fh.write(output)
        print(f"[OK] Wrote {out_path}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
