"""
SubRip (SRT) rendering and parsing for subtitle segments.

SRT format:
1
00:00:20,000 --> 00:00:24,400
Subtitle text line 1
Subtitle text line 2

2
00:00:24,600 --> 00:00:27,800
Next subtitle
"""
import re
from typing import List

from .schemas import SubtitleSegment

_RANGE_RE = re.compile(r'(\d{2}:\d{2}:\d{2},\d{3})\s*-->\s*(\d{2}:\d{2}:\d{2},\d{3})')


def to_srt(segments: List[SubtitleSegment]) -> str:
    blocks = []
    for i, seg in enumerate(segments, 1):
        blocks.append(f"{i}\n{seg.start} --> {seg.end}\n{seg.text}\n")
    return "\n".join(blocks)


def parse_srt(srt_content: str) -> List[SubtitleSegment]:
    segments = []

    # Segments are separated by blank lines
    blocks = re.split(r'\n\s*\n', srt_content.replace('\r\n', '\n').strip())

    for block in blocks:
        lines = block.strip().split('\n')
        if len(lines) < 3:
            continue

        # Line 0: sequence number
        try:
            int(lines[0].strip())
        except ValueError:
            continue

        match = _RANGE_RE.match(lines[1].strip())
        if not match:
            continue

        text = '\n'.join(lines[2:]).strip()
        if not text:
            continue

        segments.append(SubtitleSegment(start=match.group(1), end=match.group(2), text=text))

    return segments
