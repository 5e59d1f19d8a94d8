from __future__ import annotations

import math
import re
from typing import Iterable

from .models import Segment, SegmentTranscript

SPEAKER_LABEL = re.compile(r"^\s*\*\*(.+?):\*\*", re.MULTILINE)
OVERLAP_LINE_FRACTION = 0.1
SEGMENT_SEPARATOR = "\n\n---\n\n"


def extract_speakers(text: str) -> list[str]:
    speakers: list[str] = []
    for match in SPEAKER_LABEL.finditer(text):
        name = match.group(1).strip()
        if name and name not in speakers:
            speakers.append(name)
    return speakers


def split_overlap(text: str, has_overlap: bool) -> tuple[str, str]:
    lines = text.split("\n")
    overlap_lines = math.ceil(len(lines) * OVERLAP_LINE_FRACTION) if has_overlap else 0
    if overlap_lines <= 0:
        return text, ""

    keep = len(lines) - overlap_lines
    return "\n".join(lines[:keep]), "\n".join(lines[keep:])


def parse_segment_transcript(raw_text: str, segment: Segment) -> SegmentTranscript:
    main_text, overlap_text = split_overlap(raw_text, segment.has_overlap)
    return SegmentTranscript(
        segment_index=segment.index,
        full_text=raw_text,
        speakers=extract_speakers(raw_text),
        main_text=main_text,
        overlap_text=overlap_text,
    )


def merge_overlaps(transcripts: Iterable[SegmentTranscript]) -> str:
    """Join segment transcripts into one document.

    The first segment contributes its full text; every later segment only its
    main text with its own trailing overlap lines cut. No text-level
    reconciliation of the overlapped audio is attempted.
    """
    merged: list[str] = []
    for position, transcript in enumerate(transcripts):
        if position == 0:
            merged.append(transcript.full_text)
        else:
            merged.append(transcript.main_text)
    return SEGMENT_SEPARATOR.join(merged)
