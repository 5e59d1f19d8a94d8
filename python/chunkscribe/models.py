from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class Segment:
    index: int
    start_time: float
    end_time: float
    duration: float
    has_overlap: bool

    @property
    def filename(self) -> str:
        return f"chunk-{self.index + 1:03d}.mp3"

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "filename": self.filename,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "duration": self.duration,
            "hasOverlap": self.has_overlap,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Segment:
        return cls(
            index=int(raw["index"]),
            start_time=float(raw["startTime"]),
            end_time=float(raw["endTime"]),
            duration=float(raw["duration"]),
            has_overlap=bool(raw["hasOverlap"]),
        )


@dataclass(slots=True)
class SegmentTranscript:
    segment_index: int
    full_text: str
    speakers: list[str] = field(default_factory=list)
    main_text: str = ""
    overlap_text: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "segmentIndex": self.segment_index,
            "fullText": self.full_text,
            "speakers": list(self.speakers),
            "mainText": self.main_text,
            "overlapText": self.overlap_text,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> SegmentTranscript:
        speakers = raw.get("speakers") or []
        return cls(
            segment_index=int(raw["segmentIndex"]),
            full_text=str(raw["fullText"]),
            speakers=[str(name) for name in speakers],
            main_text=str(raw.get("mainText") or ""),
            overlap_text=str(raw.get("overlapText") or ""),
        )


@dataclass(frozen=True, slots=True)
class TranscriptionContext:
    trailing_text: str = ""
    speaker_aliases: dict[str, str] = field(default_factory=dict)
    speaker_descriptions: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class SessionRecord:
    source_file: str
    fingerprint: str
    total_duration: float
    window_duration: float
    overlap_duration: float
    segments: list[Segment]
    created_at: str
    transcripts: dict[int, SegmentTranscript] = field(default_factory=dict)

    @property
    def completed_count(self) -> int:
        return len(self.transcripts)

    @property
    def is_complete(self) -> bool:
        return bool(self.segments) and all(seg.index in self.transcripts for seg in self.segments)

    def first_pending_index(self) -> int | None:
        for segment in self.segments:
            if segment.index not in self.transcripts:
                return segment.index
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "sourceFile": self.source_file,
            "fingerprint": self.fingerprint,
            "totalDuration": self.total_duration,
            "windowDuration": self.window_duration,
            "overlapDuration": self.overlap_duration,
            "segments": [segment.to_dict() for segment in self.segments],
            "createdAt": self.created_at,
            "transcripts": {
                str(idx): transcript.to_dict()
                for idx, transcript in sorted(self.transcripts.items())
            },
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> SessionRecord:
        segments = [Segment.from_dict(item) for item in raw["segments"]]
        transcripts = {
            int(key): SegmentTranscript.from_dict(value)
            for key, value in (raw.get("transcripts") or {}).items()
        }
        return cls(
            source_file=str(raw["sourceFile"]),
            fingerprint=str(raw["fingerprint"]),
            total_duration=float(raw["totalDuration"]),
            window_duration=float(raw["windowDuration"]),
            overlap_duration=float(raw["overlapDuration"]),
            segments=segments,
            created_at=str(raw["createdAt"]),
            transcripts=transcripts,
        )
