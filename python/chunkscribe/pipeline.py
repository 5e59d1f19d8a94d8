from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable

from .audio import encode_audio_base64, file_fingerprint, probe_duration_seconds, render_segment
from .context import build_prompt, update_context
from .errors import SourceNotFoundError, TranscriptionError
from .merge import merge_overlaps, parse_segment_transcript
from .models import Segment, SegmentTranscript, SessionRecord, TranscriptionContext
from .openai_engine import DEFAULT_MODEL, TranscriptionEngine
from .paths import cache_root
from .planning import DEFAULT_OVERLAP_SEC, DEFAULT_WINDOW_SEC, format_clock, plan_segments
from .polish import polish_transcript
from .storage import SegmentCache

ProgressCallback = Callable[[str, dict[str, object]], None]


class SegmentState(str, Enum):
    CACHED = "cached"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    FAILED = "failed"


@dataclass(slots=True)
class TranscriberSettings:
    cache_root: Path = field(default_factory=cache_root)
    model: str = DEFAULT_MODEL
    window_duration: float = DEFAULT_WINDOW_SEC
    overlap_duration: float = DEFAULT_OVERLAP_SEC
    polish: bool = True

    @classmethod
    def from_env(cls) -> TranscriberSettings:
        return cls(
            cache_root=cache_root(),
            model=os.environ.get("TRANSCRIBE_MODEL", "").strip() or DEFAULT_MODEL,
        )


@dataclass(frozen=True, slots=True)
class SessionState:
    record: SessionRecord
    context: TranscriptionContext = field(default_factory=TranscriptionContext)
    transcripts: tuple[SegmentTranscript, ...] = ()
    source: Path | None = None


@dataclass(slots=True)
class TranscriptionResult:
    fingerprint: str
    record: SessionRecord
    merged: str
    text: str
    polished: bool


def _noop_progress(_event_type: str, _payload: dict[str, object]) -> None:
    return None


class ChunkedTranscriber:
    """Segment-by-segment transcription with a resumable on-disk session.

    Every completed segment is written to the cache before the next one
    starts, so an interrupted run resumes at the first segment without a
    stored transcript.
    """

    def __init__(
        self,
        engine: TranscriptionEngine,
        settings: TranscriberSettings | None = None,
        *,
        cache: SegmentCache | None = None,
        progress: ProgressCallback | None = None,
    ):
        self.engine = engine
        self.settings = settings or TranscriberSettings()
        self.cache = cache or SegmentCache(self.settings.cache_root)
        self.progress = progress or _noop_progress

    def _report(
        self,
        record: SessionRecord | None,
        *,
        stage: str,
        percent: float,
        message: str,
        segment: Segment | None = None,
        state: SegmentState | None = None,
    ) -> None:
        total = len(record.segments) if record else 0
        payload: dict[str, object] = {
            "fingerprint": record.fingerprint if record else None,
            "stage": stage,
            "percent": round(max(0.0, min(100.0, percent)), 2),
            "segmentsDone": record.completed_count if record else 0,
            "segmentsTotal": total,
            "message": message,
        }
        if segment is not None:
            payload["segmentIndex"] = segment.index
        if state is not None:
            payload["segmentState"] = state.value
        self.progress("progress", payload)

    def prepare_session(self, source_path: Path) -> SessionRecord:
        source = Path(source_path)
        if not source.exists():
            raise SourceNotFoundError(f"Audio file not found: {source}")

        fingerprint = file_fingerprint(source)
        if self.cache.exists(fingerprint):
            record = self.cache.load(fingerprint)
            self._report(
                record,
                stage="preprocess",
                percent=8,
                message=f"Found cached session ({record.completed_count}/{len(record.segments)} segments done)",
            )
            return record

        self._report(None, stage="preprocess", percent=2, message="Probing audio duration...")
        duration = probe_duration_seconds(source)
        segments = plan_segments(
            duration,
            self.settings.window_duration,
            self.settings.overlap_duration,
        )

        for segment in segments:
            self._report(
                None,
                stage="preprocess",
                percent=3 + (segment.index / max(len(segments), 1)) * 5,
                message=(
                    f"Creating segment {segment.index + 1} "
                    f"({format_clock(segment.start_time)} - {format_clock(segment.end_time)})"
                ),
            )
            render_segment(
                source,
                self.cache.segment_path(fingerprint, segment),
                segment.start_time,
                segment.duration,
            )

        record = self.cache.create(
            source_file=str(source),
            fingerprint=fingerprint,
            total_duration=duration,
            window_duration=self.settings.window_duration,
            overlap_duration=self.settings.overlap_duration,
            segments=segments,
        )
        self.cache.save(fingerprint, record)
        self._report(record, stage="preprocess", percent=8, message=f"Created {len(segments)} segments")
        return record

    def _ensure_segment_audio(self, record: SessionRecord, segment: Segment, source: Path | None = None) -> Path:
        path = self.cache.segment_path(record.fingerprint, segment)
        if not path.exists():
            render_segment(source or Path(record.source_file), path, segment.start_time, segment.duration)
        return path

    def transcribe_segment(
        self,
        record: SessionRecord,
        segment: Segment,
        context: TranscriptionContext,
        source: Path | None = None,
    ) -> SegmentTranscript:
        audio_path = self._ensure_segment_audio(record, segment, source)
        prompt = build_prompt(context)
        try:
            raw_text = self.engine.generate(
                self.settings.model,
                prompt,
                encode_audio_base64(audio_path),
            )
        except Exception as exc:  # noqa: BLE001 - provider error typing is broad
            raise TranscriptionError(
                f"Segment {segment.index + 1}/{len(record.segments)} failed: {exc}",
                segment_index=segment.index,
            ) from exc
        return parse_segment_transcript(raw_text or "", segment)

    def step(self, state: SessionState, segment: Segment) -> SessionState:
        record = state.record
        total = len(record.segments)
        label = f"Segment {segment.index + 1}/{total}"

        cached = record.transcripts.get(segment.index)
        if cached is not None:
            self._report(
                record,
                stage="transcribe",
                percent=10 + (len(state.transcripts) + 1) / max(total, 1) * 80,
                message=f"{label}: using cached transcript",
                segment=segment,
                state=SegmentState.CACHED,
            )
            self._report(
                record,
                stage="transcribe",
                percent=10 + (len(state.transcripts) + 1) / max(total, 1) * 80,
                message=f"{label}: complete (cached)",
                segment=segment,
                state=SegmentState.DONE,
            )
            return dataclasses.replace(
                state,
                context=update_context(state.context, cached),
                transcripts=state.transcripts + (cached,),
            )

        self._report(
            record,
            stage="transcribe",
            percent=10 + len(state.transcripts) / max(total, 1) * 80,
            message=f"{label}: transcribing...",
            segment=segment,
            state=SegmentState.IN_PROGRESS,
        )
        try:
            transcript = self.transcribe_segment(record, segment, state.context, state.source)
        except Exception:
            self._report(
                record,
                stage="transcribe",
                percent=10 + len(state.transcripts) / max(total, 1) * 80,
                message=f"{label}: failed",
                segment=segment,
                state=SegmentState.FAILED,
            )
            raise

        record = dataclasses.replace(
            record,
            transcripts={**record.transcripts, segment.index: transcript},
        )
        self.cache.save(record.fingerprint, record)

        self._report(
            record,
            stage="transcribe",
            percent=10 + (len(state.transcripts) + 1) / max(total, 1) * 80,
            message=f"{label}: complete ({len(transcript.speakers)} speakers)",
            segment=segment,
            state=SegmentState.DONE,
        )
        return SessionState(
            record=record,
            source=state.source,
            context=update_context(state.context, transcript),
            transcripts=state.transcripts + (transcript,),
        )

    def transcribe_segments(self, record: SessionRecord, source: Path | None = None) -> SessionState:
        state = SessionState(record=record, source=Path(source) if source is not None else None)
        for segment in record.segments:
            state = self.step(state, segment)
        return state

    def run(self, source_path: Path) -> TranscriptionResult:
        record = self.prepare_session(source_path)
        state = self.transcribe_segments(record, Path(source_path))

        self._report(state.record, stage="merge", percent=92, message="Resolving overlaps...")
        merged = merge_overlaps(state.transcripts)

        text = merged
        polished = False
        if self.settings.polish:
            self._report(state.record, stage="polish", percent=95, message="Applying final polish...")
            text = polish_transcript(self.engine, self.settings.model, merged)
            polished = text != merged

        return TranscriptionResult(
            fingerprint=state.record.fingerprint,
            record=state.record,
            merged=merged,
            text=text,
            polished=polished,
        )
