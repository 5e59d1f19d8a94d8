from __future__ import annotations

import json
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .errors import CacheCorruptError, CacheMissingError
from .models import Segment, SessionRecord
from .paths import metadata_path, session_dir


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def atomic_write_json(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    tmp.replace(path)


class SegmentCache:
    """Resumable session records stored as ``<root>/<fingerprint>/metadata.json``.

    Exported segment audio lives next to the metadata file; this class only
    hands out the paths, the audio itself is written by ffmpeg.
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    def session_dir(self, fingerprint: str) -> Path:
        return session_dir(self.root, fingerprint)

    def segment_path(self, fingerprint: str, segment: Segment) -> Path:
        return self.session_dir(fingerprint) / segment.filename

    def exists(self, fingerprint: str) -> bool:
        return metadata_path(self.root, fingerprint).is_file()

    def load(self, fingerprint: str) -> SessionRecord:
        path = metadata_path(self.root, fingerprint)
        if not path.is_file():
            raise CacheMissingError(f"No cached session at {path}")

        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            record = SessionRecord.from_dict(raw)
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
            raise CacheCorruptError(
                f"Cache metadata at {path} is unreadable ({exc}). "
                "Inspect or remove it with clear-cache; it is never regenerated automatically."
            ) from exc

        _validate(record, path)
        return record

    def create(
        self,
        *,
        source_file: str,
        fingerprint: str,
        total_duration: float,
        window_duration: float,
        overlap_duration: float,
        segments: list[Segment],
    ) -> SessionRecord:
        return SessionRecord(
            source_file=source_file,
            fingerprint=fingerprint,
            total_duration=total_duration,
            window_duration=window_duration,
            overlap_duration=overlap_duration,
            segments=list(segments),
            created_at=now_iso(),
            transcripts={},
        )

    def save(self, fingerprint: str, record: SessionRecord) -> None:
        atomic_write_json(metadata_path(self.root, fingerprint), record.to_dict())

    def clear(self, fingerprint: str) -> bool:
        target = self.session_dir(fingerprint)
        if not target.exists():
            return False
        shutil.rmtree(target)
        return True


def _validate(record: SessionRecord, path: Path) -> None:
    indices = [segment.index for segment in record.segments]
    if indices != list(range(len(indices))):
        raise CacheCorruptError(f"Cache metadata at {path} has out-of-order segments: {indices}")

    stray = sorted(idx for idx in record.transcripts if not 0 <= idx < len(indices))
    if stray:
        raise CacheCorruptError(
            f"Cache metadata at {path} has transcripts for unknown segments: {stray}"
        )

    for idx, transcript in record.transcripts.items():
        if transcript.segment_index != idx:
            raise CacheCorruptError(
                f"Cache metadata at {path} stores segment {transcript.segment_index} under key {idx}"
            )
