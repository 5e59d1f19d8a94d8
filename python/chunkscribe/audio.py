from __future__ import annotations

import base64
import hashlib
import json
import os
import subprocess
from pathlib import Path

from .errors import DurationProbeError, SegmentExportError


def fingerprint_of(name: str, size: int, mtime_ms: int) -> str:
    h = hashlib.md5()
    h.update(f"{name}-{size}-{mtime_ms}".encode("utf-8"))
    return h.hexdigest()


def file_fingerprint(path: Path) -> str:
    stats = path.stat()
    return fingerprint_of(path.name, stats.st_size, stats.st_mtime_ns // 1_000_000)


def ffmpeg_bin() -> str:
    return os.environ.get("FFMPEG_BIN", "ffmpeg")


def ffprobe_bin() -> str:
    return os.environ.get("FFPROBE_BIN", "ffprobe")


def probe_duration_seconds(source: Path) -> float:
    cmd = [
        ffprobe_bin(),
        "-v",
        "quiet",
        "-print_format",
        "json",
        "-show_format",
        str(source),
    ]
    try:
        completed = subprocess.run(cmd, check=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
        payload = json.loads(completed.stdout.decode("utf-8"))
        duration = float(payload.get("format", {}).get("duration", 0) or 0)
    except (OSError, subprocess.CalledProcessError, ValueError) as exc:
        raise DurationProbeError(f"Failed to get audio duration for {source}: {exc}") from exc
    if duration <= 0:
        raise DurationProbeError(f"ffprobe reported no usable duration for {source}")
    return duration


def render_segment(source: Path, out_path: Path, start_sec: float, duration_sec: float) -> None:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    cmd = [
        ffmpeg_bin(),
        "-y",
        "-i",
        str(source),
        "-vn",
        "-ss",
        f"{start_sec:.3f}",
        "-t",
        f"{duration_sec:.3f}",
        "-acodec",
        "libmp3lame",
        str(out_path),
    ]
    try:
        subprocess.run(cmd, check=True, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
    except (OSError, subprocess.CalledProcessError) as exc:
        raise SegmentExportError(
            f"Failed to export segment {out_path.name} ({start_sec:.3f}s +{duration_sec:.3f}s): {exc}"
        ) from exc


def encode_audio_base64(path: Path) -> str:
    return base64.b64encode(path.read_bytes()).decode("ascii")
