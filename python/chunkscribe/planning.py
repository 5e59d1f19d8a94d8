from __future__ import annotations

from .models import Segment

DEFAULT_WINDOW_SEC = 600.0
DEFAULT_OVERLAP_SEC = 30.0


def plan_segments(
    total_duration: float,
    window_duration: float = DEFAULT_WINDOW_SEC,
    overlap_duration: float = DEFAULT_OVERLAP_SEC,
) -> list[Segment]:
    if window_duration <= 0:
        raise ValueError("window_duration must be positive")
    if overlap_duration < 0:
        raise ValueError("overlap_duration must not be negative")

    segments: list[Segment] = []
    cursor = 0.0
    idx = 0
    while cursor < total_duration:
        start = max(0.0, cursor - overlap_duration) if idx > 0 else 0.0
        end = min(total_duration, cursor + window_duration)
        segments.append(
            Segment(
                index=idx,
                start_time=start,
                end_time=end,
                duration=end - start,
                has_overlap=idx > 0,
            )
        )
        cursor += window_duration
        idx += 1

    return segments


def format_clock(seconds: float) -> str:
    mins = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{mins}:{secs:02d}"
