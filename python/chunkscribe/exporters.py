from __future__ import annotations

from datetime import date
from pathlib import Path

FOOTER = "*Transcribed with chunked, context-aware segment transcription*"


def word_count(text: str) -> int:
    return len(text.split())


def format_as_markdown(
    transcript: str,
    source_path: Path,
    *,
    model: str,
    on_date: date | None = None,
) -> str:
    stamp = (on_date or date.today()).isoformat()
    lines = [
        f"# Transcript: {source_path.stem}",
        "",
        f"**Date:** {stamp}",
        f"**Source:** {source_path.name}",
        f"**Model:** {model}",
        "",
        "---",
        "",
        transcript.strip(),
        "",
        "---",
        "",
        FOOTER,
    ]
    return "\n".join(lines) + "\n"


def default_output_path(source_path: Path) -> Path:
    return Path(f"{source_path.stem}-transcript.md")


def export_markdown(
    transcript: str,
    source_path: Path,
    output_path: Path,
    *,
    model: str,
) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(format_as_markdown(transcript, source_path, model=model), encoding="utf-8")
