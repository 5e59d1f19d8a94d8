from __future__ import annotations

from .errors import PolishError
from .openai_engine import TranscriptionEngine

POLISH_TEMPLATE = """Please review and polish this transcript:

1. Standardize all speaker labels (ensure consistent naming throughout)
2. Add section breaks (---) between major topic changes
3. Fix any obvious transcription errors
4. Ensure consistent formatting
5. Clean up any duplicate content from chunk boundaries

Important: Preserve all actual content, only fix formatting and consistency issues.

TRANSCRIPT:
{transcript}

Return the polished transcript:"""


def build_polish_prompt(merged: str) -> str:
    return POLISH_TEMPLATE.format(transcript=merged)


def polish_transcript(engine: TranscriptionEngine, model: str, merged: str) -> str:
    try:
        polished = engine.generate(model, build_polish_prompt(merged))
    except Exception as exc:  # noqa: BLE001 - provider error typing is broad
        raise PolishError(f"Polish pass failed: {exc}", merged=merged) from exc

    if not polished or not polished.strip():
        return merged
    return polished
