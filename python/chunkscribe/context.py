from __future__ import annotations

from typing import Iterable

from .models import SegmentTranscript, TranscriptionContext

CONTEXT_WORDS = 500

BASE_INSTRUCTIONS = """Please transcribe this audio segment with the following requirements:

1. Identify and label speakers consistently
2. Format each speaker's dialogue on a new line with "**Speaker Name:**" format
3. Clean up filler words but maintain natural speech patterns
4. Preserve the meaning and flow of conversation

"""

CLOSING_DIRECTIVE = "Transcribe the audio now:"


def build_prompt(context: TranscriptionContext) -> str:
    parts = [BASE_INSTRUCTIONS]

    if context.trailing_text:
        parts.append(f"\nCONTEXT FROM PREVIOUS SEGMENT:\n{context.trailing_text}\n\n")

    if context.speaker_aliases:
        lines = ["IDENTIFIED SPEAKERS SO FAR:\n"]
        for speaker_id, name in context.speaker_aliases.items():
            description = context.speaker_descriptions.get(speaker_id)
            lines.append(f"- {name}: {description}\n" if description else f"- {name}\n")
        lines.append("\nPlease use these same speaker labels for consistency.\n\n")
        parts.append("".join(lines))

    parts.append(CLOSING_DIRECTIVE)
    return "".join(parts)


def update_context(context: TranscriptionContext, transcript: SegmentTranscript) -> TranscriptionContext:
    words = transcript.full_text.split()
    aliases = dict(context.speaker_aliases)
    for speaker in transcript.speakers:
        aliases.setdefault(speaker, speaker)

    # Descriptions are never inferred here; they are only carried forward.
    return TranscriptionContext(
        trailing_text=" ".join(words[-CONTEXT_WORDS:]),
        speaker_aliases=aliases,
        speaker_descriptions=context.speaker_descriptions,
    )


def replay_context(transcripts: Iterable[SegmentTranscript]) -> TranscriptionContext:
    context = TranscriptionContext()
    for transcript in transcripts:
        context = update_context(context, transcript)
    return context
