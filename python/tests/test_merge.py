from chunkscribe.merge import (
    SEGMENT_SEPARATOR,
    extract_speakers,
    merge_overlaps,
    parse_segment_transcript,
    split_overlap,
)
from chunkscribe.models import Segment, SegmentTranscript


def _segment(index: int) -> Segment:
    start = max(0.0, index * 600.0 - 30.0) if index else 0.0
    end = index * 600.0 + 600.0
    return Segment(index=index, start_time=start, end_time=end, duration=end - start, has_overlap=index > 0)


def test_twenty_line_overlap_segment_keeps_eighteen_main_lines():
    lines = [f"**Alice:** line {i}" for i in range(1, 21)]
    transcript = parse_segment_transcript("\n".join(lines), _segment(1))

    assert transcript.main_text == "\n".join(lines[:18])
    assert transcript.overlap_text == "\n".join(lines[18:])


def test_first_segment_keeps_everything():
    text = "\n".join(f"line {i}" for i in range(20))
    transcript = parse_segment_transcript(text, _segment(0))

    assert transcript.main_text == text
    assert transcript.overlap_text == ""
    assert transcript.full_text == text


def test_split_overlap_rounds_up():
    main, overlap = split_overlap("a\nb\nc", True)
    assert main == "a\nb"
    assert overlap == "c"


def test_split_overlap_single_line_becomes_overlap():
    main, overlap = split_overlap("only line", True)
    assert main == ""
    assert overlap == "only line"


def test_extract_speakers_reads_bold_labels_at_line_start():
    text = "\n".join(
        [
            "**Alice:** Welcome back.",
            "**Dr. Bob Smith:** Thanks for having me.",
            "  **Alice:** So, tell us more.",
            "He said **Mallory:** inline, which is not a label.",
        ]
    )

    assert extract_speakers(text) == ["Alice", "Dr. Bob Smith"]


def test_parse_segment_transcript_collects_speakers():
    transcript = parse_segment_transcript("**Alice:** hi\n**Bob:** hey\n**Alice:** bye", _segment(2))

    assert transcript.segment_index == 2
    assert transcript.speakers == ["Alice", "Bob"]


def test_merge_single_segment_returns_full_text():
    transcript = SegmentTranscript(
        segment_index=0,
        full_text="a\nb\nc",
        main_text="a\nb",
        overlap_text="c",
    )
    assert merge_overlaps([transcript]) == "a\nb\nc"


def test_merge_uses_main_text_after_first_segment():
    transcripts = [
        SegmentTranscript(segment_index=0, full_text="first full", main_text="first main"),
        SegmentTranscript(segment_index=1, full_text="second full", main_text="second main"),
        SegmentTranscript(segment_index=2, full_text="third full", main_text="third main"),
    ]

    merged = merge_overlaps(transcripts)

    assert merged == "first full\n\n---\n\nsecond main\n\n---\n\nthird main"
    assert merged.count(SEGMENT_SEPARATOR) == len(transcripts) - 1


def test_merge_empty_input():
    assert merge_overlaps([]) == ""
