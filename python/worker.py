#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

# Ensure local package is importable when running from source.
SCRIPT_DIR = Path(__file__).resolve().parent
if str(SCRIPT_DIR) not in sys.path:
    sys.path.insert(0, str(SCRIPT_DIR))

from dotenv import load_dotenv

from chunkscribe.audio import file_fingerprint
from chunkscribe.errors import ChunkscribeError, PolishError, SourceNotFoundError
from chunkscribe.exporters import default_output_path, export_markdown, word_count
from chunkscribe.openai_engine import OpenAIEngine
from chunkscribe.pipeline import ChunkedTranscriber, TranscriberSettings
from chunkscribe.storage import SegmentCache


def emit(event_type: str, payload: object) -> None:
    print(json.dumps({"type": event_type, "payload": payload}, ensure_ascii=False), flush=True)


def settings_from_args(args: argparse.Namespace) -> TranscriberSettings:
    settings = TranscriberSettings.from_env()
    if getattr(args, "cache_dir", None):
        settings.cache_root = Path(args.cache_dir).expanduser()
    if getattr(args, "model", None):
        settings.model = args.model
    if getattr(args, "window", None) is not None:
        if args.window <= 0:
            raise ValueError(f"--window must be positive, got {args.window}")
        settings.window_duration = float(args.window)
    if getattr(args, "overlap", None) is not None:
        if args.overlap < 0:
            raise ValueError(f"--overlap must not be negative, got {args.overlap}")
        settings.overlap_duration = float(args.overlap)
    if getattr(args, "no_polish", False):
        settings.polish = False
    return settings


def resolve_source(raw: str) -> Path:
    source_path = Path(raw).expanduser().resolve()
    if not source_path.exists():
        raise SourceNotFoundError(f"Audio file not found: {source_path}")
    return source_path


def command_run_job(args: argparse.Namespace) -> int:
    try:
        settings = settings_from_args(args)
    except ValueError as exc:
        emit("error", {"message": str(exc), "kind": "ValueError"})
        return 1

    source_path = Path(args.source).expanduser().resolve()
    output_path = Path(args.output) if args.output else default_output_path(source_path)

    try:
        engine = OpenAIEngine()
    except RuntimeError as exc:
        emit("error", {"message": str(exc)})
        return 1

    transcriber = ChunkedTranscriber(engine, settings, progress=emit)

    try:
        result = transcriber.run(source_path)
    except PolishError as exc:
        export_markdown(exc.merged, source_path, output_path, model=settings.model)
        emit(
            "error",
            {
                "message": str(exc),
                "filePath": str(output_path),
                "polished": False,
            },
        )
        return 2
    except ChunkscribeError as exc:
        payload: dict[str, object] = {"message": str(exc), "kind": type(exc).__name__}
        segment_index = getattr(exc, "segment_index", None)
        if segment_index is not None:
            payload["segmentIndex"] = segment_index
        emit("error", payload)
        return 1

    export_markdown(result.text, source_path, output_path, model=settings.model)
    emit(
        "result",
        {
            "filePath": str(output_path),
            "fingerprint": result.fingerprint,
            "segmentsTotal": len(result.record.segments),
            "wordCount": word_count(result.text),
            "polished": result.polished,
            "cacheDir": str(transcriber.cache.session_dir(result.fingerprint)),
        },
    )
    return 0


def command_cache_status(args: argparse.Namespace) -> int:
    settings = settings_from_args(args)
    try:
        source_path = resolve_source(args.source)
    except SourceNotFoundError as exc:
        emit("error", {"message": str(exc)})
        return 1

    cache = SegmentCache(settings.cache_root)
    fingerprint = file_fingerprint(source_path)
    if not cache.exists(fingerprint):
        emit("result", {"fingerprint": fingerprint, "cached": False})
        return 0

    try:
        record = cache.load(fingerprint)
    except ChunkscribeError as exc:
        emit("error", {"message": str(exc), "kind": type(exc).__name__})
        return 1

    emit(
        "result",
        {
            "fingerprint": fingerprint,
            "cached": True,
            "createdAt": record.created_at,
            "durationSec": record.total_duration,
            "segmentsDone": record.completed_count,
            "segmentsTotal": len(record.segments),
            "nextSegment": record.first_pending_index(),
            "cacheDir": str(cache.session_dir(fingerprint)),
        },
    )
    return 0


def command_clear_cache(args: argparse.Namespace) -> int:
    settings = settings_from_args(args)
    try:
        source_path = resolve_source(args.source)
    except SourceNotFoundError as exc:
        emit("error", {"message": str(exc)})
        return 1

    cache = SegmentCache(settings.cache_root)
    fingerprint = file_fingerprint(source_path)
    removed = cache.clear(fingerprint)
    emit("result", {"fingerprint": fingerprint, "removed": removed})
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Transcribe long audio files with overlapping segments and a resumable cache"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    run_job = sub.add_parser("run-job")
    run_job.add_argument("--source", required=True)
    run_job.add_argument("--output", required=False)
    run_job.add_argument("--model", required=False)
    run_job.add_argument("--cache-dir", required=False)
    run_job.add_argument("--window", type=float, required=False)
    run_job.add_argument("--overlap", type=float, required=False)
    run_job.add_argument("--no-polish", action="store_true")
    run_job.set_defaults(func=command_run_job)

    cache_status = sub.add_parser("cache-status")
    cache_status.add_argument("--source", required=True)
    cache_status.add_argument("--cache-dir", required=False)
    cache_status.set_defaults(func=command_cache_status)

    clear_cache = sub.add_parser("clear-cache")
    clear_cache.add_argument("--source", required=True)
    clear_cache.add_argument("--cache-dir", required=False)
    clear_cache.set_defaults(func=command_clear_cache)

    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
