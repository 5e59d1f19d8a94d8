from __future__ import annotations


class ChunkscribeError(RuntimeError):
    pass


class SourceNotFoundError(ChunkscribeError):
    pass


class DurationProbeError(ChunkscribeError):
    pass


class SegmentExportError(ChunkscribeError):
    pass


class TranscriptionError(ChunkscribeError):
    def __init__(self, message: str, *, segment_index: int):
        super().__init__(message)
        self.segment_index = segment_index


class CacheMissingError(ChunkscribeError):
    pass


class CacheCorruptError(ChunkscribeError):
    pass


class PolishError(ChunkscribeError):
    """Raised when the final cleanup call fails.

    ``merged`` holds the unpolished document so callers can still persist it.
    """

    def __init__(self, message: str, *, merged: str):
        super().__init__(message)
        self.merged = merged
