from __future__ import annotations

import os
from pathlib import Path

DEFAULT_CACHE_DIR = ".cache/audio"
METADATA_JSON = "metadata.json"


def cache_root() -> Path:
    configured = os.environ.get("CHUNKSCRIBE_CACHE_DIR", "").strip()
    if configured:
        return Path(configured).expanduser()
    return Path(DEFAULT_CACHE_DIR)


def session_dir(root: Path, fingerprint: str) -> Path:
    return root / fingerprint


def metadata_path(root: Path, fingerprint: str) -> Path:
    return session_dir(root, fingerprint) / METADATA_JSON
