from __future__ import annotations

import os
from typing import Any, Protocol

DEFAULT_MODEL = "gpt-4o-audio-preview"
DEFAULT_REQUEST_TIMEOUT_SEC = 600.0


class TranscriptionEngine(Protocol):
    def generate(self, model: str, prompt: str, audio_base64: str | None = None) -> str: ...


def _message_text(response: Any) -> str:
    choices = getattr(response, "choices", None)
    if choices is None and isinstance(response, dict):
        choices = response.get("choices")
    if not choices:
        return ""

    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else getattr(first, "message", None)
    if message is None:
        return ""
    content = message.get("content") if isinstance(message, dict) else getattr(message, "content", None)
    return str(content or "")


def request_timeout_sec() -> float:
    return float(os.environ.get("OPENAI_REQUEST_TIMEOUT_SEC", "") or DEFAULT_REQUEST_TIMEOUT_SEC)


def create_client(*, max_retries: int | None = None) -> Any:
    try:
        from openai import OpenAI
    except ImportError as exc:  # pragma: no cover - env dependent
        raise RuntimeError("openai package is missing. Install the project dependencies.") from exc

    api_key = os.environ.get("OPENAI_API_KEY", "").strip()
    if not api_key:
        raise RuntimeError("OPENAI_API_KEY is not set")

    if max_retries is None:
        max_retries = int(os.environ.get("OPENAI_MAX_RETRIES", "0"))
    return OpenAI(api_key=api_key, max_retries=max_retries)


class OpenAIEngine:
    """Chat-completions backed engine; audio goes in as an ``input_audio`` part."""

    def __init__(self, client: Any = None, *, audio_format: str = "mp3", timeout: float | None = None):
        self.client = client if client is not None else create_client()
        self.audio_format = audio_format
        self.timeout = timeout if timeout is not None else request_timeout_sec()

    def generate(self, model: str, prompt: str, audio_base64: str | None = None) -> str:
        content: list[dict[str, Any]] = [{"type": "text", "text": prompt}]
        if audio_base64 is not None:
            content.append(
                {
                    "type": "input_audio",
                    "input_audio": {"data": audio_base64, "format": self.audio_format},
                }
            )

        kwargs: dict[str, Any] = {
            "model": model,
            "messages": [{"role": "user", "content": content}],
            "timeout": self.timeout,
        }
        if audio_base64 is not None:
            kwargs["modalities"] = ["text"]

        response = self.client.chat.completions.create(**kwargs)
        return _message_text(response)
