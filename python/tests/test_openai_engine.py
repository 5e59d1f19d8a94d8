from __future__ import annotations

import sys
import types

import pytest

from chunkscribe import openai_engine
from chunkscribe.openai_engine import OpenAIEngine


class FakeCompletions:
    def __init__(self, actions: list[object]):
        self.actions = actions
        self.calls: list[dict[str, object]] = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if not self.actions:
            raise RuntimeError("no more actions configured")
        action = self.actions.pop(0)
        if isinstance(action, Exception):
            raise action
        return action


class FakeClient:
    def __init__(self, actions: list[object]):
        self.chat = types.SimpleNamespace(completions=FakeCompletions(actions))


def _response(text: str | None):
    message = types.SimpleNamespace(content=text)
    return types.SimpleNamespace(choices=[types.SimpleNamespace(message=message)])


def test_generate_sends_prompt_and_audio_part():
    client = FakeClient([_response("**Alice:** Hello")])
    engine = OpenAIEngine(client, timeout=30.0)

    text = engine.generate("gpt-4o-audio-preview", "Transcribe the audio now:", "ZmFrZQ==")

    assert text == "**Alice:** Hello"
    call = client.chat.completions.calls[0]
    assert call["model"] == "gpt-4o-audio-preview"
    assert call["timeout"] == 30.0
    assert call["modalities"] == ["text"]
    content = call["messages"][0]["content"]
    assert content[0] == {"type": "text", "text": "Transcribe the audio now:"}
    assert content[1] == {"type": "input_audio", "input_audio": {"data": "ZmFrZQ==", "format": "mp3"}}


def test_generate_without_audio_sends_text_only():
    client = FakeClient([_response("polished")])
    engine = OpenAIEngine(client)

    assert engine.generate("gpt-4o", "Please review") == "polished"
    call = client.chat.completions.calls[0]
    assert "modalities" not in call
    assert call["messages"][0]["content"] == [{"type": "text", "text": "Please review"}]


def test_generate_returns_empty_string_for_empty_content():
    engine = OpenAIEngine(FakeClient([_response(None)]))
    assert engine.generate("gpt-4o", "prompt") == ""


def test_generate_accepts_dict_responses():
    payload = {"choices": [{"message": {"content": "from dict"}}]}
    engine = OpenAIEngine(FakeClient([payload]))
    assert engine.generate("gpt-4o", "prompt") == "from dict"


def test_generate_propagates_provider_errors_without_retry():
    client = FakeClient([RuntimeError("The request timed out."), _response("late")])
    engine = OpenAIEngine(client)

    with pytest.raises(RuntimeError, match="timed out"):
        engine.generate("gpt-4o", "prompt", "ZmFrZQ==")
    assert len(client.chat.completions.calls) == 1


def test_create_client_requires_api_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setitem(sys.modules, "openai", types.SimpleNamespace(OpenAI=object))

    with pytest.raises(RuntimeError, match="OPENAI_API_KEY"):
        openai_engine.create_client()


def test_create_client_disables_sdk_retries_by_default(monkeypatch):
    created: list[dict[str, object]] = []

    class FakeOpenAIClass:
        def __init__(self, **kwargs):
            created.append(kwargs)

    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    monkeypatch.delenv("OPENAI_MAX_RETRIES", raising=False)
    monkeypatch.setitem(sys.modules, "openai", types.SimpleNamespace(OpenAI=FakeOpenAIClass))

    openai_engine.create_client()
    assert created == [{"api_key": "test-key", "max_retries": 0}]


def test_request_timeout_is_read_when_engine_is_built(monkeypatch):
    monkeypatch.setenv("OPENAI_REQUEST_TIMEOUT_SEC", "45")
    assert OpenAIEngine(FakeClient([])).timeout == 45.0

    monkeypatch.delenv("OPENAI_REQUEST_TIMEOUT_SEC")
    assert OpenAIEngine(FakeClient([])).timeout == openai_engine.DEFAULT_REQUEST_TIMEOUT_SEC
