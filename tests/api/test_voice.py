"""
API tests for `api/voice.py` using FastAPI's TestClient.

The pipeline dependency is overridden with one built from fakes (transcriber, chat provider,
synthesizer) and the in-memory task backend, so no test touches the network.

Covers:
- POST /api/voice: text and audio input, streamed audio and plain-text replies, metadata headers
- Failure paths: invalid request, invalid audio, LLM outage, reused tool call ids,
  synthesis failure, unexpected errors
- GET /api/tools
"""

import json
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from api.voice import get_pipeline
from conftest import FakeSynthesizer, FakeTranscriber, ScriptedChatProvider, text_reply, tool_call
from llm_cloud.provider import LLMProviderError
from main import app
from pipelines.voice_command import VoiceCommandPipeline
from services.synthesis import AUDIO_MEDIA_TYPE, CartesiaSynthesizer, SynthesisResult, get_synthesizer
from shared.models import TTSProvider
from shared.utils import decode_header_value

client = TestClient(app)


@pytest.fixture
def use_pipeline(executor, usage_tracker):
    def _use(chat_provider, transcriber=None, synthesizer_factory=get_synthesizer):
        pipeline = VoiceCommandPipeline(
            transcriber=transcriber or FakeTranscriber(),
            tool_executor=executor,
            tool_definitions=executor.tool_manager.get_definitions(),
            chat_provider_factory=lambda llm: chat_provider,
            synthesizer_factory=synthesizer_factory,
            usage_tracker=usage_tracker,
        )
        app.dependency_overrides[get_pipeline] = lambda: pipeline
        return pipeline
    yield _use
    app.dependency_overrides.pop(get_pipeline, None)


def test_text_command_returns_plain_text_with_headers(use_pipeline, task_client):
    use_pipeline(ScriptedChatProvider(
        tool_call("call_1", "createTask", json.dumps({"content": "buy milk"})),
        text_reply("Done! I added buy milk & put it in your Inbox."),
    ))

    resp = client.post("/api/voice", data={"input": "create a task to buy milk"})

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/plain")
    assert resp.text == "Done! I added buy milk & put it in your Inbox."
    assert resp.headers["X-Transcript"] == "create%20a%20task%20to%20buy%20milk"
    assert decode_header_value(resp.headers["X-Response"]) == resp.text
    assert resp.headers["X-TTS-Provider"] == "webspeech"
    assert resp.headers["X-LLM-Provider"] == "groq"
    assert resp.headers["X-Interaction-Id"]
    assert [t["content"] for t in task_client.get_tasks()] == ["buy milk"]


def test_audio_command_streams_audio(use_pipeline):
    synthesizer = FakeSynthesizer(result=SynthesisResult(
        provider=TTSProvider.CARTESIA, media_type=AUDIO_MEDIA_TYPE, audio=iter([b"ab", b"cd"]),
    ))
    transcriber = FakeTranscriber(text="list my tasks")
    use_pipeline(
        ScriptedChatProvider(tool_call("c1", "listTasks"), text_reply("You have no tasks.")),
        transcriber=transcriber,
        synthesizer_factory=lambda tts: synthesizer,
    )

    resp = client.post(
        "/api/voice",
        data={"ttsProvider": "cartesia"},
        files={"input": ("clip.webm", b"\x00\x01", "audio/webm")},
    )

    assert resp.status_code == 200
    assert resp.headers["content-type"] == AUDIO_MEDIA_TYPE
    assert resp.content == b"abcd"
    assert resp.headers["X-TTS-Provider"] == "cartesia"
    assert decode_header_value(resp.headers["X-Transcript"]) == "list my tasks"
    assert transcriber.calls == [(b"\x00\x01", "clip.webm")]
    assert synthesizer.texts == ["You have no tasks."]


def test_prior_messages_are_forwarded(use_pipeline):
    provider = ScriptedChatProvider(text_reply("Sure."))
    use_pipeline(provider)
    history = [
        json.dumps({"role": "user", "content": "hello"}),
        json.dumps({"role": "assistant", "content": "Hi! How can I help?"}),
    ]

    resp = client.post("/api/voice", data={"input": "thanks", "message": history})

    assert resp.status_code == 200
    roles = [m["role"] for m in provider.calls[0]["messages"]]
    assert roles == ["system", "user", "assistant", "user"]


@pytest.mark.parametrize("data", [
    {"message": json.dumps({"role": "user", "content": "no input"})},
    {"input": "hi", "message": "not json"},
    {"input": "hi", "message": json.dumps({"role": "tool", "content": "x", "tool_call_id": "never_issued"})},
    {"input": "hi", "llmProvider": "skynet"},
])
def test_invalid_request_makes_no_provider_call(use_pipeline, data):
    provider = ScriptedChatProvider()
    use_pipeline(provider)

    resp = client.post("/api/voice", data=data)

    assert resp.status_code == 400
    assert resp.text == "Invalid request"
    assert provider.calls == []


def test_empty_audio_is_invalid_audio(use_pipeline):
    provider = ScriptedChatProvider()
    use_pipeline(provider, transcriber=FakeTranscriber(text=None))

    resp = client.post("/api/voice", files={"input": ("clip.webm", b"", "audio/webm")})

    assert resp.status_code == 400
    assert resp.text == "Invalid audio"
    assert provider.calls == []


def test_llm_outage_keeps_transcript(use_pipeline):
    use_pipeline(ScriptedChatProvider(LLMProviderError("timed out", "groq")))

    resp = client.post("/api/voice", data={"input": "list my tasks"})

    assert resp.status_code == 502
    assert "Please try again" in resp.text
    assert decode_header_value(resp.headers["X-Transcript"]) == "list my tasks"


def test_tool_call_id_reused_from_history_changes_nothing(use_pipeline, task_client):
    use_pipeline(ScriptedChatProvider(tool_call("call_0", "createTask", '{"content": "milk"}')))
    history = [
        json.dumps({"role": "user", "content": "what's on my list?"}),
        json.dumps({
            "role": "assistant",
            "content": None,
            "tool_calls": [{"id": "call_0", "type": "function", "function": {"name": "listTasks", "arguments": "{}"}}],
        }),
        json.dumps({"role": "tool", "content": "You have no tasks in your Todoist.", "tool_call_id": "call_0"}),
        json.dumps({"role": "assistant", "content": "Your list is empty."}),
    ]

    resp = client.post("/api/voice", data={"input": "add milk", "message": history})

    assert resp.status_code == 502
    assert decode_header_value(resp.headers["X-Transcript"]) == "add milk"
    assert task_client.get_tasks() == []


def test_unexpected_failure_returns_apology_with_transcript(use_pipeline):
    use_pipeline(ScriptedChatProvider(RuntimeError("unexpected")))

    resp = client.post("/api/voice", data={"input": "list my tasks"})

    assert resp.status_code == 500
    assert "Please try again" in resp.text
    assert decode_header_value(resp.headers["X-Transcript"]) == "list my tasks"
    assert resp.headers["X-Interaction-Id"]


def test_synthesis_failure_scenario(use_pipeline):
    session = MagicMock()
    session.post.return_value = MagicMock(ok=False, status_code=500, text="upstream error")
    use_pipeline(
        ScriptedChatProvider(text_reply("Here you go.")),
        synthesizer_factory=lambda tts: CartesiaSynthesizer(api_key="ck", session=session),
    )

    resp = client.post("/api/voice", data={"input": "read my tasks aloud", "useWebSpeech": "false"})

    assert resp.status_code == 500
    assert resp.text == "Voice synthesis failed"
    assert decode_header_value(resp.headers["X-Transcript"]) == "read my tasks aloud"
    assert decode_header_value(resp.headers["X-Response"]) == "Here you go."
    assert resp.headers["X-TTS-Provider"] == "cartesia"


def test_list_tools():
    resp = client.get("/api/tools")

    assert resp.status_code == 200
    names = [tool["function"]["name"] for tool in resp.json()["tools"]]
    assert names == ["createTask", "listTasks", "completeTask", "updateTask", "deleteTask", "getProjects"]
