import pytest

from llm_cloud.provider import ChatProvider, LLMProviderError, get_client
from shared.models import LLMProvider


@pytest.mark.parametrize("provider, base_url", [
    (LLMProvider.GROQ, "https://api.groq.com/openai/v1/"),
    (LLMProvider.OPENAI, "https://api.openai.com/v1/"),
    (LLMProvider.CLAUDE, "https://api.anthropic.com/v1/"),
    (LLMProvider.GEMINI, "https://generativelanguage.googleapis.com/v1beta/openai/"),
])
def test_get_client_targets_provider_endpoint(provider, base_url, monkeypatch):
    for name in ("GROQ_API_KEY", "OPENAI_API_KEY", "ANTHROPIC_API_KEY", "GEMINI_API_KEY"):
        monkeypatch.setenv(name, "test-key")

    client = get_client(provider)

    assert str(client.base_url) == base_url


def test_missing_key_for_selected_provider(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    with pytest.raises(LLMProviderError):
        get_client(LLMProvider.OPENAI)


def test_alternate_key_name_is_accepted(monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.setenv("CLAUDE_API_KEY", "test-key")

    assert get_client(LLMProvider.CLAUDE) is not None


def test_chat_provider_uses_configured_model():
    assert ChatProvider(LLMProvider.GROQ).model == "llama3-8b-8192"


def _completion(content=None, tool_calls=None):
    from types import SimpleNamespace
    message = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def test_complete_converts_tool_calls():
    from types import SimpleNamespace
    from unittest.mock import MagicMock

    client = MagicMock()
    client.chat.completions.create.return_value = _completion(tool_calls=[
        SimpleNamespace(id="call_1", function=SimpleNamespace(name="createTask", arguments='{"content": "milk"}')),
    ])
    tools = [{"type": "function", "function": {"name": "createTask"}}]

    message = ChatProvider(LLMProvider.GROQ, client=client).complete([{"role": "user", "content": "x"}], tools=tools)

    assert [(c.id, c.name, c.arguments) for c in message.tool_calls] == [("call_1", "createTask", '{"content": "milk"}')]
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["tool_choice"] == "auto"
    assert kwargs["tools"] == tools
    assert kwargs["model"] == "llama3-8b-8192"


def test_complete_without_tools_omits_tool_choice():
    from unittest.mock import MagicMock

    client = MagicMock()
    client.chat.completions.create.return_value = _completion(content="Hi!")

    message = ChatProvider(LLMProvider.GROQ, client=client).complete([{"role": "user", "content": "x"}])

    assert message.content == "Hi!"
    assert "tools" not in client.chat.completions.create.call_args.kwargs
    assert "tool_choice" not in client.chat.completions.create.call_args.kwargs


def test_complete_wraps_sdk_errors():
    from unittest.mock import MagicMock

    import httpx
    import openai

    client = MagicMock()
    client.chat.completions.create.side_effect = openai.APITimeoutError(request=httpx.Request("POST", "https://x"))

    with pytest.raises(LLMProviderError):
        ChatProvider(LLMProvider.GROQ, client=client).complete([])
