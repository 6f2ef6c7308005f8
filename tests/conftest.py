"""
conftest.py – central pytest configuration and test bootstrap ("config test").

Pytest imports this module before it collects any test files, which lets us prepare the
environment so that application imports succeed consistently:
  1) Extend `sys.path` with the project root directory so absolute-style imports like
     `from core ...` and `from shared ...` resolve without an editable install.
  2) Define safe default environment variables required at import time by the configuration
     layer (`GROQ_API_KEY`, `TODOIST_API_KEY`), select the in-memory task backend so no test
     can reach Todoist, and disable file logging.

It also provides the fakes shared by the test modules: a scripted chat provider, a fake
transcriber and a fake synthesizer, so no test touches the network.
"""

import datetime
import os
import sys
from pathlib import Path

import pytest

# Ensure project root is on sys.path for direct imports like `core`, `shared`, etc.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Provide required environment defaults for tests
os.environ.setdefault("GROQ_API_KEY", "test-key")
os.environ.setdefault("TODOIST_API_KEY", "test-token")
os.environ["TASK_BACKEND"] = "mock"
os.environ["LOG_FILE_PATH"] = ""

from shared.models import ConversationMessage, ToolInvocation  # noqa: E402


class ScriptedChatProvider:
    """Chat provider double that replays canned assistant messages and records every call."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def complete(self, messages, tools=None):
        self.calls.append({"messages": messages, "tools": tools})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeTranscriber:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.calls = []

    def transcribe(self, data, filename=None):
        self.calls.append((data, filename))
        if self.error:
            raise self.error
        if isinstance(data, str):
            return data.strip() or None
        return self.text


class FakeSynthesizer:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.texts = []

    def synthesize(self, text):
        self.texts.append(text)
        if self.error:
            raise self.error
        return self.result


def tool_call(call_id, name, arguments="{}"):
    """Assistant message requesting a single tool call."""
    return ConversationMessage.assistant(None, [ToolInvocation(id=call_id, name=name, arguments=arguments)])


def text_reply(content):
    return ConversationMessage.assistant(content)


@pytest.fixture
def today():
    return datetime.date(2024, 5, 1)


@pytest.fixture
def task_client(today):
    from task_api import MockTaskApiClient
    return MockTaskApiClient(today=today)


@pytest.fixture
def executor(task_client):
    from llm_cloud.tools.core import ToolManager, ToolExecutor
    from llm_cloud.tools.handlers import register_all_tools
    manager = ToolManager()
    register_all_tools(manager)
    return ToolExecutor(manager, task_client)


@pytest.fixture
def usage_tracker():
    from services.usage_tracker import UsageTracker
    return UsageTracker({"groq": 0.0, "openai": 0.015, "cartesia": 0.05, "webspeech": 0.0})
