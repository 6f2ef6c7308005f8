"""
shared/models.py

Common data models and type definitions used across the voice pipeline.

This module contains the conversation types exchanged between the orchestrator,
the language-understanding provider and the tool executor, plus the request-scoped
provider selection. Two families of types live here:

1. Internal dataclasses (`ConversationMessage`, `ToolInvocation`, `Conversation`)
   that the orchestrator builds and mutates during one request. They render to the
   OpenAI-compatible chat format through `to_api()`.
2. Pydantic models (`PriorMessage` and friends) that validate untrusted input: the
   JSON-encoded prior turns a client re-submits with every request. The server keeps
   no conversation state, so this history is validated on every call.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional, Iterable, Literal
from enum import Enum
from pydantic import BaseModel, Field, model_validator


class MessageRole(str, Enum):
    """Roles of the chat-completion protocol."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class LLMProvider(str, Enum):
    """
    Language-understanding backends selectable per request.

    All of them expose an OpenAI-compatible chat completions endpoint; the
    connection details live in config.json under llm.providers.
    GROQ is the zero-cost default.
    """
    GROQ = "groq"
    OPENAI = "openai"
    CLAUDE = "claude"
    GEMINI = "gemini"


class TTSProvider(str, Enum):
    """
    Speech-synthesis backends selectable per request.

    WEBSPEECH is the zero-cost default: the reply text is returned unchanged and
    the client speaks it with the browser's speech synthesis.
    """
    WEBSPEECH = "webspeech"
    CARTESIA = "cartesia"
    OPENAI_TTS = "openai-tts"


class InvalidProviderError(ValueError):
    """Raised when a request names a provider that does not exist."""


class ConversationInvariantError(ValueError):
    """Raised when a tool message does not answer an outstanding tool call."""


@dataclass(frozen=True)
class ProviderChoice:
    """
    Request-scoped selection of the language-understanding and synthesis backends.

    Never persisted server-side; every request states its own choice or gets the
    free defaults.
    """
    llm: LLMProvider = LLMProvider.GROQ
    tts: TTSProvider = TTSProvider.WEBSPEECH

    @classmethod
    def from_form(
        cls,
        llm_provider: Optional[str] = None,
        tts_provider: Optional[str] = None,
        use_web_speech: Optional[str] = None,
        default_llm: LLMProvider = LLMProvider.GROQ,
        default_tts: TTSProvider = TTSProvider.WEBSPEECH,
    ) -> "ProviderChoice":
        """
        Build a choice from the raw multipart form flags.

        `ttsProvider` wins over the legacy `useWebSpeech` flag. When only
        `useWebSpeech=false` is sent, the paid Cartesia voice is selected, which is
        what older clients expect.

        Raises:
            InvalidProviderError: If a flag names an unknown provider.
        """
        llm = _parse_enum(LLMProvider, llm_provider, default_llm)

        if tts_provider:
            tts = _parse_enum(TTSProvider, tts_provider, default_tts)
        elif use_web_speech is not None and use_web_speech.strip().lower() == "false":
            tts = TTSProvider.CARTESIA
        else:
            tts = default_tts

        return cls(llm=llm, tts=tts)


def _parse_enum(enum_cls, raw: Optional[str], default):
    if raw is None or not raw.strip():
        return default
    try:
        return enum_cls(raw.strip().lower())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidProviderError(f"Unknown {enum_cls.__name__} '{raw}'. Expected one of: {allowed}")


@dataclass(frozen=True)
class ToolInvocation:
    """
    One tool call emitted by the language-understanding provider.

    `arguments` is kept as the raw JSON string the provider produced; parsing and
    schema validation belong to the executor so a malformed payload becomes a tool
    result instead of an exception.
    """
    id: str
    name: str
    arguments: str = "{}"

    def to_api(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments},
        }


@dataclass
class ConversationMessage:
    """
    A single chat message of any role.

    Only assistant messages carry `tool_calls`; only tool messages carry
    `tool_call_id` (and optionally the tool `name`).
    """
    role: MessageRole
    content: Optional[str] = None
    tool_calls: List[ToolInvocation] = field(default_factory=list)
    tool_call_id: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def system(cls, content: str) -> "ConversationMessage":
        return cls(role=MessageRole.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "ConversationMessage":
        return cls(role=MessageRole.USER, content=content)

    @classmethod
    def assistant(cls, content: Optional[str], tool_calls: Iterable[ToolInvocation] = ()) -> "ConversationMessage":
        return cls(role=MessageRole.ASSISTANT, content=content, tool_calls=list(tool_calls))

    @classmethod
    def tool(cls, invocation: ToolInvocation, result: str) -> "ConversationMessage":
        return cls(role=MessageRole.TOOL, content=result, tool_call_id=invocation.id, name=invocation.name)

    def to_api(self) -> Dict[str, Any]:
        """Render the message in the OpenAI-compatible chat completions format."""
        payload: Dict[str, Any] = {"role": self.role.value, "content": self.content}
        if self.role == MessageRole.ASSISTANT and self.tool_calls:
            payload["tool_calls"] = [call.to_api() for call in self.tool_calls]
        if self.role == MessageRole.TOOL:
            payload["tool_call_id"] = self.tool_call_id
            if self.name:
                payload["name"] = self.name
        if payload["content"] is None and self.role != MessageRole.ASSISTANT:
            payload["content"] = ""
        return payload


class Conversation:
    """
    Ordered message log for one request.

    Enforces that each tool message answers a tool call issued by an earlier
    assistant message, and that every tool call is answered at most once.
    """

    def __init__(self, messages: Iterable[ConversationMessage] = ()) -> None:
        self._messages: List[ConversationMessage] = []
        self._issued_ids: set = set()
        self._answered_ids: set = set()
        for message in messages:
            self.append(message)

    def append(self, message: ConversationMessage) -> None:
        if message.role == MessageRole.TOOL:
            if message.tool_call_id not in self._issued_ids:
                raise ConversationInvariantError(
                    f"Tool message references unknown tool call id '{message.tool_call_id}'"
                )
            if message.tool_call_id in self._answered_ids:
                raise ConversationInvariantError(
                    f"Tool call id '{message.tool_call_id}' was already answered"
                )
            self._answered_ids.add(message.tool_call_id)
        elif message.role == MessageRole.ASSISTANT:
            self._issued_ids.update(call.id for call in message.tool_calls)
        self._messages.append(message)

    def extend(self, messages: Iterable[ConversationMessage]) -> None:
        for message in messages:
            self.append(message)

    def conflicting_call_ids(self, calls: Iterable[ToolInvocation]) -> List[str]:
        """
        Return the ids in `calls` that were issued earlier in the log or repeat
        within `calls`. An assistant message with such ids cannot be answered.
        """
        seen = set(self._issued_ids)
        conflicts = []
        for call in calls:
            if call.id in seen:
                conflicts.append(call.id)
            seen.add(call.id)
        return conflicts

    @property
    def messages(self) -> List[ConversationMessage]:
        return list(self._messages)

    def to_api(self) -> List[Dict[str, Any]]:
        return [message.to_api() for message in self._messages]

    def __len__(self) -> int:
        return len(self._messages)


# ---------------------------------------------------------------------------
# Inbound validation
# ---------------------------------------------------------------------------

class PriorToolFunction(BaseModel):
    name: str
    arguments: str = "{}"


class PriorToolCall(BaseModel):
    id: str
    type: str = "function"
    function: PriorToolFunction


class PriorMessage(BaseModel):
    """
    Validate one JSON-encoded prior turn sent in a repeated `message` form field.

    System messages are not accepted from clients; the server always supplies its own.
    """
    role: Literal["user", "assistant", "tool"]
    content: Optional[str] = Field(None, description="Text of the turn")
    tool_calls: Optional[List[PriorToolCall]] = Field(None, description="Assistant tool calls, if any")
    tool_call_id: Optional[str] = Field(None, description="Tool call answered by a tool message")
    name: Optional[str] = None

    @model_validator(mode="after")
    def _check_role_fields(self) -> "PriorMessage":
        if self.role == "tool" and not self.tool_call_id:
            raise ValueError("tool messages require tool_call_id")
        if self.role != "assistant" and self.tool_calls:
            raise ValueError("only assistant messages may carry tool_calls")
        return self

    def to_conversation_message(self) -> ConversationMessage:
        return ConversationMessage(
            role=MessageRole(self.role),
            content=self.content,
            tool_calls=[
                ToolInvocation(id=call.id, name=call.function.name, arguments=call.function.arguments)
                for call in (self.tool_calls or [])
            ],
            tool_call_id=self.tool_call_id,
            name=self.name,
        )
