"""
core/orchestrator.py

Conversation orchestrator: the tool-calling loop between the user utterance,
the language-understanding provider and the task tools.

One run walks a small state machine:

    INIT -> AWAITING_FIRST_COMPLETION -> DISPATCHING_TOOLS -> AWAITING_FINAL_COMPLETION -> DONE
                                      \\-> DONE (no tool calls)
    any state -> FAILED (provider fault)

The first completion advertises the full tool catalog with `tool_choice="auto"`.
If the provider answers with text, that text is the reply and the run ends after
exactly one provider call. If it asks for tools, the assistant message is appended,
every invocation is executed strictly in the order emitted, each result is appended
as a tool message, and a second completion is requested *without* tools so the run
ends after exactly two provider calls. There is no third round.

Tool failures never abort the run (the executor turns them into result strings);
provider faults do, as `ConversationError`. Tool call ids that repeat within the
turn or were already issued in the history count as provider faults and are
rejected before any tool runs.
"""

import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional

from config.logging_config import get_logger
from llm_cloud.provider import ChatProvider, LLMProviderError
from llm_cloud.tools.core import ToolExecutor
from shared.models import Conversation, ConversationMessage
from shared.utils import truncate_message_for_logging

logger = get_logger(__name__)

FALLBACK_REPLY = "I'm not sure how to help with that."


class ConversationState(str, Enum):
    INIT = "init"
    AWAITING_FIRST_COMPLETION = "awaiting_first_completion"
    DISPATCHING_TOOLS = "dispatching_tools"
    AWAITING_FINAL_COMPLETION = "awaiting_final_completion"
    DONE = "done"
    FAILED = "failed"


class ConversationError(RuntimeError):
    """
    The conversation could not be completed because the provider failed.

    Attributes:
        state (ConversationState): The state the run was in when it failed.
        tool_results (List[str]): Results of tools that already ran. Their side
            effects on the task backend are not rolled back.
    """

    def __init__(self, message: str, state: ConversationState, tool_results: Optional[List[str]] = None):
        super().__init__(message)
        self.state = state
        self.tool_results = list(tool_results or [])


@dataclass
class ConversationOutcome:
    reply: str
    state: ConversationState
    tool_results: List[str] = field(default_factory=list)
    provider_calls: int = 0
    messages: List[ConversationMessage] = field(default_factory=list)


def _server_time() -> datetime.datetime:
    return datetime.datetime.now().astimezone()


class ConversationOrchestrator:
    """
    Runs one request's conversation against a chat provider and the tool executor.

    Instances hold no per-request state and may be shared across threads as long
    as the injected collaborators can be.

    Args:
        chat_provider (ChatProvider): The language-understanding backend for this request.
        tool_executor (ToolExecutor): Executes tool invocations; never raises.
        tool_definitions (List[Dict[str, Any]]): Catalog advertised on the first completion.
        system_prompt (str): Base system prompt; the current server time is appended.
        clock (Callable, optional): Returns the current time. Injectable for tests.
    """

    def __init__(
        self,
        chat_provider: ChatProvider,
        tool_executor: ToolExecutor,
        tool_definitions: List[Dict[str, Any]],
        system_prompt: str,
        clock: Callable[[], datetime.datetime] = _server_time,
    ) -> None:
        self.chat_provider = chat_provider
        self.tool_executor = tool_executor
        self.tool_definitions = tool_definitions
        self.system_prompt = system_prompt
        self.clock = clock

    def build_system_prompt(self) -> str:
        """Return the system prompt with the current server time, so relative dates resolve."""
        now = self.clock()
        return (
            f"{self.system_prompt}\n\n"
            f"Current server time: {now.strftime('%A, %Y-%m-%d %H:%M %Z').strip()}."
        )

    def run(
        self,
        utterance: str,
        history: Iterable[ConversationMessage] = (),
        interaction_id: str = "no_id",
    ) -> ConversationOutcome:
        """
        Produce the assistant reply for one utterance.

        Args:
            utterance (str): The normalized user input.
            history (Iterable[ConversationMessage]): Prior turns re-submitted by the client.
            interaction_id (str): Correlation id for logs.

        Returns:
            ConversationOutcome: The reply (never empty) plus the run's bookkeeping.

        Raises:
            ConversationError: If a provider call fails.
            ConversationInvariantError: If the history contains a tool message that does
                not answer an earlier tool call. Callers validate history up front.
        """
        log = logger.bind(interaction_id=interaction_id, stage="conversation")
        state = ConversationState.INIT
        conversation = Conversation([ConversationMessage.system(self.build_system_prompt())])
        conversation.extend(history)
        conversation.append(ConversationMessage.user(utterance))
        tool_results: List[str] = []
        provider_calls = 0

        state = ConversationState.AWAITING_FIRST_COMPLETION
        try:
            first = self.chat_provider.complete(conversation.to_api(), tools=self.tool_definitions)
        except LLMProviderError as exc:
            log.error("First completion failed", extra={'state': state.value, 'error': str(exc)})
            raise ConversationError(str(exc), state) from exc
        provider_calls += 1

        if not first.tool_calls:
            conversation.append(first)
            log.info("Answered without tools", extra={'provider_calls': provider_calls})
            return ConversationOutcome(
                reply=first.content or FALLBACK_REPLY,
                state=ConversationState.DONE,
                provider_calls=provider_calls,
                messages=conversation.messages,
            )

        state = ConversationState.DISPATCHING_TOOLS
        # Checked before any tool runs; a call that cannot be answered must not touch the backend.
        conflicts = conversation.conflicting_call_ids(first.tool_calls)
        if conflicts:
            log.error("Provider reused tool call ids", extra={'state': state.value, 'tool_call_ids': conflicts})
            raise ConversationError(f"Provider reused tool call ids: {', '.join(conflicts)}", state)
        conversation.append(first)
        log.info(
            "Dispatching tool calls",
            extra={'tool_call_count': len(first.tool_calls), 'tools': [call.name for call in first.tool_calls]},
        )
        # Sequential on purpose: later calls may depend on the effects of earlier ones.
        for invocation in first.tool_calls:
            result = self.tool_executor.run_tool(invocation)
            tool_results.append(result)
            conversation.append(ConversationMessage.tool(invocation, result))

        state = ConversationState.AWAITING_FINAL_COMPLETION
        try:
            final = self.chat_provider.complete(conversation.to_api())
        except LLMProviderError as exc:
            log.error(
                "Final completion failed after tools ran",
                extra={'state': state.value, 'error': str(exc), 'tool_results_count': len(tool_results)},
            )
            raise ConversationError(str(exc), state, tool_results) from exc
        provider_calls += 1
        conversation.append(ConversationMessage.assistant(final.content))

        reply = final.content or FALLBACK_REPLY
        log.info(
            "Answered after tools",
            extra={'provider_calls': provider_calls, 'reply_preview': truncate_message_for_logging(reply, 50)},
        )
        return ConversationOutcome(
            reply=reply,
            state=ConversationState.DONE,
            tool_results=tool_results,
            provider_calls=provider_calls,
            messages=conversation.messages,
        )
