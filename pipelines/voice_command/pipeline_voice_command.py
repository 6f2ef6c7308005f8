"""
pipelines/voice_command/pipeline_voice_command.py

Voice command pipeline implementation.

This module contains the VoiceCommandPipeline class that handles one voice (or
typed) request end to end:

1. Transcription: text passes through, audio goes to the speech-to-text provider
2. Conversation: the orchestrator runs the tool-calling loop against the selected
   LLM provider and the task tools
3. Synthesis: the reply is rendered by the selected synthesis provider
4. Usage: the LLM provider is recorded once per request, the synthesis provider
   once per synthesis

Failures are raised as `VoiceCommandError` subclasses carrying whatever was known
when the stage failed (transcript, reply), so the API can keep that metadata in
the error response.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Union

from config.logging_config import get_logger
from core.orchestrator import ConversationError, ConversationOrchestrator
from llm_cloud.provider import ChatProvider
from llm_cloud.tools.core import ToolExecutor
from services.synthesis import SpeechSynthesizer, SynthesisError, SynthesisResult, get_synthesizer
from services.transcription import Transcriber, TranscriptionError
from services.usage_tracker import UsageTracker
from shared.models import ConversationMessage, LLMProvider, ProviderChoice, TTSProvider
from shared.utils import truncate_message_for_logging
from ..base import BasePipeline

logger = get_logger(__name__)


@dataclass
class VoiceCommandRequest:
    input: Union[str, bytes]
    history: List[ConversationMessage] = field(default_factory=list)
    providers: ProviderChoice = field(default_factory=ProviderChoice)
    filename: Optional[str] = None


@dataclass
class VoiceCommandResult:
    transcript: str
    reply: str
    synthesis: SynthesisResult
    providers: ProviderChoice
    interaction_id: str
    tool_results: List[str] = field(default_factory=list)


class VoiceCommandError(Exception):
    """
    Base class of pipeline failures.

    Attributes:
        stage (str): Pipeline stage that failed.
        transcript (str): What was heard, empty if transcription did not finish.
        reply (str): The reply text, empty unless the conversation finished.
    """

    stage = "pipeline"

    def __init__(self, message: str, transcript: str = "", reply: str = ""):
        super().__init__(message)
        self.transcript = transcript
        self.reply = reply


class InvalidAudioError(VoiceCommandError):
    """Nothing usable was heard; no language-understanding call was made."""
    stage = "transcription"


class TranscriptionUnavailableError(VoiceCommandError):
    stage = "transcription"


class ConversationFailedError(VoiceCommandError):
    stage = "conversation"


class VoiceSynthesisError(VoiceCommandError):
    stage = "synthesis"


class VoiceCommandPipeline(BasePipeline):
    """
    Pipeline for voice commands against the user's task list.

    All collaborators are injectable so tests can replace every external service;
    omitted ones are built from the global configuration.

    Args:
        transcriber (Transcriber, optional): Speech-to-text adapter.
        tool_executor (ToolExecutor, optional): Defaults to the process-wide executor.
        tool_definitions (list, optional): Defaults to the process-wide tool catalog.
        chat_provider_factory (Callable, optional): LLMProvider -> ChatProvider.
        synthesizer_factory (Callable, optional): TTSProvider -> SpeechSynthesizer.
        usage_tracker (UsageTracker, optional): Defaults to the process-wide tracker.
        config (dict, optional): Defaults to CONFIG.
    """

    def __init__(
        self,
        transcriber: Optional[Transcriber] = None,
        tool_executor: Optional[ToolExecutor] = None,
        tool_definitions: Optional[list] = None,
        chat_provider_factory: Optional[Callable[[LLMProvider], ChatProvider]] = None,
        synthesizer_factory: Optional[Callable[[TTSProvider], SpeechSynthesizer]] = None,
        usage_tracker: Optional[UsageTracker] = None,
        config: Optional[dict] = None,
    ) -> None:
        self.transcriber = transcriber
        self.tool_executor = tool_executor
        self.tool_definitions = tool_definitions
        self.chat_provider_factory = chat_provider_factory
        self.synthesizer_factory = synthesizer_factory
        self.usage_tracker = usage_tracker
        super().__init__(config)

    def setup(self) -> None:
        """
        Fill in every collaborator that was not injected.

        Sets up:
        - Transcriber for the configured speech-to-text provider
        - The shared tool executor and tool catalog
        - Chat provider and synthesizer factories
        - The process-wide usage tracker
        - The system prompt from config
        """
        if self.tool_executor is None or self.tool_definitions is None:
            from llm_cloud.tools import tool_executor, get_tool_definitions
            self.tool_executor = self.tool_executor or tool_executor
            if self.tool_definitions is None:
                self.tool_definitions = get_tool_definitions()
        if self.usage_tracker is None:
            from services import usage_tracker
            self.usage_tracker = usage_tracker

        self.transcriber = self.transcriber or Transcriber()
        self.chat_provider_factory = self.chat_provider_factory or ChatProvider
        self.synthesizer_factory = self.synthesizer_factory or get_synthesizer
        self.system_prompt = self.config['system_prompt']

        logger.info(
            "Pipeline setup complete",
            extra={
                'pipeline_name': self.get_pipeline_name(),
                'tool_count': len(self.tool_definitions),
            }
        )

    def _process_internal(self, request: VoiceCommandRequest, interaction_id: str) -> VoiceCommandResult:
        """
        Run one request through transcription, conversation and synthesis.

        Args:
            request (VoiceCommandRequest): Validated input, history and provider choice.
            interaction_id (str): Unique identifier for this interaction.

        Returns:
            VoiceCommandResult: Transcript, reply, synthesis output and bookkeeping.

        Raises:
            InvalidAudioError: Nothing usable was heard.
            TranscriptionUnavailableError: The speech-to-text provider was unreachable.
            ConversationFailedError: The LLM provider failed; tool side effects stay applied.
            VoiceSynthesisError: The synthesis provider failed.
        """
        providers = request.providers
        log = logger.bind(
            interaction_id=interaction_id,
            pipeline_name=self.get_pipeline_name(),
            llm_provider=providers.llm.value,
            tts_provider=providers.tts.value,
        )

        # 1. Transcription
        try:
            transcript = self.transcriber.transcribe(request.input, request.filename)
        except TranscriptionError as exc:
            log.error("Transcription provider unavailable", extra={'stage': 'transcription', 'error': str(exc)})
            raise TranscriptionUnavailableError(str(exc)) from exc
        if not transcript:
            log.info("Empty transcript; rejecting request", extra={'stage': 'transcription'})
            raise InvalidAudioError("Invalid audio")
        log.info(
            "Utterance resolved",
            extra={'stage': 'transcription', 'transcript_preview': truncate_message_for_logging(transcript, 50)},
        )

        # 2. Conversation
        self.usage_tracker.record(providers.llm)
        orchestrator = ConversationOrchestrator(
            chat_provider=self.chat_provider_factory(providers.llm),
            tool_executor=self.tool_executor,
            tool_definitions=self.tool_definitions,
            system_prompt=self.system_prompt,
        )
        try:
            outcome = orchestrator.run(transcript, request.history, interaction_id=interaction_id)
        except ConversationError as exc:
            log.error(
                "Conversation failed",
                extra={'stage': 'conversation', 'failed_state': exc.state.value, 'tool_results_count': len(exc.tool_results)},
            )
            raise ConversationFailedError(str(exc), transcript=transcript) from exc

        # 3. Synthesis
        self.usage_tracker.record(providers.tts)
        try:
            synthesis = self.synthesizer_factory(providers.tts).synthesize(outcome.reply)
        except SynthesisError as exc:
            log.error("Voice synthesis failed", extra={'stage': 'synthesis', 'error': str(exc)})
            raise VoiceSynthesisError(str(exc), transcript=transcript, reply=outcome.reply) from exc

        log.info(
            "Voice command processed",
            extra={
                'stage': 'done',
                'provider_calls': outcome.provider_calls,
                'tool_results_count': len(outcome.tool_results),
                'reply_length': len(outcome.reply),
            },
        )
        return VoiceCommandResult(
            transcript=transcript,
            reply=outcome.reply,
            synthesis=synthesis,
            providers=providers,
            interaction_id=interaction_id,
            tool_results=outcome.tool_results,
        )

    def get_pipeline_name(self) -> str:
        """
        Return the canonical identifier for this pipeline used in logs and metrics.

        Returns:
            str: The string literal "voice_command".
        """
        return "voice_command"
