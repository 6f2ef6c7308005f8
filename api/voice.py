"""
api/voice.py

Handles the voice command endpoint and the read-only tool catalog.

Endpoints:
  - POST /voice: Receives one utterance as multipart form data, runs it through the
                 voice command pipeline and returns the reply as an audio stream or
                 plain text, with transcript and reply in the response headers.
  - GET /tools:  Lists the tool descriptors advertised to the LLM.

Form fields of POST /voice:
  - input:        typed text, or an audio file
  - message:      repeated; each a JSON-encoded prior turn ({"role", "content", ...})
  - llmProvider:  groq (default) | openai | claude | gemini
  - ttsProvider:  webspeech (default) | cartesia | openai-tts
  - useWebSpeech: legacy flag; "false" selects cartesia when ttsProvider is absent
"""

import json
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from config import CONFIG
from pipelines.voice_command import (
    VoiceCommandPipeline,
    VoiceCommandRequest,
    InvalidAudioError,
    TranscriptionUnavailableError,
    ConversationFailedError,
    VoiceSynthesisError,
)
from services.response_streamer import build_error_response, build_voice_response
from shared.models import (
    Conversation,
    ConversationMessage,
    LLMProvider,
    PriorMessage,
    ProviderChoice,
    TTSProvider,
)
from shared.utils import generate_interaction_id, truncate_message_for_logging

# Get a logger instance for this module
logger = logging.getLogger(__name__)

router = APIRouter()

INVALID_REQUEST = "Invalid request"
INVALID_AUDIO = "Invalid audio"
TRANSCRIPTION_UNAVAILABLE = "Sorry, I couldn't reach the transcription service. Please try again."
LLM_UNAVAILABLE = "Sorry, I couldn't reach the language service. Please try again."
SYNTHESIS_FAILED = "Voice synthesis failed"
UNEXPECTED_ERROR = "I apologize, but I encountered an unexpected issue processing your request. Please try again."

_pipeline: Optional[VoiceCommandPipeline] = None


def get_pipeline() -> VoiceCommandPipeline:
    """Dependency returning the process-wide pipeline, built on first use."""
    global _pipeline
    if _pipeline is None:
        _pipeline = VoiceCommandPipeline()
    return _pipeline


def parse_history(raw_messages: List) -> List[ConversationMessage]:
    """
    Validate the repeated `message` form fields into conversation messages.

    Raises:
        ValueError: On malformed JSON, an invalid turn, or a tool message that does
            not answer an earlier assistant tool call (pydantic's ValidationError and
            ConversationInvariantError are both ValueErrors).
    """
    messages = []
    for raw in raw_messages:
        if not isinstance(raw, str):
            raise ValueError("message fields must be JSON text, not files")
        messages.append(PriorMessage.model_validate(json.loads(raw)).to_conversation_message())
    # Building the log checks tool_call_id pairing before any provider is called.
    Conversation(messages)
    return messages


def _default_providers() -> ProviderChoice:
    return ProviderChoice(
        llm=LLMProvider(CONFIG['llm'].get('default_provider', 'groq')),
        tts=TTSProvider(CONFIG['synthesis'].get('default_provider', 'webspeech')),
    )


@router.post("/voice")
async def handle_voice(request: Request, pipeline: VoiceCommandPipeline = Depends(get_pipeline)):
    """
    Process one voice or text command and return the spoken (or text) reply.

    The form is parsed and validated on the event loop; the blocking pipeline
    (provider calls, task backend calls) runs in the threadpool.

    Returns:
        Response: 200 with an audio stream (application/octet-stream) or the reply text
            (text/plain). Failures are plain text with the same metadata headers:
            400 "Invalid request" / "Invalid audio", 502 when the transcription or
            language provider fails, 500 "Voice synthesis failed" or a generic apology
            for anything unexpected.

    Note:
        Task changes made by tools before a later failure stay applied. A client that
        disconnects mid-request does not stop the pipeline.
    """
    interaction_id = generate_interaction_id()

    try:
        form = await request.form()
    except Exception as e:
        logger.warning(f"[handle_voice] Could not parse form data: {e}")
        return build_error_response(400, INVALID_REQUEST, interaction_id=interaction_id)

    raw_input = form.get("input")
    if raw_input is None:
        logger.warning("[handle_voice] Request without 'input' field")
        return build_error_response(400, INVALID_REQUEST, interaction_id=interaction_id)

    defaults = _default_providers()
    try:
        history = parse_history(form.getlist("message"))
        providers = ProviderChoice.from_form(
            llm_provider=form.get("llmProvider"),
            tts_provider=form.get("ttsProvider"),
            use_web_speech=form.get("useWebSpeech"),
            default_llm=defaults.llm,
            default_tts=defaults.tts,
        )
    except ValueError as e:
        logger.warning(f"[handle_voice] Invalid request: {e}")
        return build_error_response(400, INVALID_REQUEST, interaction_id=interaction_id)

    if isinstance(raw_input, UploadFile):
        data = await raw_input.read()
        filename = raw_input.filename
        logger.info(f"[handle_voice] Audio input '{filename}' ({len(data)} bytes), interaction {interaction_id}")
    else:
        data = raw_input
        filename = None
        logger.info(f"[handle_voice] Text input '{truncate_message_for_logging(data, 50)}', interaction {interaction_id}")

    voice_request = VoiceCommandRequest(input=data, history=history, providers=providers, filename=filename)
    try:
        result = await run_in_threadpool(pipeline.process, voice_request, interaction_id)
    except InvalidAudioError:
        return build_error_response(400, INVALID_AUDIO, providers=providers, interaction_id=interaction_id)
    except TranscriptionUnavailableError as e:
        logger.error(f"[handle_voice] Transcription unavailable: {e}")
        return build_error_response(502, TRANSCRIPTION_UNAVAILABLE, providers=providers, interaction_id=interaction_id)
    except ConversationFailedError as e:
        logger.error(f"[handle_voice] Conversation failed: {e}")
        return build_error_response(
            502, LLM_UNAVAILABLE, transcript=e.transcript, providers=providers, interaction_id=interaction_id
        )
    except VoiceSynthesisError as e:
        logger.error(f"[handle_voice] Synthesis failed: {e}")
        return build_error_response(
            500, SYNTHESIS_FAILED, transcript=e.transcript, reply=e.reply,
            providers=providers, interaction_id=interaction_id
        )
    except Exception as e:
        logger.error(f"[handle_voice] An unexpected error occurred for interaction {interaction_id}: {e}", exc_info=True)
        # Typed input is its own transcript; an audio transcript is not known here.
        transcript = data.strip() if isinstance(data, str) else ""
        return build_error_response(
            500, UNEXPECTED_ERROR, transcript=transcript, providers=providers, interaction_id=interaction_id
        )

    return build_voice_response(result)


@router.get("/tools")
async def list_tools():
    """Return the tool descriptors currently advertised to the LLM."""
    from llm_cloud.tools import get_tool_definitions
    return JSONResponse({"tools": get_tool_definitions()})
