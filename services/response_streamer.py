"""
HTTP response assembly for the voice endpoint.

The reply travels in the body (audio stream or plain text) and the metadata
travels in headers, so a client can start playback before the body ends:

- X-Transcript / X-Response: percent-encoded like JavaScript's encodeURIComponent
- X-TTS-Provider / X-LLM-Provider: provider ids used for this request
- X-Interaction-Id: correlation id matching the server logs

Error responses carry the same headers (empty where unknown), so the caller can
still show what was heard.
"""

from typing import Dict, Optional

from fastapi.responses import PlainTextResponse, Response, StreamingResponse

from shared.models import ProviderChoice
from shared.utils import encode_header_value


def build_metadata_headers(
    transcript: Optional[str] = "",
    reply: Optional[str] = "",
    providers: Optional[ProviderChoice] = None,
    interaction_id: Optional[str] = None,
) -> Dict[str, str]:
    headers = {
        "X-Transcript": encode_header_value(transcript),
        "X-Response": encode_header_value(reply),
    }
    if providers is not None:
        headers["X-TTS-Provider"] = providers.tts.value
        headers["X-LLM-Provider"] = providers.llm.value
    if interaction_id:
        headers["X-Interaction-Id"] = interaction_id
    return headers


def build_voice_response(result) -> Response:
    """
    Build the success response for a `VoiceCommandResult`.

    Audio results are streamed chunk by chunk as they arrive from the synthesis
    provider; WebSpeech results return the reply as plain text.
    """
    headers = build_metadata_headers(result.transcript, result.reply, result.providers, result.interaction_id)
    synthesis = result.synthesis
    if synthesis.is_audio:
        return StreamingResponse(synthesis.audio, media_type=synthesis.media_type, headers=headers)
    return PlainTextResponse(synthesis.text or "", headers=headers)


def build_error_response(
    status_code: int,
    message: str,
    transcript: Optional[str] = "",
    reply: Optional[str] = "",
    providers: Optional[ProviderChoice] = None,
    interaction_id: Optional[str] = None,
) -> Response:
    """Plain-text failure with the human-readable message and the usual metadata headers."""
    headers = build_metadata_headers(transcript, reply, providers, interaction_id)
    return PlainTextResponse(message, status_code=status_code, headers=headers)
