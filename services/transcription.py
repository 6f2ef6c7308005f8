"""
Speech-to-text adapter.

Turns the `input` of a voice request into an utterance. Typed text passes through
trimmed; audio bytes are sent to the OpenAI-compatible transcription endpoint of the
configured provider (Groq's Whisper by default).

Two outcomes are deliberately different:
- `None` means "nothing usable was heard": empty text, empty audio, an empty
  transcript, or audio the provider rejected. The API answers 400 "Invalid audio".
- `TranscriptionError` means the provider could not be reached (timeout, connection
  failure, missing credentials). The API answers 502.
"""

import logging
from typing import Optional, Union

import openai
from openai import OpenAI

from config import CONFIG
from llm_cloud.provider import LLMProviderError, get_client
from monitoring.metrics import TRANSCRIPTION_REQUEST_TIME, ERROR_COUNT, timed
from shared.models import LLMProvider

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "audio.webm"


class TranscriptionError(RuntimeError):
    """The transcription provider was unreachable or not configured."""


class Transcriber:
    """
    Resolve text or audio input into a normalized utterance.

    Args:
        client (OpenAI, optional): Injected client; built lazily for the configured
            transcription provider when omitted.
        model (str, optional): Transcription model; defaults to config.json.
        provider (str, optional): Provider id from llm.providers; defaults to config.json.
    """

    def __init__(self, client: Optional[OpenAI] = None, model: Optional[str] = None, provider: Optional[str] = None):
        settings = CONFIG.get("transcription", {})
        self.provider = provider or settings.get("provider", "groq")
        self.model = model or settings.get("model", "whisper-large-v3")
        self.timeout = settings.get("timeout", 20)
        self._client = client

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            try:
                self._client = get_client(LLMProvider(self.provider)).with_options(timeout=self.timeout)
            except LLMProviderError as exc:
                raise TranscriptionError(str(exc)) from exc
        return self._client

    def transcribe(self, data: Union[str, bytes], filename: Optional[str] = None) -> Optional[str]:
        """
        Args:
            data (str | bytes): Typed text, or raw audio bytes from the uploaded file.
            filename (str, optional): Original upload name; the provider uses its
                extension to detect the audio format.

        Returns:
            Optional[str]: The trimmed utterance, or None when nothing usable was heard.

        Raises:
            TranscriptionError: If the provider is unreachable.
        """
        if isinstance(data, str):
            text = data.strip()
            return text or None

        if not data:
            logger.info("[Transcriber] Empty audio payload; skipping provider call")
            return None

        logger.info(f"[Transcriber] Transcribing {len(data)} bytes with {self.provider}/{self.model}")
        try:
            with timed(TRANSCRIPTION_REQUEST_TIME, provider=self.provider):
                transcription = self.client.audio.transcriptions.create(
                    file=(filename or DEFAULT_FILENAME, data),
                    model=self.model,
                )
        except openai.APIStatusError as exc:
            # The provider answered but refused the audio; treat like silence.
            logger.warning(f"[Transcriber] Provider rejected audio (status {exc.status_code}): {exc}")
            return None
        except openai.APIConnectionError as exc:  # includes APITimeoutError
            ERROR_COUNT.labels(type='transcription', location=self.provider).inc()
            logger.error(f"[Transcriber] Provider unreachable: {exc}", exc_info=True)
            raise TranscriptionError(f"Transcription provider unreachable: {exc}") from exc
        except openai.OpenAIError as exc:
            # Malformed or unexpected provider output; nothing usable was heard.
            ERROR_COUNT.labels(type='transcription', location=self.provider).inc()
            logger.warning(f"[Transcriber] Provider returned an unusable response: {exc}")
            return None

        text = (getattr(transcription, "text", None) or "").strip()
        if not text:
            logger.info("[Transcriber] Provider returned an empty transcript")
            return None
        return text
