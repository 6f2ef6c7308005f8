"""
Text-to-speech adapters.

Each adapter turns the final reply text into a `SynthesisResult`: either an audio
byte stream or, for the zero-cost WebSpeech path, the text itself (the client speaks
it with the browser's speech synthesis). Adapters are selected per request with
`get_synthesizer(TTSProvider)`.

A synthesis failure is a hard failure for the request: adapters raise
`SynthesisError` and the API answers 500 "Voice synthesis failed".
"""

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional

import openai
import requests

from config import CONFIG
from llm_cloud.provider import LLMProviderError, get_client
from monitoring.metrics import SYNTHESIS_REQUEST_TIME, ERROR_COUNT, timed
from shared.models import LLMProvider, TTSProvider

logger = logging.getLogger(__name__)

AUDIO_MEDIA_TYPE = "application/octet-stream"
TEXT_MEDIA_TYPE = "text/plain; charset=utf-8"


class SynthesisError(RuntimeError):
    """The synthesis provider failed or is not configured."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class SynthesisResult:
    """
    Output of one synthesis.

    Exactly one of `audio` (an iterator of raw audio chunks, consumed once) and
    `text` is set.
    """
    provider: TTSProvider
    media_type: str
    audio: Optional[Iterator[bytes]] = None
    text: Optional[str] = None

    @property
    def is_audio(self) -> bool:
        return self.audio is not None


class SpeechSynthesizer(ABC):
    """Common interface of all synthesis adapters."""

    provider: TTSProvider

    @abstractmethod
    def synthesize(self, text: str) -> SynthesisResult:
        """Render `text` for playback. Raises SynthesisError on failure."""


def _synthesis_settings() -> Dict[str, Any]:
    return CONFIG.get("synthesis", {})


class WebSpeechSynthesizer(SpeechSynthesizer):
    provider = TTSProvider.WEBSPEECH

    def synthesize(self, text: str) -> SynthesisResult:
        return SynthesisResult(provider=self.provider, media_type=TEXT_MEDIA_TYPE, text=text)


def _iter_response(response: requests.Response, chunk_size: int) -> Iterator[bytes]:
    try:
        for chunk in response.iter_content(chunk_size=chunk_size):
            if chunk:
                yield chunk
    finally:
        response.close()


class CartesiaSynthesizer(SpeechSynthesizer):
    """
    Cartesia `tts/bytes` adapter. Streams raw 32-bit float PCM at 24 kHz.

    Args:
        api_key (str, optional): Defaults to the env var named in config.json
            (CARTESIA_API_KEY).
        session (requests.Session, optional): Injected session, mainly for tests.
        settings (dict, optional): Overrides CONFIG["synthesis"]["cartesia"].
    """

    provider = TTSProvider.CARTESIA

    def __init__(
        self,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
        settings: Optional[Dict[str, Any]] = None,
    ) -> None:
        synthesis = _synthesis_settings()
        self.settings = settings or synthesis.get("cartesia", {})
        self.api_key = api_key or os.getenv(self.settings.get("api_key_env", "CARTESIA_API_KEY"))
        self.timeout = synthesis.get("timeout", 20)
        self.chunk_size = synthesis.get("chunk_size", 4096)
        self.session = session or requests.Session()

    def build_payload(self, text: str) -> Dict[str, Any]:
        return {
            "model_id": self.settings.get("model_id", "sonic-english"),
            "transcript": text,
            "voice": {"mode": "id", "id": self.settings.get("voice_id")},
            "output_format": dict(self.settings.get("output_format", {
                "container": "raw",
                "encoding": "pcm_f32le",
                "sample_rate": 24000,
            })),
        }

    def synthesize(self, text: str) -> SynthesisResult:
        if not self.api_key:
            raise SynthesisError("Cartesia API key is not configured")

        headers = {
            "Cartesia-Version": self.settings.get("version", "2024-06-30"),
            "X-API-Key": self.api_key,
            "Content-Type": "application/json",
        }
        logger.info(f"[CartesiaSynthesizer] Synthesizing {len(text)} characters")
        try:
            with timed(SYNTHESIS_REQUEST_TIME, provider=self.provider.value):
                response = self.session.post(
                    self.settings.get("url", "https://api.cartesia.ai/tts/bytes"),
                    json=self.build_payload(text),
                    headers=headers,
                    stream=True,
                    timeout=self.timeout,
                )
        except requests.RequestException as exc:
            ERROR_COUNT.labels(type='synthesis', location=self.provider.value).inc()
            raise SynthesisError(f"Cartesia request failed: {exc}") from exc

        if not response.ok:
            body = response.text[:200]
            response.close()
            ERROR_COUNT.labels(type='synthesis', location=self.provider.value).inc()
            logger.error(f"[CartesiaSynthesizer] Cartesia answered {response.status_code}: {body}")
            raise SynthesisError(f"Cartesia answered with status {response.status_code}", response.status_code)

        return SynthesisResult(
            provider=self.provider,
            media_type=AUDIO_MEDIA_TYPE,
            audio=_iter_response(response, self.chunk_size),
        )


class OpenAISpeechSynthesizer(SpeechSynthesizer):
    """
    OpenAI speech adapter (`audio.speech`). Returns raw 16-bit PCM at 24 kHz.

    Args:
        client (OpenAI, optional): Injected client; built for the OpenAI provider when omitted.
        settings (dict, optional): Overrides CONFIG["synthesis"]["openai-tts"].
    """

    provider = TTSProvider.OPENAI_TTS

    def __init__(self, client=None, settings: Optional[Dict[str, Any]] = None) -> None:
        synthesis = _synthesis_settings()
        self.settings = settings or synthesis.get("openai-tts", {})
        self.timeout = synthesis.get("timeout", 20)
        self.chunk_size = synthesis.get("chunk_size", 4096)
        self._client = client

    def synthesize(self, text: str) -> SynthesisResult:
        try:
            client = self._client or get_client(LLMProvider.OPENAI).with_options(timeout=self.timeout)
            with timed(SYNTHESIS_REQUEST_TIME, provider=self.provider.value):
                response = client.audio.speech.create(
                    model=self.settings.get("model", "tts-1"),
                    voice=self.settings.get("voice", "alloy"),
                    input=text,
                    response_format=self.settings.get("response_format", "pcm"),
                )
        except (openai.OpenAIError, LLMProviderError) as exc:
            ERROR_COUNT.labels(type='synthesis', location=self.provider.value).inc()
            logger.error(f"[OpenAISpeechSynthesizer] Synthesis failed: {exc}")
            raise SynthesisError(f"OpenAI speech request failed: {exc}") from exc

        return SynthesisResult(
            provider=self.provider,
            media_type=AUDIO_MEDIA_TYPE,
            audio=response.iter_bytes(self.chunk_size),
        )


_SYNTHESIZERS = {
    TTSProvider.WEBSPEECH: WebSpeechSynthesizer,
    TTSProvider.CARTESIA: CartesiaSynthesizer,
    TTSProvider.OPENAI_TTS: OpenAISpeechSynthesizer,
}


def get_synthesizer(provider: TTSProvider) -> SpeechSynthesizer:
    """Return a fresh adapter for the requested synthesis provider."""
    return _SYNTHESIZERS[TTSProvider(provider)]()
