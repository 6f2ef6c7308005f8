"""
Unit tests for `services/transcription.py`.

The OpenAI-compatible client is a MagicMock, so the tests cover the text passthrough, the
empty-audio short circuit, and how provider errors are split into "nothing heard" (None)
and "provider unreachable" (TranscriptionError).
"""

import unittest
from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import openai

from services.transcription import Transcriber, TranscriptionError

REQUEST = httpx.Request("POST", "https://api.groq.test/openai/v1/audio/transcriptions")


class TestTranscriber(unittest.TestCase):

    def setUp(self):
        self.client = MagicMock()
        self.transcriber = Transcriber(client=self.client, model="whisper-large-v3", provider="groq")

    def test_text_passes_through_trimmed(self):
        for text in ["list my tasks", "  buy milk  ", "ünïcödé ✓"]:
            self.assertEqual(self.transcriber.transcribe(text), text.strip())
        self.client.audio.transcriptions.create.assert_not_called()

    def test_blank_text_is_none(self):
        self.assertIsNone(self.transcriber.transcribe("   "))

    def test_empty_audio_skips_provider(self):
        self.assertIsNone(self.transcriber.transcribe(b""))
        self.client.audio.transcriptions.create.assert_not_called()

    def test_audio_is_sent_with_filename_and_model(self):
        self.client.audio.transcriptions.create.return_value = SimpleNamespace(text="  create a task  ")

        result = self.transcriber.transcribe(b"\x00\x01", filename="clip.wav")

        self.assertEqual(result, "create a task")
        self.client.audio.transcriptions.create.assert_called_once_with(
            file=("clip.wav", b"\x00\x01"), model="whisper-large-v3"
        )

    def test_empty_transcript_is_none(self):
        self.client.audio.transcriptions.create.return_value = SimpleNamespace(text="")
        self.assertIsNone(self.transcriber.transcribe(b"\x00"))

    def test_rejected_audio_is_none(self):
        response = httpx.Response(400, request=REQUEST)
        self.client.audio.transcriptions.create.side_effect = openai.BadRequestError(
            "could not decode audio", response=response, body=None
        )
        self.assertIsNone(self.transcriber.transcribe(b"\x00"))

    def test_unexpected_sdk_error_is_none(self):
        self.client.audio.transcriptions.create.side_effect = openai.OpenAIError("malformed response")
        self.assertIsNone(self.transcriber.transcribe(b"\x00"))

    def test_timeout_raises(self):
        self.client.audio.transcriptions.create.side_effect = openai.APITimeoutError(request=REQUEST)
        with self.assertRaises(TranscriptionError):
            self.transcriber.transcribe(b"\x00")


if __name__ == "__main__":
    unittest.main()
