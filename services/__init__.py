"""
services package: adapters around the external speech services plus process-wide
bookkeeping.

- transcription: speech-to-text (Groq Whisper by default)
- synthesis: text-to-speech adapters (WebSpeech passthrough, Cartesia, OpenAI)
- usage_tracker: per-provider call counts and estimated cost
- response_streamer: response headers and streaming for the voice endpoint

`usage_tracker` below is the process-wide instance. Tests swap it by passing their
own `UsageTracker` to the pipeline.
"""

from config import CONFIG
from .usage_tracker import UsageTracker, ProviderUsage

usage_tracker = UsageTracker(CONFIG.get("pricing", {}))

__all__ = ["UsageTracker", "ProviderUsage", "usage_tracker"]
