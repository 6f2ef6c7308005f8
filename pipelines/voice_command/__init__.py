"""
Voice command pipeline package.

Contains the voice command pipeline implementation: transcription, the tool-calling
conversation, synthesis and usage accounting for one request.
"""

from .pipeline_voice_command import (
    VoiceCommandPipeline,
    VoiceCommandRequest,
    VoiceCommandResult,
    VoiceCommandError,
    InvalidAudioError,
    TranscriptionUnavailableError,
    ConversationFailedError,
    VoiceSynthesisError,
)

__all__ = [
    'VoiceCommandPipeline',
    'VoiceCommandRequest',
    'VoiceCommandResult',
    'VoiceCommandError',
    'InvalidAudioError',
    'TranscriptionUnavailableError',
    'ConversationFailedError',
    'VoiceSynthesisError',
]
