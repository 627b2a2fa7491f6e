"""Voiceover (text-to-speech) adapters."""

from creative_engine.adapters.voiceover.base import (
    VoiceoverProvider,
    VoiceoverRequest,
    VoiceoverResult,
)
from creative_engine.adapters.voiceover.elevenlabs import ElevenLabsProvider
from creative_engine.adapters.voiceover.stub import StubVoiceoverProvider

__all__ = [
    "VoiceoverProvider",
    "VoiceoverRequest",
    "VoiceoverResult",
    "ElevenLabsProvider",
    "StubVoiceoverProvider",
]
