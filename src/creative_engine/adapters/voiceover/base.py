"""Base interface for text-to-speech providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

# Narration pace used when a provider cannot report the real audio length
WORDS_PER_MINUTE = 150


def estimate_duration(text: str) -> float:
    """Rough spoken duration of ``text`` in seconds."""
    return len(text.split()) / WORDS_PER_MINUTE * 60


@dataclass
class VoiceoverRequest:
    """Request to narrate one script."""

    text: str
    voice_id: str | None = None
    language: str = "en"
    output_format: str = "mp3"
    options: dict[str, Any] | None = None


@dataclass
class VoiceoverResult:
    """Result from voiceover synthesis."""

    success: bool
    audio_data: bytes | None = None
    duration_seconds: float | None = None
    error_message: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class VoiceoverProvider(ABC):
    """Abstract base class for voiceover providers.

    Implementations:
    - ElevenLabsProvider: ElevenLabs text-to-speech API
    - StubVoiceoverProvider: Returns marker audio for tests and local runs
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier."""
        ...

    @abstractmethod
    async def generate(self, request: VoiceoverRequest) -> VoiceoverResult:
        """Synthesize narration audio for a script.

        Args:
            request: Text and voice settings

        Returns:
            VoiceoverResult with audio bytes or error information
        """
        ...

    async def list_voices(self) -> list[dict[str, Any]]:
        """List voices the provider offers."""
        return []

    async def health_check(self) -> bool:
        return True
