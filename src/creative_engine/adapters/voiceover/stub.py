"""Stub voiceover provider for testing."""

from typing import Any

from creative_engine.adapters.voiceover.base import (
    VoiceoverProvider,
    VoiceoverRequest,
    VoiceoverResult,
    estimate_duration,
)
from creative_engine.logging import get_logger

logger = get_logger(__name__)


class StubVoiceoverProvider(VoiceoverProvider):
    """Stub provider that returns marker audio without external calls.

    Records every request so tests can count synthesis calls.
    """

    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.requests: list[VoiceoverRequest] = []
        self.fail_for = fail_for or set()

    @property
    def name(self) -> str:
        return "stub"

    async def generate(self, request: VoiceoverRequest) -> VoiceoverResult:
        self.requests.append(request)
        logger.info(
            "stub_voiceover_generated", text_length=len(request.text), voice=request.voice_id
        )

        if request.text in self.fail_for:
            return VoiceoverResult(success=False, error_message="Stub synthesis failure")

        return VoiceoverResult(
            success=True,
            audio_data=b"STUB_AUDIO_DATA_" + request.text.encode()[:100],
            duration_seconds=max(estimate_duration(request.text), 1.0),
            metadata={"provider": self.name, "voice_id": request.voice_id or "default"},
        )

    async def list_voices(self) -> list[dict[str, Any]]:
        return [{"voice_id": "stub_narrator", "name": "Stub Narrator", "language": "en"}]
