"""ElevenLabs voiceover provider implementation."""

from typing import Any

import httpx

from creative_engine.adapters.voiceover.base import (
    VoiceoverProvider,
    VoiceoverRequest,
    VoiceoverResult,
    estimate_duration,
)
from creative_engine.config import settings
from creative_engine.logging import get_logger

logger = get_logger(__name__)


class ElevenLabsProvider(VoiceoverProvider):
    """ElevenLabs text-to-speech API provider."""

    def __init__(
        self,
        api_key: str | None = None,
        model_id: str | None = None,
        default_voice_id: str | None = None,
        base_url: str = "https://api.elevenlabs.io/v1",
    ) -> None:
        self.api_key = api_key or settings.elevenlabs_api_key
        self.model_id = model_id or settings.elevenlabs_model_id
        self.default_voice_id = default_voice_id or settings.default_voice_id
        self.base_url = base_url

        if not self.api_key:
            logger.warning("elevenlabs_api_key_missing")

    @property
    def name(self) -> str:
        return "elevenlabs"

    async def generate(self, request: VoiceoverRequest) -> VoiceoverResult:
        if not self.api_key:
            return VoiceoverResult(success=False, error_message="ElevenLabs API key not configured")

        voice_id = request.voice_id or self.default_voice_id
        payload: dict[str, Any] = {
            "text": request.text,
            "model_id": self.model_id,
            "voice_settings": {
                "stability": 0.5,
                "similarity_boost": 0.75,
                "style": 0.0,
                "use_speaker_boost": True,
            },
        }
        if request.language != "en":
            payload["language_code"] = request.language

        logger.info(
            "elevenlabs_generation_started",
            text_length=len(request.text),
            voice_id=voice_id,
            model=self.model_id,
        )

        try:
            async with httpx.AsyncClient(timeout=120.0) as client:
                response = await client.post(
                    f"{self.base_url}/text-to-speech/{voice_id}",
                    headers={"xi-api-key": self.api_key, "Accept": "audio/mpeg"},
                    json=payload,
                )
                response.raise_for_status()
                audio_data = response.content
        except httpx.HTTPStatusError as e:
            error_msg = f"ElevenLabs API error: {e.response.status_code}"
            detail = e.response.text[:200]
            if detail:
                error_msg = f"{error_msg} - {detail}"
            logger.error("elevenlabs_api_error", error=error_msg, voice_id=voice_id)
            return VoiceoverResult(success=False, error_message=error_msg)
        except httpx.HTTPError as e:
            logger.error("elevenlabs_request_failed", error=str(e), voice_id=voice_id)
            return VoiceoverResult(success=False, error_message=f"ElevenLabs request failed: {e}")

        logger.info("elevenlabs_generation_completed", audio_size=len(audio_data))

        return VoiceoverResult(
            success=True,
            audio_data=audio_data,
            duration_seconds=estimate_duration(request.text),
            metadata={"provider": self.name, "voice_id": voice_id, "model_id": self.model_id},
        )

    async def list_voices(self) -> list[dict[str, Any]]:
        if not self.api_key:
            return []
        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                response = await client.get(
                    f"{self.base_url}/voices", headers={"xi-api-key": self.api_key}
                )
                response.raise_for_status()
                return response.json().get("voices", [])
        except httpx.HTTPError as e:
            logger.error("elevenlabs_list_voices_error", error=str(e))
            return []

    async def health_check(self) -> bool:
        if not self.api_key:
            return False
        try:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.get(
                    f"{self.base_url}/user", headers={"xi-api-key": self.api_key}
                )
                return response.status_code == 200
        except httpx.HTTPError as e:
            logger.error("elevenlabs_health_check_failed", error=str(e))
            return False
