"""Provider selection by settings.

Each getter builds its adapter once per process; services receive the
instances by reference.
"""

from functools import lru_cache

from creative_engine.adapters.ads import AdsPlatformAdapter, MetaAdsPlatform, StubAdsPlatform
from creative_engine.adapters.compositor import (
    CompositorProvider,
    FFmpegCompositor,
    StubCompositor,
)
from creative_engine.adapters.ledger import GoogleSheetsLedger, LedgerAdapter, StubLedger
from creative_engine.adapters.llm import LLMProvider, OpenAIProvider, StubLLMProvider
from creative_engine.adapters.notifier import NotifierAdapter, SlackNotifier, StubNotifier
from creative_engine.adapters.storage import GoogleDriveStorage, StorageProvider, StubStorage
from creative_engine.adapters.voiceover import (
    ElevenLabsProvider,
    StubVoiceoverProvider,
    VoiceoverProvider,
)
from creative_engine.config import settings


@lru_cache
def get_llm_provider() -> LLMProvider:
    """Get the configured LLM provider."""
    if settings.llm_provider.lower() == "openai":
        return OpenAIProvider()
    return StubLLMProvider()


@lru_cache
def get_voiceover_provider() -> VoiceoverProvider:
    """Get the configured voiceover provider."""
    if settings.voiceover_provider.lower() == "elevenlabs":
        return ElevenLabsProvider()
    return StubVoiceoverProvider()


@lru_cache
def get_compositor() -> CompositorProvider:
    """Get the configured compositing provider."""
    if settings.compositor_provider.lower() == "ffmpeg":
        return FFmpegCompositor()
    return StubCompositor()


@lru_cache
def get_storage() -> StorageProvider:
    """Get the configured remote storage."""
    if settings.storage_provider.lower() == "google_drive":
        return GoogleDriveStorage()
    return StubStorage()


@lru_cache
def get_ledger() -> LedgerAdapter:
    """Get the configured spreadsheet ledger."""
    if settings.ledger_provider.lower() == "google_sheets":
        return GoogleSheetsLedger()
    return StubLedger()


@lru_cache
def get_notifier() -> NotifierAdapter:
    """Get the configured chat notifier."""
    if settings.notifier_provider.lower() == "slack":
        return SlackNotifier()
    return StubNotifier()


@lru_cache
def get_ads_platform() -> AdsPlatformAdapter:
    """Get the configured ads platform."""
    if settings.ads_provider.lower() == "meta":
        return MetaAdsPlatform()
    return StubAdsPlatform()
