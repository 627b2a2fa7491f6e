"""Adapters for external services."""

from creative_engine.adapters.ads.base import AdsPlatformAdapter
from creative_engine.adapters.compositor.base import CompositorProvider
from creative_engine.adapters.ledger.base import LedgerAdapter
from creative_engine.adapters.llm.base import LLMProvider
from creative_engine.adapters.notifier.base import NotifierAdapter
from creative_engine.adapters.storage.base import StorageProvider
from creative_engine.adapters.voiceover.base import VoiceoverProvider

__all__ = [
    "AdsPlatformAdapter",
    "CompositorProvider",
    "LedgerAdapter",
    "LLMProvider",
    "NotifierAdapter",
    "StorageProvider",
    "VoiceoverProvider",
]
