"""Ads platform adapters."""

from creative_engine.adapters.ads.base import PAUSED, AdsPlatformAdapter
from creative_engine.adapters.ads.meta import MetaAdsPlatform
from creative_engine.adapters.ads.stub import StubAdsPlatform

__all__ = ["PAUSED", "AdsPlatformAdapter", "MetaAdsPlatform", "StubAdsPlatform"]
