"""Video compositing adapters."""

from creative_engine.adapters.compositor.base import (
    CompositeRequest,
    CompositeResult,
    CompositorProvider,
)
from creative_engine.adapters.compositor.ffmpeg import FFmpegCompositor
from creative_engine.adapters.compositor.stub import StubCompositor

__all__ = [
    "CompositeRequest",
    "CompositeResult",
    "CompositorProvider",
    "FFmpegCompositor",
    "StubCompositor",
]
