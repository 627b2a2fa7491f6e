"""Base interface for video compositing providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass
class CompositeRequest:
    """Lay narration (and optional captions) over base footage."""

    footage_path: Path
    output_path: Path
    audio_path: Path | None = None
    subtitle_path: Path | None = None


@dataclass
class CompositeResult:
    """Result from compositing."""

    success: bool
    output_path: Path | None = None
    duration_seconds: float | None = None
    error_message: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class CompositorProvider(ABC):
    """Abstract base class for compositing providers.

    Implementations:
    - FFmpegCompositor: Local ffmpeg/ffprobe binaries
    - StubCompositor: Writes marker files for tests and local runs
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier."""
        ...

    @abstractmethod
    async def composite(self, request: CompositeRequest) -> CompositeResult:
        """Render footage with narration and captions into ``request.output_path``.

        The output runs for the length of the narration when audio is given,
        looping the footage if it is shorter.
        """
        ...

    @abstractmethod
    async def probe_duration(self, media_path: Path) -> float | None:
        """Duration of an audio or video file in seconds, or None if unknown."""
        ...

    async def health_check(self) -> bool:
        return True
