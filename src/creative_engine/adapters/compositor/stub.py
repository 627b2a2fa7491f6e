"""Stub compositor for testing."""

from pathlib import Path

from creative_engine.adapters.compositor.base import (
    CompositeRequest,
    CompositeResult,
    CompositorProvider,
)
from creative_engine.logging import get_logger

logger = get_logger(__name__)


class StubCompositor(CompositorProvider):
    """Writes a small marker file in place of a rendered video.

    Records every request so tests can count composite calls.
    """

    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.requests: list[CompositeRequest] = []
        self.fail_for = fail_for or set()

    @property
    def name(self) -> str:
        return "stub"

    async def composite(self, request: CompositeRequest) -> CompositeResult:
        self.requests.append(request)

        if request.output_path.stem in self.fail_for:
            return CompositeResult(success=False, error_message="Stub composite failure")

        request.output_path.parent.mkdir(parents=True, exist_ok=True)
        marker = f"STUB_VIDEO {request.footage_path.name} {request.audio_path or '-'}"
        request.output_path.write_bytes(marker.encode())

        logger.info(
            "stub_composite_completed",
            output=str(request.output_path),
            subtitles=request.subtitle_path is not None,
        )
        return CompositeResult(success=True, output_path=request.output_path, duration_seconds=10.0)

    async def probe_duration(self, media_path: Path) -> float | None:
        return None
