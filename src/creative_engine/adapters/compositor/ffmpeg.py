"""FFmpeg compositor: narration and burned-in captions over base footage."""

import asyncio
from pathlib import Path

from creative_engine.adapters.compositor.base import (
    CompositeRequest,
    CompositeResult,
    CompositorProvider,
)
from creative_engine.config import settings
from creative_engine.logging import get_logger

logger = get_logger(__name__)

SUBTITLE_STYLE = (
    "FontName=Arial,FontSize=14,Bold=1,PrimaryColour=&H00FFFFFF,"
    "OutlineColour=&H00000000,BorderStyle=1,Outline=2,Shadow=0,Alignment=2,MarginV=60"
)


def _escape_filter_path(path: Path) -> str:
    # ffmpeg filter arguments treat ':' , '\' and ''' specially
    return str(path).replace("\\", "\\\\").replace(":", "\\:").replace("'", "\\'")


class FFmpegCompositor(CompositorProvider):
    """Composites with local ffmpeg/ffprobe subprocesses."""

    def __init__(
        self,
        ffmpeg_path: str | None = None,
        ffprobe_path: str | None = None,
        preset: str | None = None,
        crf: int | None = None,
        timeout: int | None = None,
    ) -> None:
        self.ffmpeg_path = ffmpeg_path or settings.ffmpeg_path or "ffmpeg"
        self.ffprobe_path = ffprobe_path or settings.ffprobe_path or "ffprobe"
        self.preset = preset or settings.ffmpeg_preset
        self.crf = crf if crf is not None else settings.ffmpeg_crf
        self.timeout = timeout or settings.ffmpeg_timeout

    @property
    def name(self) -> str:
        return "ffmpeg"

    def build_command(self, request: CompositeRequest) -> list[str]:
        """ffmpeg argument list for a composite request."""
        cmd = [self.ffmpeg_path, "-y", "-hide_banner", "-loglevel", "error"]

        if request.audio_path is None:
            cmd += ["-i", str(request.footage_path)]
        else:
            cmd += [
                "-stream_loop", "-1", "-i", str(request.footage_path),
                "-i", str(request.audio_path),
                "-map", "0:v:0", "-map", "1:a:0", "-shortest",
            ]

        if request.subtitle_path is not None:
            cmd += [
                "-vf",
                f"subtitles='{_escape_filter_path(request.subtitle_path)}'"
                f":force_style='{SUBTITLE_STYLE}'",
            ]

        cmd += [
            "-c:v", "libx264", "-preset", self.preset, "-crf", str(self.crf),
            "-pix_fmt", "yuv420p",
            "-c:a", "aac", "-b:a", "192k",
            "-movflags", "+faststart",
            str(request.output_path),
        ]
        return cmd

    async def _run(self, cmd: list[str], timeout: float) -> tuple[int, bytes, bytes]:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise
        return process.returncode or 0, stdout, stderr

    async def composite(self, request: CompositeRequest) -> CompositeResult:
        request.output_path.parent.mkdir(parents=True, exist_ok=True)
        cmd = self.build_command(request)

        logger.info(
            "ffmpeg_composite_started",
            footage=str(request.footage_path),
            audio=str(request.audio_path) if request.audio_path else None,
            subtitles=request.subtitle_path is not None,
        )

        try:
            returncode, _, stderr = await self._run(cmd, self.timeout)
        except asyncio.TimeoutError:
            logger.error("ffmpeg_composite_timeout", timeout=self.timeout)
            return CompositeResult(
                success=False, error_message=f"ffmpeg timed out after {self.timeout}s"
            )
        except FileNotFoundError:
            return CompositeResult(
                success=False, error_message=f"ffmpeg binary not found: {self.ffmpeg_path}"
            )

        if returncode != 0:
            error = stderr.decode(errors="replace").strip()[-500:]
            logger.error("ffmpeg_composite_failed", returncode=returncode, error=error)
            return CompositeResult(success=False, error_message=f"ffmpeg failed: {error}")

        duration = await self.probe_duration(request.output_path)
        logger.info(
            "ffmpeg_composite_completed", output=str(request.output_path), duration=duration
        )
        return CompositeResult(
            success=True, output_path=request.output_path, duration_seconds=duration
        )

    async def probe_duration(self, media_path: Path) -> float | None:
        cmd = [
            self.ffprobe_path,
            "-v", "error",
            "-show_entries", "format=duration",
            "-of", "default=noprint_wrappers=1:nokey=1",
            str(media_path),
        ]
        try:
            returncode, stdout, _ = await self._run(cmd, 30)
        except (asyncio.TimeoutError, FileNotFoundError) as e:
            logger.warning("ffprobe_failed", path=str(media_path), error=str(e))
            return None
        if returncode != 0:
            return None
        try:
            return float(stdout.decode().strip())
        except ValueError:
            return None

    async def health_check(self) -> bool:
        try:
            returncode, _, _ = await self._run([self.ffmpeg_path, "-version"], 10)
        except (asyncio.TimeoutError, FileNotFoundError):
            return False
        return returncode == 0
