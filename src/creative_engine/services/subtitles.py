"""Caption segmentation and SRT generation.

Narration text is split into short chunks (five words, six when that keeps a
punctuated word with its phrase) and each chunk is given a share of the audio
duration proportional to its word count, never less than MIN_SEGMENT_MS.
"""

from dataclasses import dataclass
from pathlib import Path

from creative_engine.errors import SubtitleError
from creative_engine.logging import get_logger

logger = get_logger(__name__)

WORDS_PER_CHUNK = 5
MAX_WORDS_PER_CHUNK = WORDS_PER_CHUNK + 1
MIN_SEGMENT_MS = 800

_BREAK_CHARS = (",", ";", ":", "-", "—", ".", "!", "?")


@dataclass
class SubtitleSegment:
    """One caption cue."""

    start_ms: int
    end_ms: int
    text: str

    @property
    def word_count(self) -> int:
        return len(self.text.split())


def _is_break(word: str) -> bool:
    return word.endswith(_BREAK_CHARS)


def split_into_chunks(text: str) -> list[list[str]]:
    """Group whitespace-delimited words into caption chunks."""
    words = text.split()
    chunks: list[list[str]] = []
    current: list[str] = []

    for i, word in enumerate(words):
        current.append(word)
        is_last = i == len(words) - 1

        if len(current) >= MAX_WORDS_PER_CHUNK or is_last:
            chunks.append(current)
            current = []
        elif len(current) >= WORDS_PER_CHUNK:
            # Pull a trailing punctuated word into this chunk rather than orphan it
            if not _is_break(word) and _is_break(words[i + 1]):
                continue
            chunks.append(current)
            current = []

    return chunks


def _allocate(word_counts: list[int], duration_ms: float) -> list[float]:
    """Split ``duration_ms`` across chunks by word count with a per-chunk floor.

    When the duration can hold every chunk at the floor, chunks that fall
    below it are pinned there and the remainder is shared proportionally by
    the rest, so the allocations sum to the duration. Otherwise every chunk
    gets at least the floor and the caller clamps to the duration.
    """
    total_words = sum(word_counts)
    if duration_ms < MIN_SEGMENT_MS * len(word_counts):
        return [max(duration_ms * n / total_words, MIN_SEGMENT_MS) for n in word_counts]

    pinned: set[int] = set()
    while True:
        free_words = sum(n for i, n in enumerate(word_counts) if i not in pinned)
        remaining = duration_ms - MIN_SEGMENT_MS * len(pinned)
        newly_pinned = {
            i
            for i, n in enumerate(word_counts)
            if i not in pinned and remaining * n / free_words < MIN_SEGMENT_MS
        }
        if not newly_pinned:
            break
        pinned |= newly_pinned

    return [
        MIN_SEGMENT_MS if i in pinned else remaining * n / free_words
        for i, n in enumerate(word_counts)
    ]


def segment(text: str, duration_ms: float) -> list[SubtitleSegment]:
    """Time-code ``text`` across ``duration_ms`` milliseconds of audio.

    Returns an empty list when the text has no words.
    """
    chunks = split_into_chunks(text)
    if not chunks:
        return []

    allocations = _allocate([len(c) for c in chunks], duration_ms)

    segments: list[SubtitleSegment] = []
    current = 0.0
    for words, allocated in zip(chunks, allocations):
        start = round(current)
        end = round(min(current + allocated, duration_ms))
        segments.append(SubtitleSegment(start_ms=start, end_ms=end, text=" ".join(words)))
        current = end

    segments[-1].end_ms = round(duration_ms)
    return segments


def format_timestamp(ms: float) -> str:
    """Format milliseconds as an SRT timestamp (HH:MM:SS,mmm)."""
    total = max(0, round(ms))
    hours, rest = divmod(total, 3_600_000)
    minutes, rest = divmod(rest, 60_000)
    seconds, millis = divmod(rest, 1000)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d},{millis:03d}"


def to_srt(segments: list[SubtitleSegment]) -> str:
    """Render segments as SRT file content."""
    return "\n".join(
        f"{i}\n{format_timestamp(s.start_ms)} --> {format_timestamp(s.end_ms)}\n{s.text}\n"
        for i, s in enumerate(segments, start=1)
    )


def write_subtitle_file(text: str, duration_seconds: float, output_path: Path | str) -> Path:
    """Segment ``text`` and write the SRT next to the rendered video.

    Raises:
        SubtitleError: If the text yields no captions.
    """
    segments = segment(text, duration_seconds * 1000)
    if not segments:
        raise SubtitleError("No subtitle segments generated - text is empty")

    path = Path(output_path).with_suffix(".srt")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(to_srt(segments), encoding="utf-8")

    logger.info("subtitle_file_written", path=str(path), segments=len(segments))
    return path
