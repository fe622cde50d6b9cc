"""Core enums, constants, and record types for music content sync.

Enums:
    AudioFormat  -- Container/codec family of a source audio file.
    RecordStatus -- What happened to a content record during a sync.

Types:
    AudioMetadata  -- Fresh ffprobe extraction for one audio file.
    ExistingRecord -- Preserved fields read back from a previous record.
    RecordResult   -- Path + status returned by the record emitter.
    FileOutcome    -- Per-file entry in a batch summary.
    BatchResult    -- Counters for a whole run.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any


class AudioFormat(StrEnum):
    FLAC = "FLAC"
    MP3 = "MP3"
    WAV = "WAV"
    AIFF = "AIFF"
    OGG = "OGG"
    M4A = "M4A"
    AAC = "AAC"
    UNKNOWN = "Unknown"


class RecordStatus(StrEnum):
    WRITTEN = "written"
    SKIPPED = "skipped"
    FAILED = "failed"
    UNSUPPORTED = "unsupported"


FORMAT_MIME_TYPES: dict[AudioFormat, str] = {
    AudioFormat.FLAC: "audio/flac",
    AudioFormat.MP3: "audio/mpeg",
    AudioFormat.WAV: "audio/wav",
    AudioFormat.AIFF: "audio/aiff",
    AudioFormat.OGG: "audio/ogg",
    AudioFormat.M4A: "audio/mp4",
    AudioFormat.AAC: "audio/aac",
}

DEFAULT_MIME_TYPE = "audio/mpeg"

EXTENSION_FORMATS: dict[str, AudioFormat] = {
    ".flac": AudioFormat.FLAC,
    ".mp3": AudioFormat.MP3,
    ".wav": AudioFormat.WAV,
    ".aif": AudioFormat.AIFF,
    ".aiff": AudioFormat.AIFF,
    ".ogg": AudioFormat.OGG,
    ".m4a": AudioFormat.M4A,
    ".aac": AudioFormat.AAC,
}

AUDIO_EXTENSIONS: frozenset[str] = frozenset(EXTENSION_FORMATS)

# Formats where bits_per_sample is meaningless (reported as 0 by ffprobe)
LOSSY_FORMATS: frozenset[AudioFormat] = frozenset(
    {
        AudioFormat.MP3,
        AudioFormat.OGG,
        AudioFormat.M4A,
        AudioFormat.AAC,
    }
)

UNKNOWN_ARTIST = "Unknown Artist"
UNKNOWN_ALBUM = "Unknown Album"
UNKNOWN_GENRE = "Unknown"


@dataclass
class AudioMetadata:
    """Normalized metadata for one audio file, rebuilt on every run."""

    source_path: Path
    filename: str
    title: str
    artist: str = UNKNOWN_ARTIST
    album: str = UNKNOWN_ALBUM
    date: str = ""
    genre: list[str] = field(default_factory=lambda: [UNKNOWN_GENRE])
    track: str = "1"
    file_size: int = 0
    duration: float = 0.0
    bitrate: int = 0
    format: AudioFormat = AudioFormat.UNKNOWN
    mime_type: str = DEFAULT_MIME_TYPE
    extension: str = ""
    sample_rate: int = 0
    channels: int = 2
    bit_depth: int | None = None
    composer: str | None = None
    performer: str | None = None
    comment: str | None = None
    description: str | None = None
    all_tags: dict[str, str] = field(default_factory=dict)


@dataclass
class ExistingRecord:
    """Front-matter of a previously generated record.

    Only the fields the merger preserves are typed; everything else the
    file carried lands in ``extra``.
    """

    date: Any = None
    publish_date: Any = None
    created_date: Any = None
    description: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class RecordResult:
    path: Path
    status: RecordStatus


@dataclass
class FileOutcome:
    source: Path
    status: RecordStatus
    record_path: Path | None = None
    error: str = ""


@dataclass
class BatchResult:
    """Result summary from a sync run."""

    total: int = 0
    written: int = 0
    skipped: int = 0
    failed: int = 0
    unsupported: int = 0
    outcomes: list[FileOutcome] = field(default_factory=list)

    def record(self, outcome: FileOutcome) -> None:
        self.outcomes.append(outcome)
        if outcome.status == RecordStatus.WRITTEN:
            self.written += 1
        elif outcome.status == RecordStatus.SKIPPED:
            self.skipped += 1
        elif outcome.status == RecordStatus.FAILED:
            self.failed += 1
        elif outcome.status == RecordStatus.UNSUPPORTED:
            self.unsupported += 1
