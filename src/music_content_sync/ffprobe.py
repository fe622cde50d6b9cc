"""FFprobe subprocess wrapper and tag normalization for audio files."""

import json
import math
import re
import subprocess
from datetime import date
from pathlib import Path
from typing import Any

from loguru import logger

from .errors import ExternalToolError, ExtractionError
from .formats import detect_format
from .models import (
    LOSSY_FORMATS,
    UNKNOWN_ALBUM,
    UNKNOWN_ARTIST,
    UNKNOWN_GENRE,
    AudioMetadata,
)

log = logger.bind(stage="ffprobe")

DEFAULT_TIMEOUT = 5.0


def probe(file: Path, timeout: float = DEFAULT_TIMEOUT) -> dict[str, Any]:
    """Run ffprobe and return its parsed JSON (format + streams).

    Raises ExtractionError if ffprobe is missing, times out, exits
    non-zero, or prints something that isn't a JSON object.
    """
    cmd = [
        "ffprobe", "-v", "quiet",
        "-print_format", "json",
        "-show_format", "-show_streams",
        str(file),
    ]
    log.debug(f"probe file={file} timeout={timeout}")
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise ExtractionError(file, "ffprobe not found on PATH") from e
    except subprocess.TimeoutExpired as e:
        raise ExtractionError(file, f"ffprobe timed out after {timeout}s") from e

    if result.returncode != 0:
        err = ExternalToolError("ffprobe", result.returncode, result.stderr.strip())
        raise ExtractionError(file, str(err)) from err

    try:
        data = json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise ExtractionError(file, f"unparsable ffprobe output: {e}") from e
    if not isinstance(data, dict):
        raise ExtractionError(file, "ffprobe output is not a JSON object")
    return data


def normalize_tags(raw: dict[str, Any] | None) -> dict[str, str]:
    """Lowercase tag keys. Later duplicates (TITLE vs title) win."""
    if not raw:
        return {}
    return {str(k).lower(): str(v) for k, v in raw.items()}


def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default


def _to_float(value: Any, default: float = 0.0) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    return result if math.isfinite(result) else default


def _first_tag(tags: dict[str, str], *keys: str) -> str:
    for key in keys:
        value = tags.get(key, "").strip()
        if value:
            return value
    return ""


def split_genres(raw: str) -> list[str]:
    """Split "Electronic, Ambient; IDM" into a trimmed list."""
    genres = [g.strip() for g in re.split(r"[,;]", raw or "")]
    genres = [g for g in genres if g]
    return genres or [UNKNOWN_GENRE]


def _audio_stream(data: dict[str, Any]) -> dict[str, Any]:
    streams = data.get("streams") or []
    for stream in streams:
        if isinstance(stream, dict) and stream.get("codec_type") == "audio":
            return stream
    if streams and isinstance(streams[0], dict):
        return streams[0]
    return {}


def parse_probe_output(file: Path, data: dict[str, Any]) -> AudioMetadata:
    """Build an AudioMetadata from ffprobe JSON for ``file``."""
    fmt_info = data.get("format") or {}
    stream = _audio_stream(data)
    tags = normalize_tags(fmt_info.get("tags"))
    # Some containers (ogg) carry tags on the stream instead
    for key, value in normalize_tags(stream.get("tags")).items():
        tags.setdefault(key, value)

    codec_name = str(stream.get("codec_name") or "")
    audio_format, mime_type = detect_format(file, codec_name)

    bit_depth: int | None = _to_int(stream.get("bits_per_sample")) or _to_int(
        stream.get("bits_per_raw_sample")
    )
    if not bit_depth:
        bit_depth = None if audio_format in LOSSY_FORMATS else 16

    file_size = _to_int(fmt_info.get("size"))
    if not file_size and file.is_file():
        file_size = file.stat().st_size

    channels = _to_int(stream.get("channels"), default=2) or 2

    return AudioMetadata(
        source_path=file,
        filename=file.name,
        file_size=file_size,
        duration=_to_float(fmt_info.get("duration")),
        bitrate=_to_int(fmt_info.get("bit_rate")),
        format=audio_format,
        mime_type=mime_type,
        extension=file.suffix.lower(),
        sample_rate=_to_int(stream.get("sample_rate")),
        channels=channels,
        bit_depth=bit_depth,
        title=_first_tag(tags, "title") or file.stem,
        artist=_first_tag(tags, "artist", "albumartist", "album_artist")
        or UNKNOWN_ARTIST,
        album=_first_tag(tags, "album") or UNKNOWN_ALBUM,
        date=_first_tag(tags, "date", "year") or str(date.today().year),
        genre=split_genres(tags.get("genre", "")),
        track=_first_tag(tags, "track", "tracknumber") or "1",
        composer=_first_tag(tags, "composer") or None,
        performer=_first_tag(tags, "performer") or None,
        comment=_first_tag(tags, "comment") or None,
        description=_first_tag(tags, "description") or None,
        all_tags=tags,
    )


def extract_metadata(
    file: Path, timeout: float = DEFAULT_TIMEOUT
) -> AudioMetadata | None:
    """Probe ``file`` and normalize its tags.

    Returns None (after logging) when ffprobe fails, so one broken file
    never stops a batch.
    """
    try:
        data = probe(file, timeout=timeout)
    except ExtractionError as e:
        log.error(str(e))
        return None
    metadata = parse_probe_output(file, data)
    log.debug(
        f"Extracted {file.name}: title={metadata.title!r} "
        f"artist={metadata.artist!r} format={metadata.format}"
    )
    return metadata
