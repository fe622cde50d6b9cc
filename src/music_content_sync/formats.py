"""Audio format detection by extension, with codec-name fallback."""

from pathlib import Path

from .models import (
    AUDIO_EXTENSIONS,
    DEFAULT_MIME_TYPE,
    EXTENSION_FORMATS,
    FORMAT_MIME_TYPES,
    AudioFormat,
)

# Checked in order; first substring found in the codec name wins
_CODEC_FORMATS: tuple[tuple[str, AudioFormat], ...] = (
    ("flac", AudioFormat.FLAC),
    ("mp3", AudioFormat.MP3),
    ("aac", AudioFormat.AAC),
    ("pcm", AudioFormat.WAV),
    ("vorbis", AudioFormat.OGG),
)


def _format_from_codec(codec_name: str) -> AudioFormat:
    codec = codec_name.lower()
    for needle, fmt in _CODEC_FORMATS:
        if needle not in codec:
            continue
        # pcm_s16be, pcm_s24be... are the AIFF sample layouts
        if fmt == AudioFormat.WAV and codec.endswith("be"):
            return AudioFormat.AIFF
        return fmt
    return AudioFormat.UNKNOWN


def detect_format(
    path: Path | str, codec_name: str | None = None
) -> tuple[AudioFormat, str]:
    """Classify a file into (format, MIME type).

    The extension decides when it is one we know. Otherwise the ffprobe
    codec name is searched for a known substring. Unknown files get
    AudioFormat.UNKNOWN and the audio/mpeg MIME type.
    """
    ext = Path(path).suffix.lower()
    fmt = EXTENSION_FORMATS.get(ext)
    if fmt is None and codec_name:
        fmt = _format_from_codec(codec_name)
    if fmt is None or fmt == AudioFormat.UNKNOWN:
        return AudioFormat.UNKNOWN, DEFAULT_MIME_TYPE
    return fmt, FORMAT_MIME_TYPES[fmt]


def is_supported_audio_file(path: Path | str) -> bool:
    """True if the file extension is one we can turn into a record."""
    return Path(path).suffix.lower() in AUDIO_EXTENSIONS
