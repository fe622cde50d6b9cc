"""Record merger/emitter -- turn AudioMetadata into a Markdown content record.

Fresh extraction always wins for technical fields. A handful of fields
that people edit by hand (date, publishDate, createdDate, description)
survive regeneration when a previous record exists. Writes are skipped
entirely when the staleness check says the record is current.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date
from pathlib import Path
from typing import Any

from loguru import logger

from .dates import normalize_date
from .frontmatter import dump_front_matter, read_existing_record
from .models import (
    UNKNOWN_ALBUM,
    AudioMetadata,
    ExistingRecord,
    RecordResult,
    RecordStatus,
)
from .sanitize import format_duration, format_file_size, slugify
from .staleness import needs_regeneration

log = logger.bind(stage="record")

PLACEHOLDER_DESCRIPTION = "No description available."
DEFAULT_MEDIA_URL_PREFIX = "/music-files"

DescriptionSource = Callable[[AudioMetadata, ExistingRecord | None], str | None]

# First source returning a non-empty value wins
DESCRIPTION_SOURCES: tuple[tuple[str, DescriptionSource], ...] = (
    ("existing", lambda meta, existing: existing.description if existing else None),
    ("comment", lambda meta, existing: meta.comment),
    ("description", lambda meta, existing: meta.description),
    ("placeholder", lambda meta, existing: PLACEHOLDER_DESCRIPTION),
)


def resolve_description(
    metadata: AudioMetadata, existing: ExistingRecord | None
) -> str:
    for name, source in DESCRIPTION_SOURCES:
        value = source(metadata, existing)
        if value and str(value).strip():
            log.debug(f"description from {name}")
            return str(value)
    return PLACEHOLDER_DESCRIPTION


def format_channels(channels: int) -> str:
    if channels == 2:
        return "Stereo"
    if channels == 1:
        return "Mono"
    return f"{channels} channels"


def _as_date(iso: str) -> date | str:
    # Emitted as a YAML date so the site build sees a real date
    try:
        return date.fromisoformat(iso)
    except ValueError:
        return iso


def record_path_for(metadata: AudioMetadata, output_dir: Path) -> Path:
    return output_dir / f"{slugify(metadata.title)}.md"


def merge_front_matter(
    metadata: AudioMetadata,
    existing: ExistingRecord | None,
    today: date | None = None,
) -> dict[str, Any]:
    """Build the front-matter mapping for a fresh record.

    Preserved from ``existing`` when present: date (re-normalized),
    publishDate and createdDate (verbatim), description (verbatim).
    Everything else comes from ``metadata``.
    """
    if existing is not None and existing.date is not None:
        record_date = normalize_date(existing.date, today=today)
    else:
        record_date = normalize_date(metadata.date, today=today)

    front_matter: dict[str, Any] = {
        "title": metadata.title,
        "artist": metadata.artist,
        "album": metadata.album,
        "date": _as_date(record_date),
        "genre": list(metadata.genre),
        "duration": round(metadata.duration),
        "fileSize": metadata.file_size,
        "filename": metadata.filename,
        "tags": ["music", *(g.lower() for g in metadata.genre)],
        "layout": "music",
        "technical": {
            "sampleRate": metadata.sample_rate,
            "bitDepth": metadata.bit_depth,
            "channels": format_channels(metadata.channels),
            "format": str(metadata.format),
            "mimeType": metadata.mime_type,
            "bitrate": metadata.bitrate,
        },
    }
    if metadata.composer:
        front_matter["composer"] = metadata.composer
    if metadata.performer:
        front_matter["performer"] = metadata.performer

    front_matter["description"] = resolve_description(metadata, existing)

    if existing is None:
        # Separate object, or safe_dump emits an &id anchor/alias pair
        front_matter["createdDate"] = _as_date(record_date)
    else:
        if existing.publish_date is not None:
            front_matter["publishDate"] = existing.publish_date
        if existing.created_date is not None:
            front_matter["createdDate"] = existing.created_date

    return front_matter


def render_body(
    metadata: AudioMetadata,
    front_matter: dict[str, Any],
    media_url_prefix: str = DEFAULT_MEDIA_URL_PREFIX,
    today: date | None = None,
) -> str:
    """Render the Markdown body that follows the front-matter.

    The release date line is left out when the date tag is just the
    current year, which is what extraction fills in when the tag is missing.
    """
    today = today or date.today()
    media_url = f"{media_url_prefix.rstrip('/')}/{metadata.filename}"
    size = format_file_size(metadata.file_size)
    bit_depth = (
        f"{metadata.bit_depth} bit" if metadata.bit_depth else "n/a"
    )

    parts = [f"# {metadata.title}"]
    if metadata.artist:
        parts.append(f"*by {metadata.artist}*")
    parts.append(front_matter["description"])
    parts.append(
        "## Audio Player\n"
        "\n"
        '<div class="music-player">\n'
        '    <div class="music-controls">\n'
        '        <audio controls preload="metadata">\n'
        f'            <source src="{media_url}" type="{metadata.mime_type}">\n'
        "            <p>Your browser doesn't support HTML5 audio. "
        f'<a href="{media_url}">Download the track</a> instead.</p>\n'
        "        </audio>\n"
        "    </div>\n"
        "\n"
        '    <div class="music-info">\n'
        f"        <div><strong>Duration:</strong> {format_duration(metadata.duration)}</div>\n"
        f"        <div><strong>File Size:</strong> {size}</div>\n"
        f"        <div><strong>Sample Rate:</strong> {metadata.sample_rate} Hz</div>\n"
        f"        <div><strong>Bit Depth:</strong> {bit_depth}</div>\n"
        f"        <div><strong>Channels:</strong> {front_matter['technical']['channels']}</div>\n"
        f"        <div><strong>Genre:</strong> {', '.join(metadata.genre)}</div>\n"
        "    </div>\n"
        "\n"
        f'    <a href="{media_url}" class="download-link" download>\n'
        f"        Download {metadata.format} ({size})\n"
        "    </a>\n"
        "</div>"
    )

    details = []
    if metadata.album and metadata.album != UNKNOWN_ALBUM:
        details.append(f"**Album:** {metadata.album}")
    if metadata.date.strip() != str(today.year):
        details.append(f"**Release Date:** {front_matter['date']}")
    if metadata.composer:
        details.append(f"**Composer:** {metadata.composer}")
    if metadata.performer:
        details.append(f"**Performer:** {metadata.performer}")
    if details:
        parts.append("## Album Information\n\n" + "\n\n".join(details))

    return "\n\n".join(parts) + "\n"


def _warn_on_collision(
    metadata: AudioMetadata, existing: ExistingRecord | None, path: Path
) -> None:
    # Two tracks whose titles slugify the same share one record
    if existing is None:
        return
    owner = existing.extra.get("filename")
    if owner and str(owner) != metadata.filename:
        log.warning(
            f"{path.name} belongs to {owner}, not {metadata.filename} "
            f"(titles collide on the same slug)"
        )


def sync_record(
    metadata: AudioMetadata | None,
    output_dir: Path,
    force: bool = False,
    media_url_prefix: str = DEFAULT_MEDIA_URL_PREFIX,
    today: date | None = None,
) -> RecordResult | None:
    """Write (or skip) the content record for one extracted file.

    Returns None when ``metadata`` is None (extraction failed upstream).
    Returns SKIPPED with the existing path when the record is newer than
    its audio file and ``force`` is off. Write errors propagate.
    """
    if metadata is None:
        return None

    path = record_path_for(metadata, output_dir)
    stale = needs_regeneration(metadata.source_path, path, force=force)
    existing = read_existing_record(path)
    _warn_on_collision(metadata, existing, path)

    if not stale:
        log.info(f"Up to date: {path.name}")
        return RecordResult(path=path, status=RecordStatus.SKIPPED)

    front_matter = merge_front_matter(metadata, existing, today=today)
    body = render_body(metadata, front_matter, media_url_prefix, today=today)

    output_dir.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_front_matter(front_matter, body), encoding="utf-8")

    action = "Regenerated" if existing is not None else "Generated"
    log.info(f"{action}: {path}")
    return RecordResult(path=path, status=RecordStatus.WRITTEN)
