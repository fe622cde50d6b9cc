"""Catalog of generated records -- search index and feed data.

Both outputs are deterministic for a given set of records: entries are
sorted, JSON keys are sorted, and the feed's lastBuildDate comes from a
build state store so it only moves when the feed items change.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from loguru import logger

from .build_state import BuildStateStore, stable_last_modified
from .dates import parse_date
from .errors import MalformedRecordError
from .frontmatter import parse_front_matter, split_front_matter

log = logger.bind(stage="catalog")

EXCERPT_LENGTH = 160
DEFAULT_URL_PREFIX = "/music/"


@dataclass
class CatalogEntry:
    slug: str
    title: str
    artist: str = ""
    album: str = ""
    date: str = ""
    genre: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    description: str = ""
    body: str = ""


def strip_markup(text: str) -> str:
    """Plain text from a Markdown/HTML body, whitespace collapsed."""
    text = re.sub(r"<[^>]*>", " ", text)
    text = re.sub(r"^#{1,6}\s*", "", text, flags=re.MULTILINE)
    text = re.sub(r"[*_]{1,2}([^*_]+)[*_]{1,2}", r"\1", text)
    return re.sub(r"\s+", " ", text).strip()


def make_excerpt(text: str, length: int = EXCERPT_LENGTH) -> str:
    if len(text) <= length:
        return text
    cut = text[:length]
    if " " in cut:
        cut = cut.rsplit(" ", 1)[0]
    return cut.rstrip(" ,.;:") + "..."


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return [str(value)]


def load_entry(path: Path) -> CatalogEntry:
    """Read one record file. Raises MalformedRecordError."""
    text = path.read_text(encoding="utf-8")
    data = parse_front_matter(path, text)
    _, body = split_front_matter(text)
    return CatalogEntry(
        slug=path.stem,
        title=str(data.get("title") or path.stem),
        artist=str(data.get("artist") or ""),
        album=str(data.get("album") or ""),
        date=parse_date(data.get("date")) or "",
        genre=_as_list(data.get("genre")),
        tags=_as_list(data.get("tags")),
        description=str(data.get("description") or ""),
        body=body,
    )


def load_catalog(content_dir: Path) -> list[CatalogEntry]:
    """Every record in ``content_dir``, newest first, ties by slug."""
    entries: list[CatalogEntry] = []
    if not content_dir.is_dir():
        log.warning(f"Content directory not found: {content_dir}")
        return entries
    for path in sorted(content_dir.glob("*.md")):
        try:
            entries.append(load_entry(path))
        except (MalformedRecordError, UnicodeDecodeError) as e:
            log.warning(f"Skipping {path.name}: {e}")
    entries.sort(key=lambda e: e.slug)
    entries.sort(key=lambda e: e.date, reverse=True)
    log.debug(f"Loaded {len(entries)} records from {content_dir}")
    return entries


def entry_url(entry: CatalogEntry, url_prefix: str = DEFAULT_URL_PREFIX) -> str:
    return f"{url_prefix.rstrip('/')}/{entry.slug}/"


def build_search_index(
    entries: list[CatalogEntry], url_prefix: str = DEFAULT_URL_PREFIX
) -> dict[str, list[dict[str, Any]]]:
    documents = []
    for entry in entries:
        content = strip_markup(entry.body)
        documents.append(
            {
                "id": f"music-{entry.slug}",
                "title": entry.title,
                "content": content,
                "excerpt": make_excerpt(strip_markup(entry.description) or content),
                "tags": entry.tags,
                "type": "music",
                "url": entry_url(entry, url_prefix),
                "artist": entry.artist,
                "genre": entry.genre,
            }
        )
    return {"documents": documents}


def build_feed(
    entries: list[CatalogEntry],
    store: BuildStateStore,
    key: str = "music-feed",
    title: str = "Music",
    limit: int = 20,
    url_prefix: str = DEFAULT_URL_PREFIX,
) -> dict[str, Any]:
    """Feed data for the newest ``limit`` entries.

    lastBuildDate is looked up in ``store`` and only changes when the
    serialized items change.
    """
    items = [
        {
            "id": f"music-{entry.slug}",
            "title": entry.title,
            "url": entry_url(entry, url_prefix),
            "date": entry.date,
            "artist": entry.artist,
            "description": entry.description,
        }
        for entry in entries[:limit]
    ]
    payload = json.dumps(items, sort_keys=True, ensure_ascii=False)
    last_build = stable_last_modified(store, key, payload)
    return {
        "title": title,
        "items": items,
        "lastBuildDate": last_build.isoformat(),
    }


def write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False) + "\n",
        encoding="utf-8",
    )
