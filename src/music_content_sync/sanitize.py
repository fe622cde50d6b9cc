"""Slug generation, display formatting, and content hashing."""

import hashlib
import re

from loguru import logger

log = logger.bind(stage="sanitize")


def slugify(title: str) -> str:
    """Turn a track title into a URL-safe record slug.

    Lowercases, collapses every run of non [a-z0-9] characters into a
    single hyphen, and trims hyphens from both ends. Titles with no
    usable characters get "untitled".
    """
    slug = re.sub(r"[^a-z0-9]+", "-", title.lower())
    slug = slug.strip("-")
    if not slug:
        log.debug(f"Empty slug for title={title!r}, using 'untitled'")
        return "untitled"
    return slug


def format_duration(seconds: float | None) -> str:
    """Convert seconds to M:SS."""
    if not seconds:
        return "0:00"
    total = int(seconds)
    return f"{total // 60}:{total % 60:02d}"


def format_file_size(size: int | None) -> str:
    """Convert a byte count to megabytes with one decimal."""
    if not size:
        return "0 B"
    return f"{size / (1024 * 1024):.1f} MB"


def content_hash(text: str) -> str:
    """sha256 hex digest of a text payload."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()
