"""Decide whether a content record must be regenerated."""

from pathlib import Path

from loguru import logger

log = logger.bind(stage="staleness")


def needs_regeneration(
    audio_path: Path, record_path: Path, force: bool = False
) -> bool:
    """True if ``record_path`` should be (re)written from ``audio_path``.

    Forced runs always regenerate. A missing record is always generated.
    Otherwise only an audio file strictly newer than its record counts.
    """
    if force:
        return True
    if not record_path.exists():
        return True
    audio_mtime = audio_path.stat().st_mtime
    record_mtime = record_path.stat().st_mtime
    stale = audio_mtime > record_mtime
    log.debug(
        f"{audio_path.name}: audio_mtime={audio_mtime} "
        f"record_mtime={record_mtime} stale={stale}"
    )
    return stale
