"""Sync runner -- walks a file or directory and syncs each audio file."""

from __future__ import annotations

from pathlib import Path

import click
from loguru import logger

from .config import SyncConfig
from .errors import InvalidInputPathError, SyncError, UnsupportedFormatError
from .ffprobe import extract_metadata
from .formats import is_supported_audio_file
from .models import BatchResult, FileOutcome, RecordStatus
from .record import sync_record

log = logger.bind(stage="runner")


def find_audio_files(directory: Path) -> list[Path]:
    """Supported audio files directly inside ``directory``, sorted by name.

    Not recursive: the music folder is flat.
    """
    return sorted(
        (p for p in directory.iterdir() if p.is_file() and is_supported_audio_file(p)),
        key=lambda p: p.name.lower(),
    )


class SyncRunner:
    """Runs extract -> read existing -> staleness -> merge/emit per file."""

    def __init__(
        self,
        config: SyncConfig,
        output_dir: Path | None = None,
    ) -> None:
        self.config = config
        self.output_dir = output_dir or config.content_dir

    def run(self, source_path: Path) -> BatchResult:
        """Sync a single audio file or every audio file in a directory.

        Raises InvalidInputPathError if ``source_path`` doesn't exist.
        Per-file failures are counted in the result, never raised.
        """
        if not source_path.exists():
            raise InvalidInputPathError(source_path)

        result = BatchResult()

        if source_path.is_dir():
            files = find_audio_files(source_path)
            click.echo(f"Found {len(files)} audio files in {source_path}")
            for f in files:
                result.record(self._run_single(f))
        else:
            try:
                self._check_supported(source_path)
            except UnsupportedFormatError as e:
                click.echo(f"  ERROR: {e}")
                log.warning(str(e))
                result.record(
                    FileOutcome(
                        source=source_path,
                        status=RecordStatus.UNSUPPORTED,
                        error=str(e),
                    )
                )
            else:
                result.record(self._run_single(source_path))

        result.total = len(result.outcomes)
        log.info(
            f"Sync complete: total={result.total} written={result.written} "
            f"skipped={result.skipped} failed={result.failed} "
            f"unsupported={result.unsupported}"
        )
        return result

    def _check_supported(self, path: Path) -> None:
        if not is_supported_audio_file(path):
            raise UnsupportedFormatError(path)

    def _run_single(self, audio_file: Path) -> FileOutcome:
        """Sync one audio file. Never raises for per-file problems."""
        click.echo(f"Processing: {audio_file.name}")

        try:
            metadata = extract_metadata(
                audio_file, timeout=self.config.ffprobe_timeout
            )
            if metadata is None:
                click.echo(f"  ERROR: could not read metadata from {audio_file.name}")
                return FileOutcome(
                    source=audio_file,
                    status=RecordStatus.FAILED,
                    error="metadata extraction failed",
                )
            record = sync_record(
                metadata,
                self.output_dir,
                force=self.config.force,
                media_url_prefix=self.config.media_url_prefix,
            )
        except (OSError, SyncError, ValueError) as e:
            click.echo(f"  ERROR: {audio_file.name}: {e}")
            log.opt(exception=True).error(f"Failed to sync record for {audio_file}")
            return FileOutcome(
                source=audio_file,
                status=RecordStatus.FAILED,
                error=str(e),
            )

        if record is None:
            return FileOutcome(source=audio_file, status=RecordStatus.FAILED)
        label = "SKIP" if record.status == RecordStatus.SKIPPED else "WROTE"
        click.echo(f"  {label} {record.path}")
        return FileOutcome(
            source=audio_file,
            status=record.status,
            record_path=record.path,
        )
