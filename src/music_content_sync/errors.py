"""Exception hierarchy for music content sync."""

from pathlib import Path


class SyncError(Exception):
    """Base exception for all sync errors."""


class ConfigError(SyncError):
    """Invalid or missing configuration."""


class ExternalToolError(SyncError):
    """An external subprocess (ffprobe) failed."""

    def __init__(self, tool: str, exit_code: int, stderr: str) -> None:
        super().__init__(f"{tool} exited with code {exit_code}: {stderr}")
        self.tool = tool
        self.exit_code = exit_code
        self.stderr = stderr


class ExtractionError(SyncError):
    """Metadata could not be extracted from an audio file."""

    def __init__(self, file: Path, reason: str) -> None:
        super().__init__(f"Failed to extract metadata from {file}: {reason}")
        self.file = file
        self.reason = reason


class UnsupportedFormatError(SyncError):
    """File extension is not in the supported audio set."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"{path} is not a supported audio file")
        self.path = path


class InvalidInputPathError(SyncError):
    """Input path given on the command line does not exist."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"{path} does not exist")
        self.path = path


class MalformedRecordError(SyncError):
    """Front-matter of an existing record cannot be parsed."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Malformed front-matter in {path}: {reason}")
        self.path = path
        self.reason = reason


class BuildStateError(SyncError):
    """Build state file read/write error."""
