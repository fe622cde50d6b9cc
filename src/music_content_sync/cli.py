"""CLI entry point for music content sync."""

import os
from pathlib import Path

import click
from loguru import logger

from .config import SyncConfig
from .errors import InvalidInputPathError
from .runner import SyncRunner

log = logger.bind(stage="cli")

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}

USAGE_EXAMPLES = """\
Examples:
  music-content-sync song.flac
  music-content-sync ./music-files/
  music-content-sync song.flac ./src/content/music/"""


def _find_config_file() -> Path | None:
    """Look for .env next to the package or in cwd."""
    pkg_dir = Path(__file__).resolve().parent
    for candidate in [
        pkg_dir.parent.parent / ".env",  # dev: src/../.env
        Path.cwd() / ".env",
    ]:
        if candidate.is_file():
            return candidate
    return None


def _load_env_file(env_file: Path) -> None:
    """Load a shell-style .env file into os.environ (without overriding)."""
    for line in env_file.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, _, value = line.partition("=")
        key = key.strip()
        value = value.strip()
        # Strip quotes
        if (value.startswith('"') and value.endswith('"')) or (
            value.startswith("'") and value.endswith("'")
        ):
            value = value[1:-1]
        # Skip bash variable expansions like ${VAR:-default}
        if "${" in value:
            continue
        # Don't override existing env vars (CLI > env > file)
        if key not in os.environ:
            os.environ[key] = value


@click.command(context_settings=CONTEXT_SETTINGS, epilog="\b\n" + USAGE_EXAMPLES)
@click.argument("source_path", required=False)
@click.argument("output_dir", required=False)
@click.option(
    "-f", "--force", is_flag=True, help="Regenerate records even if up to date."
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(exists=True),
    default=None,
    help="Path to .env file.",
)
@click.pass_context
def main(
    ctx: click.Context,
    source_path: str | None,
    output_dir: str | None,
    force: bool,
    verbose: bool,
    config_file: str | None,
) -> None:
    """Generate Markdown content records from audio file metadata.

    SOURCE_PATH is an audio file or a directory of audio files.
    OUTPUT_DIR defaults to the configured content directory.
    """
    if not source_path:
        click.echo(ctx.get_usage())
        click.echo("")
        click.echo(USAGE_EXAMPLES)
        ctx.exit(1)

    source = Path(source_path)
    if not source.exists():
        click.echo(f"Error: {source} does not exist", err=True)
        ctx.exit(1)

    env_file = Path(config_file) if config_file else _find_config_file()
    if env_file and env_file.is_file():
        _load_env_file(env_file)
        log.debug(f"Loaded env from {env_file}")
    else:
        log.debug("No .env found")

    # Pass CLI flags as kwargs to avoid env pollution
    config_kwargs: dict[str, bool | str] = {
        "force": force,
        "verbose": verbose,
    }
    if verbose:
        config_kwargs["log_level"] = "DEBUG"
    config = SyncConfig(**config_kwargs)  # type: ignore[arg-type]
    config.setup_logging()

    runner = SyncRunner(
        config=config,
        output_dir=Path(output_dir) if output_dir else None,
    )

    log.info(f"Starting sync: source={source} force={force}")
    try:
        result = runner.run(source)
    except InvalidInputPathError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    click.echo(
        f"\nProcessing complete: {result.written} written, "
        f"{result.skipped} up to date, {result.failed} failed"
        + (f", {result.unsupported} unsupported" if result.unsupported else "")
    )
