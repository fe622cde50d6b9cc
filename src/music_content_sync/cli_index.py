"""CLI entry point for the search index and feed data (music-content-index)."""

from __future__ import annotations

from pathlib import Path

import click
from loguru import logger

from .build_state import JsonBuildStateStore
from .catalog import build_feed, build_search_index, load_catalog, write_json
from .config import SyncConfig
from .errors import BuildStateError

log = logger.bind(stage="index-cli")


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("content_dir", required=False, type=click.Path(file_okay=False))
@click.argument("output_dir", required=False, type=click.Path(file_okay=False))
@click.option(
    "--state-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Build state JSON used to keep lastBuildDate stable.",
)
@click.option("--url-prefix", default="/music/", help="URL prefix for record pages.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def main(
    content_dir: str | None,
    output_dir: str | None,
    state_file: str | None,
    url_prefix: str,
    verbose: bool,
) -> None:
    """Write search.json and music-feed.json from generated records."""
    config_kwargs: dict[str, str] = {}
    if verbose:
        config_kwargs["log_level"] = "DEBUG"
    config = SyncConfig(**config_kwargs)  # type: ignore[arg-type]
    config.setup_logging()

    source = Path(content_dir) if content_dir else config.content_dir
    target = Path(output_dir) if output_dir else Path("public")
    store = JsonBuildStateStore(Path(state_file) if state_file else config.state_file)

    entries = load_catalog(source)
    click.echo(f"Indexing {len(entries)} records from {source}")

    write_json(target / "search.json", build_search_index(entries, url_prefix))
    try:
        feed = build_feed(entries, store, url_prefix=url_prefix)
    except BuildStateError as e:
        raise click.ClickException(str(e)) from e
    write_json(target / "music-feed.json", feed)

    click.echo(f"Wrote {target / 'search.json'} and {target / 'music-feed.json'}")
    log.info(f"Index written: {len(entries)} records, lastBuildDate={feed['lastBuildDate']}")
