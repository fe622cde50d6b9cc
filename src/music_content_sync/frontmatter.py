"""Front-matter split/parse/dump for Markdown content records.

A record is ``---``, a YAML mapping, ``---``, then a Markdown body.
Only the front-matter is read back; the body is regenerated every time.
"""

from pathlib import Path
from typing import Any

import yaml
from loguru import logger

from .errors import MalformedRecordError
from .models import ExistingRecord

log = logger.bind(stage="frontmatter")

DELIMITER = "---"


def split_front_matter(text: str) -> tuple[str | None, str]:
    """Split a document into (front-matter text, body).

    Returns (None, text) when the document doesn't open with a
    ``---`` line or the closing delimiter is missing.
    """
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].strip() != DELIMITER:
        return None, text
    for i, line in enumerate(lines[1:], start=1):
        if line.strip() == DELIMITER:
            return "".join(lines[1:i]), "".join(lines[i + 1:])
    return None, text


def parse_front_matter(path: Path, text: str) -> dict[str, Any]:
    """Parse the front-matter block of ``text`` into a mapping.

    Raises MalformedRecordError for missing delimiters, invalid YAML,
    or YAML that isn't a mapping.
    """
    block, _ = split_front_matter(text)
    if block is None:
        raise MalformedRecordError(path, "no front-matter block")
    try:
        data = yaml.safe_load(block)
    except yaml.YAMLError as e:
        raise MalformedRecordError(path, str(e)) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise MalformedRecordError(
            path, f"front-matter is {type(data).__name__}, not a mapping"
        )
    return data


def to_existing_record(data: dict[str, Any]) -> ExistingRecord:
    extra = dict(data)
    description = extra.pop("description", None)
    return ExistingRecord(
        date=extra.pop("date", None),
        publish_date=extra.pop("publishDate", None),
        created_date=extra.pop("createdDate", None),
        description=str(description) if description is not None else None,
        extra=extra,
    )


def read_existing_record(path: Path) -> ExistingRecord | None:
    """Read the preserved fields of a previously generated record.

    Missing file -> None. Malformed front-matter is logged and also
    treated as None so the record is simply regenerated. Never writes.
    """
    if not path.is_file():
        return None
    try:
        data = parse_front_matter(path, path.read_text(encoding="utf-8"))
    except MalformedRecordError as e:
        log.warning(f"{e}; treating as new record")
        return None
    except UnicodeDecodeError as e:
        log.warning(f"Cannot decode {path}: {e}; treating as new record")
        return None
    log.debug(f"Read existing record {path.name} ({len(data)} keys)")
    return to_existing_record(data)


def dump_front_matter(front_matter: dict[str, Any], body: str) -> str:
    """Serialize a record document, keeping key insertion order."""
    block = yaml.safe_dump(
        front_matter,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )
    return f"{DELIMITER}\n{block}{DELIMITER}\n\n{body}"
