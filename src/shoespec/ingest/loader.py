"""Article loading from local JSONL / JSON / CSV exports."""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Any, Iterator

from shoespec.core.types import Article
from shoespec.core.units import norm_str

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".jsonl", ".json", ".csv")

_ALIASES = {
    "id": ("id", "article_id"),
    "content": ("content", "body"),
    "source_link": ("source_link", "link"),
}


class SourceError(Exception):
    """The article source could not be read."""


def _get(row: dict[str, Any], name: str) -> str | None:
    for key in _ALIASES.get(name, (name,)):
        value = norm_str(row.get(key))
        if value is not None:
            return value
    return None


def _iter_rows(path: Path) -> Iterator[dict[str, Any]]:
    suffix = path.suffix.lower()
    with path.open("r", encoding="utf-8", newline="") as f:
        if suffix == ".jsonl":
            for lineno, line in enumerate(f, 1):
                if not line.strip():
                    continue
                try:
                    yield json.loads(line)
                except json.JSONDecodeError as e:
                    raise SourceError(f"{path}:{lineno}: invalid JSON: {e}") from e
        elif suffix == ".json":
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise SourceError(f"{path}: invalid JSON: {e}") from e
            if not isinstance(data, list):
                raise SourceError(f"{path}: expected a JSON list of articles")
            yield from data
        else:
            yield from csv.DictReader(f)


def load_articles(path: str | Path, limit: int | None = None) -> list[Article]:
    """Read articles from *path*.

    Rows without a title or content are skipped. Rows without an id get
    their 1-based row number.

    Raises:
        SourceError: If the file is missing, has an unsupported extension,
            or is not valid JSON.
    """
    path = Path(path)
    if path.suffix.lower() not in SUPPORTED_SUFFIXES:
        raise SourceError(f"Unsupported article source {path.name}; expected one of {SUPPORTED_SUFFIXES}")
    if not path.is_file():
        raise SourceError(f"Article source not found: {path}")

    articles: list[Article] = []
    skipped = 0
    for index, row in enumerate(_iter_rows(path), 1):
        if limit is not None and len(articles) >= limit:
            break
        if not isinstance(row, dict):
            skipped += 1
            continue
        title = _get(row, "title")
        content = _get(row, "content")
        if not title or not content:
            skipped += 1
            logger.debug("Skipping row %d of %s: missing title or content", index, path.name)
            continue
        articles.append(Article(
            id=_get(row, "id") or str(index),
            title=title,
            content=content,
            date=_get(row, "date"),
            source_link=_get(row, "source_link"),
        ))

    if skipped:
        logger.info("Skipped %d rows without title or content in %s", skipped, path.name)
    logger.info("Loaded %d articles from %s", len(articles), path)
    return articles
