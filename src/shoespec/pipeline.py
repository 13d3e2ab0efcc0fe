"""Batch runner: extract, normalize, build rows, write."""

from __future__ import annotations

import logging
import sqlite3
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field

from shoespec.build import ShoeRow, build_shoe_row
from shoespec.core.types import Article, ExtractionResult, Rejection
from shoespec.extraction import ExtractionOrchestrator
from shoespec.normalize import normalize_record
from shoespec.shared.logger import PipelineLogger
from shoespec.shared.metrics import ROWS_WRITTEN
from shoespec.storage import SQLiteStorage

logger = logging.getLogger(__name__)


@dataclass
class PipelineSummary:
    articles: int = 0
    completed: int = 0
    failed: int = 0
    records: int = 0
    rows_written: int = 0
    rejected: int = 0
    warnings: int = 0
    results: list[ExtractionResult] = field(default_factory=list)
    rows: list[ShoeRow] = field(default_factory=list)


def _rows_for(
    result: ExtractionResult, article: Article
) -> tuple[list[ShoeRow], list[str], list[Rejection]]:
    rows: list[ShoeRow] = []
    warnings: list[str] = []
    rejected = list(result.rejected)
    for record in result.records:
        normalized = normalize_record(record)
        warnings.extend(normalized.warnings)
        row = build_shoe_row(normalized.record, article)
        if row is None:
            rejected.append(Rejection.of(normalized.record, "no model key", stage="build"))
        else:
            rows.append(row)
    return rows, warnings, rejected


def _log_rejected(storage: SQLiteStorage, article: Article, rejected: list[Rejection]) -> int:
    # A failed audit write only warns; the article keeps its rows
    try:
        return storage.log_rejected(article, rejected)
    except sqlite3.Error as e:
        logger.warning("Article %s: could not log %d rejected candidates: %s", article.id, len(rejected), e)
        return 0


def run_pipeline(
    articles: list[Article],
    orchestrator: ExtractionOrchestrator,
    storage: SQLiteStorage | None = None,
    dry_run: bool = False,
    workers: int = 1,
    log: PipelineLogger | None = None,
) -> PipelineSummary:
    """Process *articles* and write their rows to *storage*.

    On ``dry_run`` (or without storage) rows are only logged. A failing
    article is recorded in the summary and never stops the run.
    """
    summary = PipelineSummary(articles=len(articles))
    lock = threading.Lock()
    total = len(articles)

    def _process_one(article: Article, index: int) -> None:
        result = orchestrator.extract(article)
        rows, warnings, rejected = _rows_for(result, article)

        written = 0
        if storage is not None and not dry_run:
            with lock:
                if rows:
                    written = storage.upsert_shoes(rows)
                if rejected:
                    _log_rejected(storage, article, rejected)
            orchestrator.metrics.increment(ROWS_WRITTEN, written)

        with lock:
            summary.results.append(result)
            summary.rows.extend(rows)
            summary.records += len(result.records)
            summary.rows_written += written
            summary.rejected += len(rejected)
            summary.warnings += len(warnings) + len(result.warnings)
            if result.ok:
                summary.completed += 1
            else:
                summary.failed += 1

            if log is not None:
                log.progress(index, total, article.title[:60])
                log.article(article.id, result.state, result.method, len(result.records), result.reason)
                for warning in warnings + result.warnings:
                    log.warn(f"{article.id}: {warning}")
                for r in rejected:
                    log.debug(f"{article.id}: rejected {r.brand_name} {r.model} at {r.stage} ({r.reason})")
                if dry_run:
                    for row in rows:
                        log.info(f"  [dry-run] {row.model_key}  {row.to_dict()}")

    n_workers = max(1, workers)
    if n_workers == 1:
        for i, article in enumerate(articles, 1):
            try:
                _process_one(article, i)
            except Exception as exc:
                logger.error("Exception processing article %s: %s", article.id, exc)
                summary.failed += 1
    else:
        with ThreadPoolExecutor(max_workers=n_workers) as executor:
            futures = {
                executor.submit(_process_one, article, i): article
                for i, article in enumerate(articles, 1)
            }
            for future in as_completed(futures):
                exc = future.exception()
                if exc is not None:
                    article = futures[future]
                    logger.error("Exception processing article %s: %s", article.id, exc)
                    with lock:
                        summary.failed += 1

    logger.info(
        "Pipeline finished: %d articles, %d completed, %d failed, %d records, %d rows written, %d rejected",
        summary.articles, summary.completed, summary.failed, summary.records, summary.rows_written,
        summary.rejected,
    )
    return summary
