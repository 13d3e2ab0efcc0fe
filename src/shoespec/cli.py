"""Command-line entry point: ``shoespec-extract``."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict, replace
from pathlib import Path

from shoespec.config import Settings
from shoespec.extraction import ExtractionOrchestrator, get_extraction_config
from shoespec.ingest import SourceError, load_articles
from shoespec.pipeline import PipelineSummary, run_pipeline
from shoespec.shared.llm import LLMGateway, get_provider
from shoespec.shared.logger import PipelineLogger
from shoespec.shared.metrics import PipelineMetrics
from shoespec.storage import SQLiteStorage


def _write_output(path: Path, summary: PipelineSummary) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        for result in summary.results:
            f.write(json.dumps({
                "article_id": result.article_id,
                "state": result.state,
                "method": result.method,
                "scenario": result.title_analysis.scenario if result.title_analysis else None,
                "reason": result.reason,
                "records": [r.to_dict() for r in result.records],
                "coverage": result.coverage.to_dict(),
                "warnings": result.warnings,
                "rejected": [asdict(r) for r in result.rejected],
            }) + "\n")


def _build_gateway(settings: Settings, metrics: PipelineMetrics, log: PipelineLogger) -> LLMGateway | None:
    if not settings.llm_available:
        if settings.disable_llm:
            log.info("LLM fallback:         disabled")
        else:
            log.warn("ANTHROPIC_API_KEY not set, running pattern extraction only")
        return None
    provider = get_provider("anthropic", api_key=settings.anthropic_api_key)
    log.info(f"LLM fallback:         {provider.name}/{settings.llm_model} "
             f"(concurrency={settings.llm_concurrency})")
    return LLMGateway(
        provider,
        model=settings.llm_model,
        concurrency=settings.llm_concurrency,
        cache_ttl=settings.llm_cache_ttl,
        metrics=metrics,
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Extract running shoe specifications from articles.",
    )
    parser.add_argument("--input", required=True, type=Path,
                        help="Articles as .jsonl, .json or .csv")
    parser.add_argument("--db", type=Path, default=None,
                        help="SQLite database (default: $SHOESPEC_DB_PATH or shoespec.db)")
    parser.add_argument("--limit", type=int, default=None)
    parser.add_argument("--dry-run", action="store_true",
                        help="Log rows instead of writing them")
    parser.add_argument("--workers", type=int, default=1,
                        help="Articles processed in parallel")
    parser.add_argument("--disable-llm", action="store_true")
    parser.add_argument("--model", type=str, default=None,
                        help="LLM model name or alias (default: $SHOESPEC_LLM_MODEL or haiku)")
    parser.add_argument("--config", type=str, default="default",
                        help="Extraction preset: default, regex_only, strict_roundups")
    parser.add_argument("--log-file", type=Path, default=None,
                        help="INFO+ log file (readable summary)")
    parser.add_argument("--trace-file", type=Path, default=None,
                        help="TRACE+ log file (full detail, every line)")
    parser.add_argument("--output", type=Path, default=None,
                        help="Write per-article results as JSONL")

    args = parser.parse_args(argv)

    settings = Settings.from_env()
    if args.disable_llm:
        settings = replace(settings, disable_llm=True)
    if args.model:
        settings = replace(settings, llm_model=args.model)
    db_path = args.db or settings.db_path

    try:
        config = get_extraction_config(args.config)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    log = PipelineLogger(
        log_file=args.log_file,
        trace_file=args.trace_file,
        console=True,
        min_level="INFO",
    )
    log.install_stdlib_bridge(root_logger="shoespec", level=10)
    log.install_stdlib_bridge(root_logger="", level=30)

    log.section("shoespec extraction")
    log.info(f"Input:                {args.input}")
    log.info(f"Database:             {'(dry run)' if args.dry_run else db_path}")
    log.info(f"Extraction config:    {config.name}")
    log.info(f"Workers:              {max(1, args.workers)}")

    try:
        articles = load_articles(args.input, limit=args.limit)
    except SourceError as e:
        log.error(str(e))
        log.close()
        return 1

    if not articles:
        log.warn(f"No articles found in {args.input}")
        log.close()
        return 0
    log.metric("articles_found", len(articles))

    metrics = PipelineMetrics()
    gateway = _build_gateway(settings, metrics, log)
    orchestrator = ExtractionOrchestrator(gateway=gateway, config=config, metrics=metrics)

    storage = None
    if not args.dry_run:
        storage = SQLiteStorage(str(db_path))
        storage.create_tables()

    log.section(f"Processing {len(articles)} articles")
    with log.timer("total_extraction"):
        summary = run_pipeline(
            articles,
            orchestrator,
            storage=storage,
            dry_run=args.dry_run,
            workers=args.workers,
            log=log,
        )

    if args.output:
        _write_output(args.output, summary)
        log.info(f"Results written to {args.output}")

    log.section("Extraction Summary")
    log.metric("articles_total", summary.articles)
    log.metric("articles_completed", summary.completed)
    log.metric("articles_failed", summary.failed)
    log.metric("records_total", summary.records)
    log.metric("rows_written", summary.rows_written)
    log.metric("candidates_rejected", summary.rejected)
    log.metric("warnings", summary.warnings)
    metrics.report(log)
    if gateway is not None:
        log.metric("llm_cache_entries", gateway.cache_size)
    if storage is not None:
        log.metric("shoes_in_db", storage.get_shoe_count())
        log.metric("rejected_in_db", storage.get_rejected_count())

    log.summary()
    log.close()
    return 1 if summary.failed and not summary.completed else 0


if __name__ == "__main__":
    sys.exit(main())
