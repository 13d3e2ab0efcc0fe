"""Per-article extraction orchestration.

Flow for one article::

    title ──► analyze_title ──► irrelevant? ──► done (0 records)
                   │
    general title, no shoe or brand in content? ──► done (0 records)
                   │
    content ──► extract_with_patterns ──► title filter
                   │
          too few? ──► extract_with_llm (replace)       method=llm
          specific with gaps? ──► extract_with_llm + hybrid_merge   method=hybrid
                   │
        postprocess ──► validate ──► dedupe ──► coverage
"""

from __future__ import annotations

import logging

from shoespec.core.taxonomy import Taxonomy, get_taxonomy
from shoespec.core.types import (
    HYBRID_TEXT_FIELDS,
    Article,
    ExtractionResult,
    Method,
    Rejection,
    SpecRecord,
    TitleAnalysis,
)
from shoespec.shared.llm import LLMGateway, LLMServiceError
from shoespec.shared.metrics import (
    ARTICLES_FAILED,
    ARTICLES_PROCESSED,
    ARTICLES_SKIPPED,
    HYBRID_MERGES,
    LLM_FALLBACKS,
    RECORDS_EXTRACTED,
    REGEX_SUCCESSES,
    PipelineMetrics,
)

from .config import ExtractionConfig
from .hybrid import hybrid_merge
from .llm import extract_with_llm
from .pattern import extract_with_patterns
from .postprocess import apply_postprocess, compute_coverage, dedupe_records, validate_records
from .title_analysis import analyze_title, is_running_shoe_article, matches_brand, matches_title_analysis

logger = logging.getLogger(__name__)

ROUNDUP_SCENARIOS = ("brand-only", "general")
FOCUSED_SCENARIOS = ("brand-only", "specific")


class ExtractionOrchestrator:
    """Runs the extraction flow for one article at a time.

    Instances hold no per-article state, so one orchestrator can serve
    many worker threads. The gateway is optional; without it (or with
    ``config.enable_llm`` off) pattern results are always kept.
    """

    def __init__(
        self,
        gateway: LLMGateway | None = None,
        config: ExtractionConfig | None = None,
        taxonomy: Taxonomy | None = None,
        metrics: PipelineMetrics | None = None,
    ) -> None:
        self.gateway = gateway
        self.config = config or ExtractionConfig()
        self.taxonomy = taxonomy or get_taxonomy()
        self.metrics = metrics or (gateway.metrics if gateway else PipelineMetrics())

    @property
    def llm_enabled(self) -> bool:
        return self.gateway is not None and self.config.enable_llm

    def extract(self, article: Article) -> ExtractionResult:
        """Extract spec records from *article*. Never raises."""
        try:
            result = self._extract(article)
        except LLMServiceError as e:
            logger.error("Article %s: LLM fallback failed: %s", article.id, e)
            result = ExtractionResult(
                article_id=article.id,
                method="llm",
                state="failed",
                reason=f"llm service error: {e}",
            )
        except Exception as e:
            logger.exception("Article %s: extraction crashed", article.id)
            result = ExtractionResult(
                article_id=article.id,
                state="failed",
                reason=f"{type(e).__name__}: {e}",
            )

        if result.ok:
            self.metrics.increment(ARTICLES_PROCESSED)
            self.metrics.increment(RECORDS_EXTRACTED, len(result.records))
        else:
            self.metrics.increment(ARTICLES_FAILED)
        return result

    def _needs_fallback(self, records: list[SpecRecord], analysis: TitleAnalysis) -> bool:
        if not records:
            return True
        if analysis.scenario in ROUNDUP_SCENARIOS:
            return len(records) < self.config.roundup_min_candidates
        if analysis.scenario == "specific":
            return len(records) < self.config.specific_min_candidates
        return False

    def _needs_hybrid(self, records: list[SpecRecord], analysis: TitleAnalysis) -> bool:
        if analysis.scenario != "specific" or not self.config.enable_hybrid:
            return False
        return any(
            getattr(record, name) is None for record in records for name in HYBRID_TEXT_FIELDS
        )

    def _skip(self, article: Article, analysis: TitleAnalysis, why: str) -> ExtractionResult:
        self.metrics.increment(ARTICLES_SKIPPED)
        logger.info("Article %s: skipped, %s", article.id, why)
        return ExtractionResult(
            article_id=article.id,
            title_analysis=analysis,
            coverage=compute_coverage([]),
            reason="non-product article",
        )

    def _extract(self, article: Article) -> ExtractionResult:
        analysis = analyze_title(article.title, self.taxonomy)
        if not is_running_shoe_article(article.title, article.content, self.taxonomy, analysis):
            if analysis.scenario == "irrelevant":
                why = "title is not about running shoes"
            else:
                why = "content never mentions a shoe or brand"
            return self._skip(article, analysis, why)

        rejected: list[Rejection] = []
        warnings: list[str] = []

        candidates = extract_with_patterns(article.content, self.taxonomy, rejected=rejected)
        records = [c.record for c in candidates]
        if analysis.scenario != "general":
            kept = [r for r in records if matches_title_analysis(r, analysis)]
            rejected.extend(
                Rejection.of(r, "title mismatch", stage="title")
                for r in records if not matches_title_analysis(r, analysis)
            )
            logger.debug("Article %s: title filter kept %d/%d", article.id, len(kept), len(records))
            records = kept

        method: Method = "regex"

        if self._needs_fallback(records, analysis):
            if self.llm_enabled:
                logger.info(
                    "Article %s: %d pattern records for %s title, using LLM",
                    article.id, len(records), analysis.scenario,
                )
                self.metrics.increment(LLM_FALLBACKS)
                records = extract_with_llm(
                    self.gateway, article.content, article.title, analysis, self.taxonomy,
                    warnings=warnings, rejected=rejected,
                )
                if analysis.scenario in FOCUSED_SCENARIOS:
                    rejected.extend(
                        Rejection.of(r, "brand mismatch", stage="title")
                        for r in records if not matches_brand(r, analysis)
                    )
                    records = [r for r in records if matches_brand(r, analysis)]
                method = "llm"
            else:
                logger.debug("Article %s: LLM disabled, keeping %d pattern records", article.id, len(records))
        elif self.llm_enabled and self._needs_hybrid(records, analysis):
            llm_warnings: list[str] = []
            try:
                llm_records = extract_with_llm(
                    self.gateway, article.content, article.title, analysis, self.taxonomy,
                    warnings=llm_warnings,
                )
            except LLMServiceError as e:
                logger.warning("Article %s: hybrid enhancement failed, keeping pattern results: %s", article.id, e)
                warnings.append(f"hybrid enhancement failed: {e}")
            else:
                records = hybrid_merge(records, llm_records)
                warnings.extend(llm_warnings)
                method = "hybrid"
                self.metrics.increment(HYBRID_MERGES)

        records = [apply_postprocess(r) for r in records]
        records = validate_records(records, rejected)
        records = dedupe_records(records, rejected)
        if method == "regex" and records:
            self.metrics.increment(REGEX_SUCCESSES)

        return ExtractionResult(
            article_id=article.id,
            records=tuple(records),
            method=method,
            title_analysis=analysis,
            coverage=compute_coverage(records),
            warnings=warnings,
            rejected=rejected,
            reason=None if records else "no records extracted",
        )
