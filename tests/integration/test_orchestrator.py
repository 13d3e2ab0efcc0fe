"""End-to-end extraction through ExtractionOrchestrator with a scripted LLM."""
import json

import pytest

from shoespec.core.types import Article
from shoespec.extraction import ExtractionConfig, ExtractionOrchestrator, get_extraction_config
from shoespec.shared.llm import LLMServiceError, TransientLLMError
from shoespec.shared.metrics import (
    ARTICLES_FAILED,
    ARTICLES_PROCESSED,
    ARTICLES_SKIPPED,
    HYBRID_MERGES,
    LLM_FALLBACKS,
    RECORDS_EXTRACTED,
    REGEX_SUCCESSES,
)

pytestmark = pytest.mark.integration

CLIFTON_ITEM = {
    "items": [{
        "brand_name": "Hoka",
        "model": "Clifton 9",
        "heel_height": 99,
        "cushioning_type": "balanced",
        "foot_width": "standard",
    }]
}


class TestPatternOnly:
    """No gateway: pattern results are final."""

    def test_specific_review(self, hoka_review):
        orchestrator = ExtractionOrchestrator()
        result = orchestrator.extract(hoka_review)

        assert result.ok
        assert result.method == "regex"
        assert result.title_analysis.scenario == "specific"
        assert len(result.records) == 1
        record = result.records[0]
        assert (record.brand_name, record.model) == ("Hoka", "Clifton 9")
        assert record.heel_height == 32.0
        assert record.weight == 252.0
        assert record.price == 145.0
        assert record.primary_use == "daily trainer"
        assert record.surface_type == "road"
        assert record.drop is None
        assert orchestrator.metrics.get(REGEX_SUCCESSES) == 1

    def test_general_roundup(self, beginners_roundup):
        result = ExtractionOrchestrator().extract(beginners_roundup)

        assert result.method == "regex"
        assert result.title_analysis.scenario == "general"
        assert [(r.brand_name, r.model) for r in result.records] == [
            ("Adidas", "Adizero Boston 12"),
            ("Nike", "Pegasus 41"),
            ("Brooks", "Ghost 16"),
        ]
        assert [r.drop for r in result.records] == [6.0, 10.0, 12.0]
        assert result.records[0].primary_use == "tempo"
        assert result.coverage.total_sneakers == 3
        assert result.coverage.field_coverage["heel_height"] == 3

    def test_irrelevant_title(self):
        orchestrator = ExtractionOrchestrator()
        article = Article("v1", "Best Running Vests of 2024", "The Nike Pegasus 41 has a 37mm heel.")
        result = orchestrator.extract(article)

        assert result.ok
        assert result.records == ()
        assert result.title_analysis.scenario == "irrelevant"
        assert result.reason == "non-product article"
        assert orchestrator.metrics.get(ARTICLES_SKIPPED) == 1

    def test_general_title_without_shoe_content_is_skipped(self, make_gateway):
        gateway, provider = make_gateway({"items": []})
        orchestrator = ExtractionOrchestrator(gateway=gateway)
        article = Article("g1", "Marathon Training Plan", "Build mileage slowly. Rest every Sunday and stretch.")
        result = orchestrator.extract(article)

        assert result.ok
        assert result.records == ()
        assert result.reason == "non-product article"
        assert provider.calls == 0
        assert orchestrator.metrics.get(ARTICLES_SKIPPED) == 1

    def test_nothing_found_without_llm(self, megablast_review):
        result = ExtractionOrchestrator().extract(megablast_review)
        assert result.ok
        assert result.records == ()
        assert result.reason == "no records extracted"


class TestLLMFallback:
    def test_specific_without_pattern_hits(self, make_gateway, megablast_review, megablast_response):
        gateway, provider = make_gateway(megablast_response)
        orchestrator = ExtractionOrchestrator(gateway=gateway)
        result = orchestrator.extract(megablast_review)

        assert result.ok
        assert result.method == "llm"
        assert provider.calls == 1
        assert len(result.records) == 1
        record = result.records[0]
        assert (record.brand_name, record.model) == ("Asics", "Megablast")
        assert record.drop == 5.0
        assert record.weight == 215.0
        assert record.price == 260.0
        assert record.cushioning_type == "max"
        assert orchestrator.metrics.get(LLM_FALLBACKS) == 1
        assert orchestrator.metrics.get(RECORDS_EXTRACTED) == 1

    def test_request_is_focused_on_title_model(self, make_gateway, megablast_review, megablast_response):
        gateway, provider = make_gateway(megablast_response)
        ExtractionOrchestrator(gateway=gateway).extract(megablast_review)
        request = provider.requests[0]
        assert "Megablast" in request.system_prompt
        assert request.user_prompt.startswith("Title: Asics Megablast Performance Review")

    def test_brand_roundup_with_few_hits(self, make_gateway, hoka_review):
        gateway, provider = make_gateway({"items": [
            {"brand_name": "Hoka", "model": "Bondi 9", "heel_height": 43},
            {"brand_name": "Hoka", "model": "Clifton 9", "heel_height": 32},
            {"brand_name": "Nike", "model": "Pegasus 41", "heel_height": 37},
        ]})
        article = Article("b1", "Best Hoka Running Shoes", hoka_review.content)
        result = ExtractionOrchestrator(gateway=gateway).extract(article)

        assert result.title_analysis.scenario == "brand-only"
        assert result.method == "llm"
        assert [r.model for r in result.records] == ["Bondi 9", "Clifton 9"]

    def test_general_roundup_with_enough_hits_skips_llm(self, make_gateway, beginners_roundup):
        gateway, provider = make_gateway("{}")
        result = ExtractionOrchestrator(gateway=gateway).extract(beginners_roundup)
        assert result.method == "regex"
        assert provider.calls == 0

    def test_strict_roundups_calls_llm(self, make_gateway, beginners_roundup):
        gateway, provider = make_gateway('{"items": []}')
        orchestrator = ExtractionOrchestrator(gateway=gateway, config=get_extraction_config("strict_roundups"))
        result = orchestrator.extract(beginners_roundup)
        assert provider.calls == 1
        assert result.method == "llm"
        assert result.records == ()

    def test_regex_only_never_calls_llm(self, make_gateway, megablast_review, megablast_response):
        gateway, provider = make_gateway(megablast_response)
        orchestrator = ExtractionOrchestrator(gateway=gateway, config=get_extraction_config("regex_only"))
        result = orchestrator.extract(megablast_review)
        assert provider.calls == 0
        assert result.records == ()

    def test_malformed_response_yields_no_records(self, make_gateway, megablast_review):
        gateway, _ = make_gateway("Sorry, I cannot help with that.")
        result = ExtractionOrchestrator(gateway=gateway).extract(megablast_review)
        assert result.ok
        assert result.method == "llm"
        assert result.records == ()

    def test_service_failure_marks_article_failed(self, make_gateway, megablast_review):
        gateway, provider = make_gateway(TransientLLMError("503 overloaded"))
        orchestrator = ExtractionOrchestrator(gateway=gateway)
        result = orchestrator.extract(megablast_review)

        assert not result.ok
        assert result.state == "failed"
        assert result.method == "llm"
        assert result.reason.startswith("llm service error:")
        assert provider.calls == 4
        assert gateway.sleeps == [0.5, 1.5, 3.5]
        assert orchestrator.metrics.get(ARTICLES_FAILED) == 1
        assert orchestrator.metrics.get(ARTICLES_PROCESSED) == 0

    def test_non_retryable_failure(self, make_gateway, megablast_review):
        gateway, provider = make_gateway(LLMServiceError("401 unauthorized"))
        result = ExtractionOrchestrator(gateway=gateway).extract(megablast_review)
        assert result.state == "failed"
        assert provider.calls == 1


class TestHybrid:
    def test_fills_gaps_from_llm(self, make_gateway, hoka_review):
        gateway, provider = make_gateway(CLIFTON_ITEM)
        orchestrator = ExtractionOrchestrator(gateway=gateway)
        result = orchestrator.extract(hoka_review)

        assert result.method == "hybrid"
        assert provider.calls == 1
        record = result.records[0]
        assert record.heel_height == 32.0
        assert record.cushioning_type == "balanced"
        assert record.foot_width == "standard"
        assert record.waterproof is None
        assert orchestrator.metrics.get(HYBRID_MERGES) == 1
        assert result.warnings == ["Hoka Clifton 9: heel_height out of range (99)"]

    def test_failure_keeps_pattern_results(self, make_gateway, hoka_review):
        gateway, _ = make_gateway(TransientLLMError("timeout"))
        result = ExtractionOrchestrator(gateway=gateway).extract(hoka_review)

        assert result.ok
        assert result.method == "regex"
        assert len(result.records) == 1
        assert result.records[0].cushioning_type is None
        assert len(result.warnings) == 1
        assert result.warnings[0].startswith("hybrid enhancement failed")

    def test_disabled_by_config(self, make_gateway, hoka_review):
        gateway, provider = make_gateway(CLIFTON_ITEM)
        config = ExtractionConfig(name="no_hybrid", enable_hybrid=False)
        result = ExtractionOrchestrator(gateway=gateway, config=config).extract(hoka_review)
        assert result.method == "regex"
        assert provider.calls == 0

    def test_cache_serves_repeat_article(self, make_gateway, hoka_review):
        gateway, provider = make_gateway(CLIFTON_ITEM)
        orchestrator = ExtractionOrchestrator(gateway=gateway)
        orchestrator.extract(hoka_review)
        orchestrator.extract(hoka_review)
        assert provider.calls == 1


class TestMixedArticles:
    """Articles whose body mentions more shoes than the title promises."""

    def test_specific_review_ignores_other_brands(self, make_gateway, beginners_roundup, megablast_response):
        gateway, provider = make_gateway(megablast_response)
        article = Article(
            "a3", "Asics Megablast Performance Review",
            "The Megablast feels bouncy and light underfoot.\n\n" + beginners_roundup.content,
        )
        result = ExtractionOrchestrator(gateway=gateway).extract(article)

        assert result.method == "llm"
        assert provider.calls == 1
        assert [(r.brand_name, r.model) for r in result.records] == [("Asics", "Megablast")]
        assert [(r.brand_name, r.reason, r.stage) for r in result.rejected] == [
            ("Adidas", "title mismatch", "title"),
            ("Nike", "title mismatch", "title"),
            ("Brooks", "title mismatch", "title"),
            ("Nike", "brand mismatch", "title"),
        ]

    def test_five_brand_roundup(self, beginners_roundup):
        article = Article(
            "a5", "Best Running Shoes of 2024",
            beginners_roundup.content + "\n\n"
            "The Hoka Clifton 9 is a daily trainer with a 32mm heel and "
            "26mm forefoot for road runs.\n\n"
            "The Saucony Ride 17 is a neutral shoe with a 35mm heel and "
            "27mm forefoot, built for the road.",
        )
        result = ExtractionOrchestrator().extract(article)

        assert result.title_analysis.scenario == "general"
        assert result.method == "regex"
        assert [r.brand_name for r in result.records] == ["Adidas", "Nike", "Brooks", "Hoka", "Saucony"]
        assert [r.drop for r in result.records] == [6.0, 10.0, 12.0, 6.0, 8.0]
        assert result.coverage.total_sneakers == 5


class TestResultShape:
    def test_same_input_gives_identical_records(self, make_gateway, beginners_roundup, megablast_review, megablast_response):
        def run():
            gateway, _ = make_gateway(megablast_response)
            orchestrator = ExtractionOrchestrator(gateway=gateway)
            results = [orchestrator.extract(a) for a in (beginners_roundup, megablast_review)]
            return json.dumps(
                [[r.to_dict() for r in result.records] for result in results], sort_keys=True
            )

        assert run() == run()

    def test_duplicate_llm_items_collapse(self, make_gateway, megablast_review, megablast_response):
        duplicate = dict(megablast_response["items"][0], brand_name="asics", model="MEGABLAST", heel_height=40)
        gateway, _ = make_gateway({"items": [megablast_response["items"][0], duplicate]})
        result = ExtractionOrchestrator(gateway=gateway).extract(megablast_review)

        assert len(result.records) == 1
        assert result.records[0].heel_height == 42.0
        assert [(r.reason, r.stage) for r in result.rejected] == [("duplicate", "dedupe")]

    def test_discarded_llm_values_become_warnings(self, make_gateway, megablast_review):
        gateway, _ = make_gateway({"items": [{
            "brand_name": "Asics",
            "model": "Megablast",
            "heel_height": 99,
            "forefoot_height": 37,
            "price_usd": 900,
        }]})
        result = ExtractionOrchestrator(gateway=gateway).extract(megablast_review)

        assert len(result.records) == 1
        assert result.records[0].heel_height is None
        assert result.records[0].forefoot_height == 37.0
        assert result.warnings == [
            "Asics Megablast: heel_height out of range (99)",
            "Asics Megablast: price out of range (900)",
        ]

    def test_invalid_llm_items_are_rejected(self, make_gateway, megablast_review):
        gateway, _ = make_gateway({"items": [
            {"brand_name": "Asics", "model": "Megablast"},
            {"brand_name": "Asics", "model": "Megablast", "heel_height": 42},
        ]})
        result = ExtractionOrchestrator(gateway=gateway).extract(megablast_review)

        assert len(result.records) == 1
        assert [(r.reason, r.stage) for r in result.rejected] == [("no characteristics", "llm")]
