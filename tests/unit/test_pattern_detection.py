"""Tests for model mention detection, merging and the pattern extractor."""
from shoespec.core.types import SpecRecord
from shoespec.core.units import round2
from shoespec.extraction.pattern import (
    are_similar_models,
    detect_inline_models,
    detect_model_headings,
    extract_with_patterns,
    is_high_quality_model,
    is_valid_model_part,
    merge_similar,
    parse_brand_model,
)

LISTICLE = (
    "Best Road Running Shoe: Nike Pegasus 41 ($140)\n"
    "A daily trainer with a 37mm heel and 27mm forefoot.\n"
    "Best Trail Running Shoe: Runner-Up: Hoka Speedgoat 6 ($155)\n"
    "Grippy on trails with a 40mm heel and 35mm forefoot.\n"
    "Shoe weight: 250 grams\n"
)


class TestHeadings:
    def test_detects_headings_with_price(self):
        mentions = detect_model_headings(LISTICLE)
        assert [m.brand_model for m in mentions] == ["Nike Pegasus 41", "Hoka Speedgoat 6"]
        assert [m.price for m in mentions] == [140.0, 155.0]

    def test_spec_lines_are_not_models(self):
        assert detect_model_headings("Shoe weight: 250 grams\n") == []

    def test_no_headings_in_prose(self):
        assert detect_model_headings("The Nike Pegasus 41 is a daily trainer.") == []


class TestInline:
    def test_finds_mentions_in_order(self, taxonomy):
        mentions = detect_inline_models(
            "I ran in the Nike Pegasus 41 and the Hoka Clifton 9.", taxonomy
        )
        assert [m.brand_model for m in mentions] == ["Nike Pegasus 41", "Hoka Clifton 9"]
        assert mentions[0].start < mentions[1].start

    def test_series_with_trailing_version(self, taxonomy):
        mentions = detect_inline_models("The Nike Air Zoom Pegasus 41 is back.", taxonomy)
        assert len(mentions) == 1
        assert mentions[0].brand_model == "Nike Air Zoom Pegasus 41"

    def test_measurement_is_not_a_version(self, taxonomy):
        mentions = detect_inline_models("The Nike Pegasus 280g build", taxonomy)
        assert all("280" not in m.brand_model for m in mentions)

    def test_short_brand_is_case_sensitive(self, taxonomy):
        assert detect_inline_models("we went on Cloud 5 runs", taxonomy) == []
        mentions = detect_inline_models("the On Cloud 5 is light", taxonomy)
        assert [m.brand_model for m in mentions] == ["On Cloud 5"]


class TestModelChecks:
    def test_valid_model_parts(self, taxonomy):
        assert is_valid_model_part("Pegasus 41", taxonomy)
        assert is_valid_model_part("Ghost", taxonomy)

    def test_invalid_model_parts(self, taxonomy):
        assert not is_valid_model_part("Amazing", taxonomy)
        assert not is_valid_model_part("the 41", taxonomy)
        assert not is_valid_model_part("Pegasus 280g", taxonomy)
        assert not is_valid_model_part("Pegasus " + "x" * 20 + " 41", taxonomy)

    def test_parse_brand_model(self, taxonomy):
        assert parse_brand_model("New Balance Fresh Foam 1080v14", taxonomy) == (
            "New Balance", "Fresh Foam 1080v14",
        )
        assert parse_brand_model("HOKA Bondi 9", taxonomy) == ("Hoka", "Bondi 9")
        assert parse_brand_model("Nike", taxonomy) == ("Nike", None)
        assert parse_brand_model("", taxonomy) == (None, None)

    def test_high_quality_model(self, taxonomy):
        assert is_high_quality_model("Nike", "Pegasus 41", taxonomy)
        assert is_high_quality_model("Nike", "Pegasus", taxonomy)
        assert not is_high_quality_model("Nike", "Something", taxonomy)
        assert not is_high_quality_model("Tracksmith", "Eliot 2", taxonomy)


class TestMerge:
    def test_similar_models(self):
        assert are_similar_models(SpecRecord("Nike", "Pegasus"), SpecRecord("nike", "Pegasus 41"))
        assert not are_similar_models(SpecRecord("Nike", "Pegasus"), SpecRecord("Nike", "Pegasus Trail 5"))
        assert not are_similar_models(SpecRecord("Nike", "Pegasus"), SpecRecord("Hoka", "Pegasus 41"))

    def test_merge_keeps_longer_name_and_fills_nulls(self):
        merged = merge_similar([
            SpecRecord("Nike", "Pegasus", heel_height=37.0),
            SpecRecord("Nike", "Pegasus 41", price=140.0, heel_height=38.0),
            SpecRecord("Hoka", "Clifton 9"),
        ])
        assert len(merged) == 2
        assert merged[0].model == "Pegasus 41"
        assert merged[0].heel_height == 37.0
        assert merged[0].price == 140.0
        assert merged[1].model == "Clifton 9"


class TestExtractWithPatterns:
    def test_listicle(self, taxonomy):
        candidates = extract_with_patterns(LISTICLE, taxonomy)
        records = [c.record for c in candidates]
        assert all(c.source == "regex" for c in candidates)
        assert [(r.brand_name, r.model) for r in records] == [
            ("Nike", "Pegasus 41"), ("Hoka", "Speedgoat 6"),
        ]
        pegasus, speedgoat = records
        assert (pegasus.heel_height, pegasus.forefoot_height, pegasus.drop) == (37.0, 27.0, 10.0)
        assert pegasus.price == 140.0
        assert pegasus.surface_type == "road"
        assert pegasus.primary_use == "daily trainer"
        assert speedgoat.surface_type == "trail"
        assert speedgoat.drop == 5.0

    def test_inline_review(self, taxonomy, hoka_review):
        candidates = extract_with_patterns(hoka_review.content, taxonomy)
        assert len(candidates) == 1
        record = candidates[0].record
        assert (record.brand_name, record.model) == ("Hoka", "Clifton 9")
        assert record.heel_height == 32.0
        assert record.weight == 252.0
        assert record.price == 145.0

    def test_gates_require_stack_and_use(self, taxonomy):
        assert extract_with_patterns("The Nike Pegasus 41 has a 37mm heel.", taxonomy) == []
        assert extract_with_patterns("The Nike Pegasus 41 is great on the road.", taxonomy) == []

    def test_empty_content(self, taxonomy):
        assert extract_with_patterns("", taxonomy) == []
        assert extract_with_patterns("   ", taxonomy) == []

    def test_richness(self, taxonomy, hoka_review):
        candidate = extract_with_patterns(hoka_review.content, taxonomy)[0]
        # heel, weight, price (2 each) + primary use, surface (1 each)
        assert candidate.richness() == 8

    def test_gate_failures_are_reported(self, taxonomy):
        rejected = []
        assert extract_with_patterns("The Nike Pegasus 41 is great on the road.", taxonomy, rejected) == []
        assert [(r.brand_name, r.reason, r.stage) for r in rejected] == [
            ("Nike", "no stack data", "pattern"),
        ]

        rejected.clear()
        extract_with_patterns("The Nike Pegasus 41 has a 37mm heel.", taxonomy, rejected)
        assert [r.reason for r in rejected] == ["no use or surface"]


class TestDropAfterMerge:
    """Heights from different mentions must not keep a drop derived from one of them."""

    SPLIT_MENTIONS = (
        "The Nike Pegasus 41 is a daily trainer with a 37mm heel.\n\n"
        "Later in the test, the Nike Pegasus measured a 40mm heel and 30mm forefoot on the road."
    )

    def test_drop_matches_merged_heights(self, taxonomy):
        records = [c.record for c in extract_with_patterns(self.SPLIT_MENTIONS, taxonomy)]
        assert len(records) == 1
        record = records[0]
        assert record.model == "Pegasus 41"
        assert (record.heel_height, record.forefoot_height) == (37.0, 30.0)
        assert record.drop == 7.0

    def test_stated_drop_is_kept(self, taxonomy):
        text = self.SPLIT_MENTIONS.replace("37mm heel.", "37mm heel and a 10mm drop.")
        record = extract_with_patterns(text, taxonomy)[0].record
        assert record.drop == 10.0

    def test_every_record_is_consistent(self, taxonomy, beginners_roundup):
        for candidate in extract_with_patterns(LISTICLE + "\n" + beginners_roundup.content, taxonomy):
            r = candidate.record
            if r.heel_height is not None and r.forefoot_height is not None:
                assert r.drop == round2(r.heel_height - r.forefoot_height)
