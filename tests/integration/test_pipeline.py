"""Batch runs through run_pipeline into SQLite."""
import sqlite3

import pytest

from shoespec.core.types import Article
from shoespec.extraction import ExtractionOrchestrator
from shoespec.pipeline import run_pipeline
from shoespec.shared.llm import TransientLLMError
from shoespec.shared.logger import PipelineLogger
from shoespec.shared.metrics import ROWS_WRITTEN
from shoespec.storage import SQLiteStorage

pytestmark = pytest.mark.integration

EXPECTED_KEYS = [
    "adidas adizero boston 12",
    "brooks ghost 16",
    "hoka clifton 9",
    "nike pegasus 41",
]


@pytest.fixture
def storage(tmp_path):
    s = SQLiteStorage(str(tmp_path / "shoes.db"))
    s.create_tables()
    return s


def test_writes_rows(storage, hoka_review, beginners_roundup):
    orchestrator = ExtractionOrchestrator()
    summary = run_pipeline([hoka_review, beginners_roundup], orchestrator, storage=storage)

    assert summary.articles == 2
    assert summary.completed == 2
    assert summary.failed == 0
    assert summary.records == 4
    assert summary.rows_written == 4
    assert storage.list_model_keys() == EXPECTED_KEYS
    assert orchestrator.metrics.get(ROWS_WRITTEN) == 4

    clifton = storage.get_shoe("hoka clifton 9")
    assert clifton["article_id"] == "a1"
    assert clifton["source_link"] == "https://example.com/hoka-clifton-9"
    assert clifton["date"] == "2024-05-01"
    assert clifton["weight"] == 252.0


def test_rerun_updates_in_place(storage, hoka_review):
    orchestrator = ExtractionOrchestrator()
    run_pipeline([hoka_review], orchestrator, storage=storage)
    run_pipeline([hoka_review], orchestrator, storage=storage)
    assert storage.get_shoe_count() == 1


def test_dry_run_writes_nothing(storage, hoka_review, beginners_roundup):
    log = PipelineLogger(console=False)
    summary = run_pipeline(
        [hoka_review, beginners_roundup], ExtractionOrchestrator(),
        storage=storage, dry_run=True, log=log,
    )
    assert summary.rows_written == 0
    assert sorted(row.model_key for row in summary.rows) == EXPECTED_KEYS
    assert storage.get_shoe_count() == 0


def test_parallel_workers(storage, hoka_review, beginners_roundup):
    summary = run_pipeline(
        [hoka_review, beginners_roundup], ExtractionOrchestrator(),
        storage=storage, workers=2,
    )
    assert summary.completed == 2
    assert summary.rows_written == 4
    assert storage.list_model_keys() == EXPECTED_KEYS


def test_failed_article_does_not_stop_run(storage, make_gateway, megablast_review, beginners_roundup):
    gateway, _ = make_gateway(TransientLLMError("503"))
    summary = run_pipeline(
        [megablast_review, beginners_roundup], ExtractionOrchestrator(gateway=gateway),
        storage=storage,
    )
    assert summary.failed == 1
    assert summary.completed == 1
    assert summary.rows_written == 3
    failed = [r for r in summary.results if not r.ok]
    assert failed[0].article_id == "a3"


def test_llm_rows_reach_storage(storage, make_gateway, megablast_review, megablast_response):
    gateway, _ = make_gateway(megablast_response)
    run_pipeline([megablast_review], ExtractionOrchestrator(gateway=gateway), storage=storage)
    shoe = storage.get_shoe("asics megablast")
    assert shoe["drop"] == 5.0
    assert shoe["price"] == 260.0
    assert shoe["waterproof"] is False


def test_rejected_candidates_are_logged(storage, hoka_review):
    article = Article("n1", "Best Nike Running Shoes", hoka_review.content, source_link="https://example.com/n1")
    summary = run_pipeline([article], ExtractionOrchestrator(), storage=storage)

    assert summary.records == 0
    assert summary.rejected == 1
    [row] = storage.get_rejected("n1")
    assert (row["model_key"], row["reason"], row["stage"]) == ("hoka clifton 9", "title mismatch", "title")
    assert row["title"] == "Best Nike Running Shoes"
    assert row["source_link"] == "https://example.com/n1"


def test_dry_run_logs_no_rejections(storage, hoka_review):
    article = Article("n1", "Best Nike Running Shoes", hoka_review.content)
    summary = run_pipeline([article], ExtractionOrchestrator(), storage=storage, dry_run=True)
    assert summary.rejected == 1
    assert storage.get_rejected_count() == 0


class _BrokenRejectedLog(SQLiteStorage):
    def log_rejected(self, article, rejections):
        raise sqlite3.OperationalError("database is locked")


def test_rejected_log_failure_keeps_rows(tmp_path, hoka_review):
    storage = _BrokenRejectedLog(str(tmp_path / "shoes.db"))
    storage.create_tables()
    article = Article("x1", hoka_review.title, hoka_review.content + " The Nike Pegasus 41 is a daily trainer with a 37mm heel.")
    summary = run_pipeline([article], ExtractionOrchestrator(), storage=storage)

    assert summary.completed == 1
    assert summary.rows_written == 1
    assert summary.rejected == 1
    assert storage.list_model_keys() == ["hoka clifton 9"]
