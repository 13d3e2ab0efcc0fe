"""Command-line entry point."""
import json

import pytest

from shoespec.cli import main
from shoespec.storage import SQLiteStorage

pytestmark = pytest.mark.integration


@pytest.fixture
def articles_file(tmp_path, hoka_review, beginners_roundup):
    path = tmp_path / "articles.jsonl"
    rows = [
        {"id": a.id, "title": a.title, "content": a.content, "date": a.date, "source_link": a.source_link}
        for a in (hoka_review, beginners_roundup)
    ]
    path.write_text("\n".join(json.dumps(r) for r in rows) + "\n", encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def no_api_key(monkeypatch, tmp_path):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.delenv("SHOESPEC_DISABLE_LLM", raising=False)
    monkeypatch.setenv("SHOESPEC_DB_PATH", str(tmp_path / "env.db"))


def test_writes_database(tmp_path, articles_file):
    db = tmp_path / "out.db"
    assert main(["--input", str(articles_file), "--db", str(db), "--disable-llm"]) == 0
    storage = SQLiteStorage(str(db))
    assert storage.get_shoe_count() == 4


def test_db_path_from_env(tmp_path, articles_file):
    assert main(["--input", str(articles_file)]) == 0
    assert SQLiteStorage(str(tmp_path / "env.db")).get_shoe_count() == 4


def test_dry_run_with_output(tmp_path, articles_file):
    output = tmp_path / "results" / "out.jsonl"
    log_file = tmp_path / "run.log"
    code = main([
        "--input", str(articles_file), "--dry-run", "--disable-llm",
        "--output", str(output), "--log-file", str(log_file),
    ])
    assert code == 0
    assert not (tmp_path / "env.db").exists()

    lines = [json.loads(line) for line in output.read_text(encoding="utf-8").splitlines()]
    by_id = {line["article_id"]: line for line in lines}
    assert set(by_id) == {"a1", "a2"}
    assert by_id["a1"]["scenario"] == "specific"
    assert by_id["a1"]["records"][0]["model"] == "Clifton 9"
    assert by_id["a2"]["coverage"]["totalSneakers"] == 3
    assert "[dry-run]" in log_file.read_text(encoding="utf-8")
    assert "LLM fallback:         disabled" in log_file.read_text(encoding="utf-8")
    assert by_id["a1"]["rejected"] == []
    assert by_id["a1"]["warnings"] == []


def test_missing_api_key_runs_patterns_only(tmp_path, articles_file):
    log_file = tmp_path / "run.log"
    assert main(["--input", str(articles_file), "--dry-run", "--log-file", str(log_file)]) == 0
    text = log_file.read_text(encoding="utf-8")
    assert "ANTHROPIC_API_KEY not set" in text
    assert "llm_cache_entries" not in text


def test_module_names_its_command():
    import shoespec.cli

    assert "shoespec-extract" in shoespec.cli.__doc__


def test_limit(tmp_path, articles_file):
    output = tmp_path / "out.jsonl"
    main(["--input", str(articles_file), "--dry-run", "--limit", "1", "--output", str(output)])
    assert len(output.read_text(encoding="utf-8").splitlines()) == 1


def test_unknown_config(articles_file):
    assert main(["--input", str(articles_file), "--config", "turbo"]) == 2


def test_missing_input(tmp_path):
    assert main(["--input", str(tmp_path / "nope.jsonl"), "--dry-run"]) == 1


def test_empty_input(tmp_path):
    path = tmp_path / "empty.jsonl"
    path.write_text("", encoding="utf-8")
    assert main(["--input", str(path), "--dry-run"]) == 0
