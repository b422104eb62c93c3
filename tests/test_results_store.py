"""
Tests for ResultsStore persistence.
"""

import pytest

from crudbench.core.errors import MissingResultsError, PersistenceError
from crudbench.core.results_store import ResultsStore
from crudbench.models import BenchmarkResultDocument


def test_write_creates_directory_and_leaves_no_temp_files(tmp_path) -> None:
    store = ResultsStore(tmp_path / "nested" / "benchmarks")

    path = store.write_json("concurrent-results.json", {"postgresql": {}, "mongodb": {}})

    assert path.is_file()
    assert [p.name for p in store.results_dir.iterdir()] == ["concurrent-results.json"]
    assert store.read_json("concurrent-results.json") == {"postgresql": {}, "mongodb": {}}


def test_overwrite_replaces_previous_document(results_store) -> None:
    results_store.write_json("aggregation-results.json", {"run": 1})
    results_store.write_json("aggregation-results.json", {"run": 2})

    assert results_store.read_json("aggregation-results.json") == {"run": 2}


def test_unwritable_location_raises_persistence_error(tmp_path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")

    with pytest.raises(PersistenceError) as exc_info:
        ResultsStore(blocker).write_json("postgres-results.json", {})

    assert isinstance(exc_info.value.__cause__, OSError)


def test_missing_file_carries_hint(results_store) -> None:
    with pytest.raises(MissingResultsError) as exc_info:
        results_store.read_json("postgres-results.json", hint="run it first")

    assert exc_info.value.hint == "run it first"


def test_corrupt_file_is_reported(results_store) -> None:
    results_store.results_dir.mkdir(parents=True)
    results_store.path_for("mongodb-results.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(MissingResultsError):
        results_store.read_json("mongodb-results.json")


def test_malformed_document_is_reported(results_store) -> None:
    results_store.write_json("mongodb-results.json", {"backend": "mongodb"})

    with pytest.raises(MissingResultsError):
        results_store.read_document("mongodb-results.json", BenchmarkResultDocument)
