#!/usr/bin/env python3
"""Tests for the batch driver (fan-out, join, reduce, persist)"""

import json
import sys
import threading
import time
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.append(str(PROJECT_ROOT))

from bookindex.indexer.models import Document, IndexSummary, Occurrence
from bookindex.indexer.reducer import serialize_index
from bookindex.pipeline.config import IndexerConfig
from bookindex.pipeline.driver import run_batch
from bookindex.pipeline.errors import FetchError, InvalidInputError, SinkError
from bookindex.pipeline.sinks import FileSink, IndexSink, MemorySink, load_index
from bookindex.pipeline.sources import DocumentSource, InlineSource

CAT_DOCS = [
    Document(id=1, name="doc1", source="the cat sat on the mat"),
    Document(id=2, name="doc2", source="a cat and a hat"),
]


class FlakySource(InlineSource):
    def __init__(self, failing_ids):
        self.failing_ids = set(failing_ids)

    def fetch(self, document, timeout=None):
        if document.id in self.failing_ids:
            raise FetchError(f"404 for {document.name}")
        return super().fetch(document, timeout)


class CountingSource(DocumentSource):
    """Records the highest number of fetches running at once."""

    def __init__(self, delay=0.05):
        self.delay = delay
        self.active = 0
        self.peak = 0
        self.lock = threading.Lock()

    def fetch(self, document, timeout=None):
        with self.lock:
            self.active += 1
            self.peak = max(self.peak, self.active)
        time.sleep(self.delay)
        with self.lock:
            self.active -= 1
        return document.source


class BrokenSink(IndexSink):
    def persist(self, serialized, summary):
        raise SinkError("disk full")


def test_two_document_scenario():
    config = IndexerConfig(stop_words=frozenset({"the", "on", "a", "and"}))
    result = run_batch(CAT_DOCS, config=config, source=InlineSource())

    assert [b.frequencies for b in result.buckets] == [
        {"cat": 1, "sat": 1, "mat": 1},
        {"cat": 1, "hat": 1},
    ]
    assert list(result.index) == ["cat", "hat", "mat", "sat"]
    assert result.index["cat"] == [Occurrence(1, "doc1", 1, 1), Occurrence(2, "doc2", 1, 1)]
    assert result.index["hat"] == [Occurrence(2, "doc2", 1, 1)]
    assert result.summary == IndexSummary(term_count=4, total_occurrence_count=5)
    assert result.warnings == ()
    assert result.location is None


def test_default_config_gives_same_scenario_result():
    result = run_batch(CAT_DOCS, source=InlineSource())
    assert result.summary == IndexSummary(term_count=4, total_occurrence_count=5)


def test_fetch_failure_degrades_instead_of_aborting():
    documents = CAT_DOCS + [Document(id=3, name="doc3", source="whale whale ship")]
    result = run_batch(documents, source=FlakySource({3}))

    assert len(result.warnings) == 1
    assert result.warnings[0].document_id == 3
    assert "404" in result.warnings[0].reason
    assert "whale" not in result.index
    assert result.summary == IndexSummary(term_count=4, total_occurrence_count=5)


def test_all_documents_failing_still_completes():
    result = run_batch(CAT_DOCS, source=FlakySource({1, 2}))
    assert result.index == {}
    assert result.summary.term_count == 0
    assert len(result.warnings) == 2


def test_mapper_concurrency_is_bounded():
    source = CountingSource()
    documents = [Document(id=i, name=f"d{i}", source=f"word{i}") for i in range(1, 9)]
    result = run_batch(documents, config=IndexerConfig(max_concurrent_mappers=2), source=source)

    assert 1 <= source.peak <= 2
    assert result.summary.term_count == 8


def test_result_written_to_sink():
    sink = MemorySink()
    result = run_batch(CAT_DOCS, source=InlineSource(), sink=sink)

    assert result.location == "memory://1"
    assert sink.last == serialize_index(result.index)


def test_file_sink_output_is_loadable(tmp_path):
    output = tmp_path / "out" / "results.json"
    result = run_batch(CAT_DOCS, source=InlineSource(), sink=FileSink(output))

    assert result.location == str(output)
    assert list(json.loads(output.read_text(encoding="utf-8"))) == ["cat", "hat", "mat", "sat"]
    assert load_index(output) == result.index


def test_sink_failure_is_fatal():
    with pytest.raises(SinkError, match="disk full"):
        run_batch(CAT_DOCS, source=InlineSource(), sink=BrokenSink())


def test_invalid_document_lists_rejected():
    with pytest.raises(InvalidInputError, match="empty"):
        run_batch([], source=InlineSource())
    with pytest.raises(InvalidInputError, match="Duplicate"):
        run_batch([CAT_DOCS[0], CAT_DOCS[0]], source=InlineSource())


def test_status_messages_reported():
    messages = []
    run_batch(CAT_DOCS, source=InlineSource(), on_status=messages.append)

    assert messages[0] == "Documents found: 2. Creating mappers to process documents..."
    assert messages[-1] == "Completed: 4 term(s), 5 occurrence(s)"


def test_bucket_report_lines():
    result = run_batch(CAT_DOCS, source=InlineSource())
    assert list(result.bucket_report()) == [
        "Book: doc1, Section: 1, Unique Words: 3",
        "Book: doc2, Section: 1, Unique Words: 2",
    ]
