import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.append(str(PROJECT_ROOT))

from bookindex.pipeline.config import DEFAULT_STOP_WORDS, IndexerConfig, load_stopwords


def test_load_stopwords_extends_defaults(tmp_path):
    path = tmp_path / "stop.txt"
    path.write_text("He\n\n  SHE \nthey\n", encoding="utf-8")

    words = load_stopwords(path)
    assert {"he", "she", "they"} <= words
    assert DEFAULT_STOP_WORDS <= words


def test_load_stopwords_custom_base():
    assert load_stopwords(None, base=["X", " y "]) == frozenset({"x", "y"})


def test_load_stopwords_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_stopwords(tmp_path / "missing.txt")


def test_config_defaults():
    config = IndexerConfig()
    assert config.bucket_capacity == 5000
    assert config.stop_words == DEFAULT_STOP_WORDS
    assert config.validate() is config


@pytest.mark.parametrize("field, value", [
    ("bucket_capacity", 0),
    ("max_concurrent_mappers", 0),
    ("per_document_fetch_timeout", 0),
])
def test_config_validation(field, value):
    with pytest.raises(ValueError, match=field):
        IndexerConfig(**{field: value}).validate()


def test_with_overrides_skips_none_and_lowercases_stop_words():
    config = IndexerConfig().with_overrides(bucket_capacity=10, stop_words=["The"], max_concurrent_mappers=None)
    assert config.bucket_capacity == 10
    assert config.stop_words == frozenset({"the"})
    assert config.max_concurrent_mappers == IndexerConfig().max_concurrent_mappers
