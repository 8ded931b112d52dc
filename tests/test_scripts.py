#!/usr/bin/env python3
"""Smoke tests for the command-line scripts"""

import importlib.util
import json
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.append(str(PROJECT_ROOT))


def load_script(name):
    spec = importlib.util.spec_from_file_location(name, PROJECT_ROOT / "scripts" / f"{name}.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_build_query_validate(tmp_path, capsys):
    books = tmp_path / "books"
    books.mkdir()
    (books / "doc1.txt").write_text("the cat sat on the mat", encoding="utf-8")
    (books / "doc2.txt").write_text("a cat and a hat", encoding="utf-8")
    output = tmp_path / "results.json"

    build = load_script("build_index")
    assert build.main(["--input-dir", str(books), "--output", str(output), "--report"]) == 0
    out = capsys.readouterr().out
    assert "Book: doc1.txt, Section: 1, Unique Words: 3" in out
    assert "Terms: 4" in out
    assert list(json.loads(output.read_text(encoding="utf-8"))) == ["cat", "hat", "mat", "sat"]

    query = load_script("query_index")
    assert query.main(["--index", str(output), "--term", "CAT"]) == 0
    out = capsys.readouterr().out
    assert "term='cat' buckets=2 total_frequency=2" in out

    validate = load_script("validate_index")
    validate.main(["--index", str(output)])
    assert "Validation successful: 4 terms, 5 occurrences" in capsys.readouterr().out


def test_build_index_rejects_bad_request(tmp_path, capsys):
    request = tmp_path / "batch.json"
    request.write_text('{"books": []}', encoding="utf-8")

    build = load_script("build_index")
    assert build.main(["--request", str(request), "--output", str(tmp_path / "r.json")]) == 2
    assert "no books" in capsys.readouterr().err


def test_query_index_missing_results(tmp_path):
    query = load_script("query_index")
    assert query.main(["--index", str(tmp_path / "missing.json")]) == 4


def test_query_index_corrupt_results(tmp_path, capsys):
    index = tmp_path / "results.json"
    index.write_text("{not json", encoding="utf-8")
    query = load_script("query_index")

    assert query.main(["--index", str(index)]) == 5
    assert "corrupt" in capsys.readouterr().out


def test_validate_index_corrupt_results(tmp_path):
    index = tmp_path / "results.json"
    index.write_text("{not json", encoding="utf-8")
    validate = load_script("validate_index")

    with pytest.raises(SystemExit, match="not valid JSON"):
        validate.main(["--index", str(index)])
