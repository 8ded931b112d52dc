#!/usr/bin/env python3
"""Build a bucketed inverted index from a set of documents.

Documents come from one of:
  - positional paths or http(s) URLs,
  - a directory of *.txt files (--input-dir),
  - a JSON batch request (--request), e.g. {"books": [{"title": ..., "url": ...}]}.

Usage:
  python scripts/build_index.py books/moby.txt https://www.gutenberg.org/cache/epub/84/pg84.txt
  python scripts/build_index.py --input-dir books --output storage/results.json --report
  python scripts/build_index.py --request batch.json --workers 4 --timeout 20
"""
from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.append(str(PROJECT_ROOT))

from bookindex.indexer.models import Document
from bookindex.pipeline.batch import discover_documents, documents_from_sources, parse_batch_request
from bookindex.pipeline.config import DEFAULT_OUTPUT_PATH, IndexerConfig, load_stopwords
from bookindex.pipeline.driver import run_batch
from bookindex.pipeline.errors import InvalidInputError, SinkError
from bookindex.pipeline.sinks import FileSink

EXIT_INVALID_INPUT = 2
EXIT_SINK_FAILED = 3


def collect_documents(args: argparse.Namespace) -> List[Document]:
    if args.request:
        return parse_batch_request(Path(args.request).read_text(encoding="utf-8"))
    if args.input_dir:
        return discover_documents(Path(args.input_dir), args.pattern)
    return documents_from_sources(args.inputs)


def main(argv=None) -> int:
    p = argparse.ArgumentParser(description="Build a bucketed inverted index (map-reduce).")
    p.add_argument("inputs", nargs="*", help="Document paths or http(s) URLs")
    p.add_argument("--input-dir", help="Index every file matching --pattern in this directory")
    p.add_argument("--pattern", default="*.txt")
    p.add_argument("--request", help="JSON batch request file")
    p.add_argument("--output", default=str(DEFAULT_OUTPUT_PATH), help="Where to write the index JSON")
    p.add_argument("--bucket-capacity", type=int, default=None)
    p.add_argument("--stopwords", default=None, help="File with extra stop words, one per line")
    p.add_argument("--timeout", type=float, default=None, help="Per-document fetch timeout (seconds)")
    p.add_argument("--workers", type=int, default=None, help="Max concurrent mappers")
    p.add_argument("--report", action="store_true", help="Print one line per bucket")
    p.add_argument("-v", "--verbose", action="store_true")
    args = p.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )

    if not (args.inputs or args.input_dir or args.request):
        p.print_help()
        return EXIT_INVALID_INPUT

    try:
        config = IndexerConfig().with_overrides(
            bucket_capacity=args.bucket_capacity,
            stop_words=load_stopwords(Path(args.stopwords)) if args.stopwords else None,
            per_document_fetch_timeout=args.timeout,
            max_concurrent_mappers=args.workers,
        )
        documents = collect_documents(args)
    except (InvalidInputError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_INVALID_INPUT

    t0 = time.perf_counter()
    try:
        result = run_batch(documents, config=config, sink=FileSink(Path(args.output)))
    except SinkError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_SINK_FAILED
    elapsed = time.perf_counter() - t0

    if args.report:
        for line in result.bucket_report():
            print(line)

    print(f"\n{'='*60}")
    print("[BuildIndex] Build Complete!")
    print(f"  Documents submitted: {len(documents)}")
    print(f"  Documents failed: {len(result.warnings)}")
    print(f"  Buckets: {len(result.buckets)}")
    print(f"  Terms: {result.summary.term_count:,}")
    print(f"  Occurrences: {result.summary.total_occurrence_count:,}")
    print(f"  Elapsed: {elapsed:.2f}s")
    print(f"  Index saved to: {result.location}")
    for warning in result.warnings:
        print(f"  Warning: document {warning.document_id} ({warning.document_name}): {warning.reason}")
    print(f"{'='*60}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
