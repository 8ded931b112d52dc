#!/usr/bin/env python3
"""Look up terms in a persisted index.

Prints, for each requested term, the first `--top` occurrences in index order
(highest frequency first).

Usage:
  python scripts/query_index.py --index storage/results.json --term whale --top 10
"""
from __future__ import annotations

import argparse
import os
import sys
import tempfile
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.append(str(PROJECT_ROOT))

from bookindex.indexer.reducer import summarize
from bookindex.pipeline.sinks import load_index

EXIT_MISSING_RESULTS = 4
EXIT_CORRUPT_RESULTS = 5


def main(argv=None) -> int:
    p = argparse.ArgumentParser()
    p.add_argument("--index", default=os.path.join(tempfile.gettempdir(), "results.json"))
    p.add_argument("--term", action="append", default=[], help="Term to look up (repeatable)")
    p.add_argument("--top", type=int, default=10)
    args = p.parse_args(argv)

    try:
        index = load_index(Path(args.index))
    except FileNotFoundError:
        print(f"Results not found at {args.index}. Build the index first.")
        return EXIT_MISSING_RESULTS
    except (ValueError, KeyError, TypeError, AttributeError) as e:  # JSONDecodeError is a ValueError
        print(f"Results at {args.index} are corrupt: {e}")
        return EXIT_CORRUPT_RESULTS

    summary = summarize(index)
    print(f"index={args.index} terms={summary.term_count} occurrences={summary.total_occurrence_count}")

    for raw_term in args.term:
        term = raw_term.lower()
        occurrences = index.get(term)
        if not occurrences:
            print(f"term={term!r} not found")
            continue
        total = sum(occ.term_frequency for occ in occurrences)
        print(f"term={term!r} buckets={len(occurrences)} total_frequency={total}")
        for occ in occurrences[: args.top]:
            print(f"  {occ.document_name}\tbucket {occ.bucket_number}\t{occ.term_frequency}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
