#!/usr/bin/env python3
"""Validate a persisted index: term order, occurrence order and field ranges.

Usage:
  python scripts/validate_index.py --index storage/results.json
"""
import argparse
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.append(str(PROJECT_ROOT))

from bookindex.indexer.reducer import validate_index
from bookindex.pipeline.sinks import load_index_data


def main(argv=None):
    ap = argparse.ArgumentParser()
    ap.add_argument("--index", required=True)
    ap.add_argument("--max-problems", type=int, default=20)
    args = ap.parse_args(argv)

    index_path = Path(args.index)
    if not index_path.exists():
        raise SystemExit(f"{index_path} missing; run build_index first")
    try:
        data = load_index_data(index_path)
    except ValueError as e:
        raise SystemExit(f"{index_path} is not valid JSON: {e}")
    if not isinstance(data, dict):
        raise SystemExit(f"{index_path} does not hold a term mapping")

    problems = validate_index(data)
    if problems:
        for problem in problems[: args.max_problems]:
            print(problem)
        if len(problems) > args.max_problems:
            print(f"... and {len(problems) - args.max_problems} more")
        raise SystemExit(2)
    occurrences = sum(len(items) for items in data.values())
    print(f"Validation successful: {len(data)} terms, {occurrences} occurrences")


if __name__ == "__main__":
    main()
