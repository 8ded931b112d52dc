"""Reducer

Merges the buckets of every document into one inverted index:

    {term: [Occurrence(document_id, document_name, bucket_number, term_frequency), ...]}

Terms are lower-cased and enumerated in ascending order. Each occurrence list
is ordered by term frequency (highest first), then document name, then bucket
number, then document id, so the same set of buckets always serializes to the
same bytes regardless of the order the buckets arrive in.

Serialized layout (JSON, UTF-8, two-space indent):
    {
      "<term>": [
        {"documentId": 1, "documentName": "...", "bucketNumber": 1, "termFrequency": 3},
        ...
      ],
      ...
    }
"""

import json
import logging
from collections import Counter, defaultdict
from typing import Dict, Iterable, List, Tuple

from .models import Bucket, IndexSummary, InvertedIndex, Occurrence

logger = logging.getLogger(__name__)


def occurrence_sort_key(occurrence: Occurrence) -> Tuple[int, str, int, int]:
    return (
        -occurrence.term_frequency,
        occurrence.document_name,
        occurrence.bucket_number,
        occurrence.document_id,
    )


def summarize(index: InvertedIndex) -> IndexSummary:
    return IndexSummary(
        term_count=len(index),
        total_occurrence_count=sum(len(occurrences) for occurrences in index.values()),
    )


def reduce_buckets(buckets: Iterable[Bucket]) -> Tuple[InvertedIndex, IndexSummary]:
    """Build the sorted inverted index and its summary from all mapper buckets."""
    postings: Dict[str, List[Occurrence]] = defaultdict(list)
    bucket_count = 0

    for bucket in buckets:
        bucket_count += 1
        # fold keys that only differ in case into one occurrence
        folded: Counter = Counter()
        for term, count in bucket.frequencies.items():
            if count >= 1:
                folded[term.lower()] += count
        for term, count in folded.items():
            postings[term].append(Occurrence(
                document_id=bucket.document_id,
                document_name=bucket.document_name,
                bucket_number=bucket.bucket_number,
                term_frequency=count,
            ))

    index: InvertedIndex = {}
    total_occurrences = 0
    for term in sorted(postings):
        occurrences = sorted(postings[term], key=occurrence_sort_key)
        index[term] = occurrences
        total_occurrences += len(occurrences)

    summary = IndexSummary(term_count=len(index), total_occurrence_count=total_occurrences)
    logger.info(
        "Reduced %d bucket(s) into %d term(s), %d occurrence(s)",
        bucket_count, summary.term_count, summary.total_occurrence_count,
    )
    return index, summary


def index_to_dict(index: InvertedIndex) -> Dict[str, List[Dict[str, object]]]:
    return {term: [occ.to_dict() for occ in index[term]] for term in sorted(index)}


def index_from_dict(data: Dict[str, List[Dict[str, object]]]) -> InvertedIndex:
    return {term: [Occurrence.from_dict(item) for item in items] for term, items in data.items()}


def serialize_index(index: InvertedIndex) -> str:
    """Render the index as the canonical JSON document."""
    return json.dumps(index_to_dict(index), ensure_ascii=False, indent=2) + "\n"


def validate_index(data: Dict[str, List[Dict[str, object]]]) -> List[str]:
    """Return a list of problems found in a deserialized index (empty when valid)."""
    problems: List[str] = []
    terms = list(data.keys())
    if terms != sorted(terms):
        problems.append("terms are not in ascending order")

    for term, items in data.items():
        if term != term.lower():
            problems.append(f"term {term!r} is not lower-case")
        if not items:
            problems.append(f"term {term!r} has no occurrences")
            continue
        try:
            occurrences = [Occurrence.from_dict(item) for item in items]
        except (KeyError, TypeError, ValueError) as exc:
            problems.append(f"term {term!r} has a malformed occurrence: {exc}")
            continue
        for occ in occurrences:
            if occ.term_frequency < 1 or occ.bucket_number < 1 or occ.document_id < 1:
                problems.append(f"term {term!r} has an out-of-range occurrence: {occ}")
        if occurrences != sorted(occurrences, key=occurrence_sort_key):
            problems.append(f"occurrences of {term!r} are not sorted")
        seen = {(occ.document_id, occ.bucket_number) for occ in occurrences}
        if len(seen) != len(occurrences):
            problems.append(f"term {term!r} lists the same bucket twice")
    return problems
