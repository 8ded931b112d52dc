"""Mapper

Map phase of the index build. One call handles one document:

    fetch text -> tokenize -> split the term stream into buckets

Each bucket holds the local term counts of `bucket_capacity` surviving
(non-stop-word) terms; the last bucket may hold fewer. Bucket numbers start at
1 and grow by one per bucket. A document without surviving terms produces no
buckets at all.

A document that cannot be fetched or tokenized does not abort the batch: the
Mapper returns an empty MapResult carrying a DocumentWarning instead.
"""

import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import Iterable, List, Optional, Tuple

from bookindex.pipeline.config import DEFAULT_BUCKET_CAPACITY
from bookindex.pipeline.errors import FetchError, TokenizationError
from bookindex.pipeline.sources import DocumentSource

from .models import Bucket, Document, DocumentWarning, MapResult
from .tokenizer import Tokenizer

logger = logging.getLogger(__name__)


def bucketize(document: Document, terms: Iterable[str],
              bucket_capacity: int = DEFAULT_BUCKET_CAPACITY) -> Tuple[Bucket, ...]:
    """Partition an ordered term stream into numbered buckets."""
    if bucket_capacity < 1:
        raise ValueError(f"bucket_capacity must be >= 1, got {bucket_capacity}")

    buckets: List[Bucket] = []
    counts: Counter = Counter()
    filled = 0

    def _close() -> None:
        buckets.append(Bucket(
            document_id=document.id,
            document_name=document.name,
            bucket_number=len(buckets) + 1,
            frequencies=dict(counts),
        ))
        counts.clear()

    for term in terms:
        counts[term.lower()] += 1
        filled += 1
        if filled == bucket_capacity:
            _close()
            filled = 0

    if filled:  # trailing partial bucket, never an empty one
        _close()
    return tuple(buckets)


def _fetch_with_timeout(source: DocumentSource, document: Document, timeout: Optional[float]) -> str:
    """Call `source.fetch`, giving up after `timeout` seconds."""
    if timeout is None:
        return source.fetch(document, timeout)
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"fetch-{document.id}")
    try:
        future = executor.submit(source.fetch, document, timeout)
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError as exc:
            raise FetchError(f"Timed out after {timeout:g}s fetching {document.source!r}") from exc
    finally:
        # a hung fetch thread is left behind rather than joined
        executor.shutdown(wait=False)


def map_document(document: Document, source: DocumentSource, tokenizer: Tokenizer,
                 bucket_capacity: int = DEFAULT_BUCKET_CAPACITY,
                 fetch_timeout: Optional[float] = None) -> MapResult:
    """Run the map phase for one document."""
    logger.info("Processing document %d (%s)", document.id, document.name)
    try:
        text = _fetch_with_timeout(source, document, fetch_timeout)
        buckets = bucketize(document, tokenizer.tokenize(text), bucket_capacity)
    except (FetchError, TokenizationError) as exc:
        warning = DocumentWarning(document.id, document.name, str(exc))
        logger.warning("Skipping document %d (%s): %s", document.id, document.name, exc)
        return MapResult(document=document, warning=warning)

    logger.info("Processed document '%s' into %d bucket(s)", document.name, len(buckets))
    return MapResult(document=document, buckets=buckets)


class Mapper:
    """Binds a source, tokenizer and bucket settings for repeated map calls."""

    def __init__(self, source: DocumentSource, tokenizer: Tokenizer,
                 bucket_capacity: int = DEFAULT_BUCKET_CAPACITY,
                 fetch_timeout: Optional[float] = None):
        if bucket_capacity < 1:
            raise ValueError(f"bucket_capacity must be >= 1, got {bucket_capacity}")
        self.source = source
        self.tokenizer = tokenizer
        self.bucket_capacity = bucket_capacity
        self.fetch_timeout = fetch_timeout

    def __call__(self, document: Document) -> MapResult:
        return map_document(document, self.source, self.tokenizer,
                            self.bucket_capacity, self.fetch_timeout)
