"""Batch driver

Runs one full index build:

    1. validate the document list;
    2. fan out one Mapper per document on a bounded thread pool;
    3. wait for every Mapper (hard join, no early exit);
    4. reduce the concatenated buckets once;
    5. hand the serialized index to the sink.

Per-document failures come back from the Mappers as warnings and only shrink
the index. A sink failure is fatal and propagates to the caller.
"""

import logging
from concurrent.futures import ALL_COMPLETED, ThreadPoolExecutor, wait
from typing import Callable, List, Optional, Sequence

from bookindex.indexer.mapper import Mapper
from bookindex.indexer.models import BatchResult, Bucket, Document, DocumentWarning, MapResult
from bookindex.indexer.reducer import reduce_buckets, serialize_index
from bookindex.indexer.tokenizer import Tokenizer

from .batch import validate_documents
from .config import IndexerConfig
from .sinks import IndexSink
from .sources import DefaultSource, DocumentSource

logger = logging.getLogger(__name__)

StatusCallback = Callable[[str], None]


def _noop_status(message: str) -> None:
    pass


def map_all(documents: Sequence[Document], mapper: Mapper, max_workers: int) -> List[MapResult]:
    """Map every document concurrently and return results in document order."""
    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="mapper") as pool:
        futures = [pool.submit(mapper, document) for document in documents]
        wait(futures, return_when=ALL_COMPLETED)
    # unexpected mapper errors re-raise here
    return [future.result() for future in futures]


def run_batch(documents: Sequence[Document], config: Optional[IndexerConfig] = None,
              source: Optional[DocumentSource] = None, sink: Optional[IndexSink] = None,
              on_status: StatusCallback = _noop_status) -> BatchResult:
    """Build, persist and return the inverted index for `documents`."""
    config = (config or IndexerConfig()).validate()
    documents = validate_documents(documents)
    source = source or DefaultSource()

    logger.info("Documents found: %d", len(documents))
    on_status(f"Documents found: {len(documents)}. Creating mappers to process documents...")

    mapper = Mapper(
        source=source,
        tokenizer=Tokenizer(config.stop_words),
        bucket_capacity=config.bucket_capacity,
        fetch_timeout=config.per_document_fetch_timeout,
    )
    workers = min(config.max_concurrent_mappers, len(documents))
    results = map_all(documents, mapper, workers)

    buckets: List[Bucket] = []
    warnings: List[DocumentWarning] = []
    for result in results:
        buckets.extend(result.buckets)
        if result.warning is not None:
            warnings.append(result.warning)

    if warnings:
        logger.warning("%d of %d document(s) failed to map", len(warnings), len(documents))
    on_status(f"Mapped {len(documents)} document(s) into {len(buckets)} bucket(s). Reducing...")

    index, summary = reduce_buckets(buckets)

    location = None
    if sink is not None:
        on_status("Persisting index...")
        location = sink.persist(serialize_index(index), summary)

    on_status(f"Completed: {summary.term_count} term(s), {summary.total_occurrence_count} occurrence(s)")
    return BatchResult(
        index=index,
        summary=summary,
        buckets=tuple(buckets),
        warnings=tuple(warnings),
        location=location,
    )
