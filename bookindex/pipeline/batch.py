"""Building and validating the document list of a batch.

A batch request is JSON shaped like::

    {"books": [{"title": "Moby Dick", "url": "https://..."}, ...]}

Property names are matched case-insensitively, and ``documents`` /
``name`` / ``source`` are accepted as aliases. Documents get ids 1..N in
request order.
"""

import json
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from bookindex.indexer.models import Document

from .errors import InvalidInputError
from .sources import is_url

LIST_KEYS = ("books", "documents")
NAME_KEYS = ("title", "name")
SOURCE_KEYS = ("url", "source", "path")


def _lookup(mapping: Dict[str, object], keys: Sequence[str]) -> Optional[object]:
    lowered = {str(key).lower(): value for key, value in mapping.items()}
    for key in keys:
        if key in lowered:
            return lowered[key]
    return None


def validate_documents(documents: Sequence[Document]) -> List[Document]:
    """Reject empty lists, bad ids, duplicate ids and blank names or sources."""
    documents = list(documents)
    if not documents:
        raise InvalidInputError("Document list is empty")

    seen_ids = set()
    for document in documents:
        if not isinstance(document.id, int) or document.id < 1:
            raise InvalidInputError(f"Document id must be a positive integer, got {document.id!r}")
        if document.id in seen_ids:
            raise InvalidInputError(f"Duplicate document id {document.id}")
        seen_ids.add(document.id)
        if not document.name or not document.name.strip():
            raise InvalidInputError(f"Document {document.id} has no name")
        if not document.source or not document.source.strip():
            raise InvalidInputError(f"Document {document.id} ({document.name}) has no source")
    return documents


def parse_batch_request(payload: str) -> List[Document]:
    """Parse a JSON batch request into validated Documents."""
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise InvalidInputError(f"Invalid JSON format: {exc}") from exc

    if not isinstance(data, dict):
        raise InvalidInputError("Batch request must be a JSON object")
    entries = _lookup(data, LIST_KEYS)
    if not isinstance(entries, list) or not entries:
        raise InvalidInputError("Batch request contains no books")

    documents = []
    for position, entry in enumerate(entries, start=1):
        if not isinstance(entry, dict):
            raise InvalidInputError(f"Entry {position} is not an object")
        name = _lookup(entry, NAME_KEYS)
        source = _lookup(entry, SOURCE_KEYS)
        if not isinstance(name, str) or not name.strip() or not isinstance(source, str) or not source.strip():
            raise InvalidInputError(f"Entry {position} needs both a title and a url")
        documents.append(Document(id=position, name=name.strip(), source=source.strip()))
    return validate_documents(documents)


def documents_from_sources(sources: Iterable[str]) -> List[Document]:
    """Wrap paths or URLs as Documents named after their last path segment."""
    documents = []
    for position, source in enumerate(sources, start=1):
        if is_url(source):
            name = source.rstrip("/").rsplit("/", 1)[-1]
        else:
            name = Path(source).name
        documents.append(Document(id=position, name=name or source, source=source))
    return validate_documents(documents)


def discover_documents(directory: Path, pattern: str = "*.txt") -> List[Document]:
    """Return one Document per file in `directory` matching `pattern`, sorted by path."""
    directory = Path(directory)
    if not directory.is_dir():
        raise InvalidInputError(f"Input directory not found: {directory}")
    paths = sorted(path for path in directory.glob(pattern) if path.is_file())
    documents = [
        Document(id=position, name=path.name, source=str(path))
        for position, path in enumerate(paths, start=1)
    ]
    if not documents:
        raise InvalidInputError(f"No files matching {pattern!r} in {directory}")
    return documents
