"""Sinks persist a serialized index and report where it went."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Tuple

from bookindex.indexer.models import IndexSummary, InvertedIndex
from bookindex.indexer.reducer import index_from_dict

from .config import DEFAULT_OUTPUT_PATH
from .errors import SinkError

logger = logging.getLogger(__name__)


class IndexSink:
    def persist(self, serialized: str, summary: IndexSummary) -> str:
        raise NotImplementedError


class FileSink(IndexSink):
    """Write the index to a JSON file, replacing any previous one atomically."""

    def __init__(self, path: Path = DEFAULT_OUTPUT_PATH):
        self.path = Path(path)

    def persist(self, serialized: str, summary: IndexSummary) -> str:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=self.path.name, suffix=".tmp", dir=self.path.parent)
            try:
                with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
                    handle.write(serialized)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise SinkError(f"Cannot write index to {self.path}: {exc}") from exc

        logger.info(
            "Index with %d term(s) written to %s", summary.term_count, self.path,
        )
        return str(self.path)


class MemorySink(IndexSink):
    """Keep persisted payloads in memory. Handy for tests and embedding."""

    def __init__(self):
        self.payloads: List[Tuple[str, IndexSummary]] = []

    def persist(self, serialized: str, summary: IndexSummary) -> str:
        self.payloads.append((serialized, summary))
        return f"memory://{len(self.payloads)}"

    @property
    def last(self) -> str:
        if not self.payloads:
            raise LookupError("nothing persisted yet")
        return self.payloads[-1][0]


def load_index_data(path: Path) -> Dict[str, List[Dict[str, object]]]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Results not found at {path}")
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def load_index(path: Path) -> InvertedIndex:
    """Read an index written by FileSink back into Occurrence objects."""
    return index_from_dict(load_index_data(path))
