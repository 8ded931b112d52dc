"""Indexer configuration: defaults, stop words and the typed config object."""

import tempfile
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import FrozenSet, Iterable, Optional

# CONFIGURATION
DEFAULT_BUCKET_CAPACITY = 5000  # surviving terms per bucket
DEFAULT_FETCH_TIMEOUT = 30.0  # seconds a Mapper waits for its document text
DEFAULT_MAX_CONCURRENT_MAPPERS = 8
DEFAULT_OUTPUT_PATH = Path(tempfile.gettempdir()) / "results.json"

STOPWORDS_PATH = None  # optional file with extra stop words, one per line

# articles, conjunctions and prepositions
DEFAULT_STOP_WORDS: FrozenSet[str] = frozenset({
    "a", "an", "the",
    "and", "or", "but", "nor", "so", "yet",
    "at", "by", "for", "from", "in", "into", "of", "on", "to", "with", "as",
})


def load_stopwords(path: Optional[Path] = STOPWORDS_PATH, base: Iterable[str] = DEFAULT_STOP_WORDS) -> FrozenSet[str]:
    """Return the built-in stop words, extended by the words listed in `path`."""
    words = {word.strip().lower() for word in base if word.strip()}
    if path:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Stop-word file not found: {path}")
        words |= {
            line.strip().lower()
            for line in path.read_text(encoding="utf-8").splitlines()
            if line.strip()
        }
    return frozenset(words)


@dataclass(frozen=True)
class IndexerConfig:
    """Tunables for one indexing run."""

    bucket_capacity: int = DEFAULT_BUCKET_CAPACITY
    stop_words: FrozenSet[str] = field(default_factory=lambda: DEFAULT_STOP_WORDS)
    per_document_fetch_timeout: Optional[float] = DEFAULT_FETCH_TIMEOUT
    max_concurrent_mappers: int = DEFAULT_MAX_CONCURRENT_MAPPERS

    def validate(self) -> "IndexerConfig":
        if self.bucket_capacity < 1:
            raise ValueError(f"bucket_capacity must be >= 1, got {self.bucket_capacity}")
        if self.max_concurrent_mappers < 1:
            raise ValueError(f"max_concurrent_mappers must be >= 1, got {self.max_concurrent_mappers}")
        if self.per_document_fetch_timeout is not None and self.per_document_fetch_timeout <= 0:
            raise ValueError(
                f"per_document_fetch_timeout must be positive, got {self.per_document_fetch_timeout}"
            )
        return self

    def with_overrides(self, **overrides) -> "IndexerConfig":
        """Return a validated copy with every non-None override applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        if "stop_words" in changes:
            changes["stop_words"] = frozenset(word.lower() for word in changes["stop_words"])
        return replace(self, **changes).validate()
