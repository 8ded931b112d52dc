"""Data types shared by the map and reduce phases.

Everything here is a frozen dataclass: a Mapper builds its buckets once and
hands them over, the Reducer turns them into occurrences, and nothing is
mutated afterwards.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple


@dataclass(frozen=True)
class Document:
    """One input document. `source` is inline text, a file path or a URL."""

    id: int
    name: str
    source: str


@dataclass(frozen=True)
class Bucket:
    """A fixed-capacity slice of one document's term stream with local counts."""

    document_id: int
    document_name: str
    bucket_number: int
    frequencies: Dict[str, int] = field(default_factory=dict)

    @property
    def term_total(self) -> int:
        """Number of surviving terms counted into this bucket."""
        return sum(self.frequencies.values())


@dataclass(frozen=True)
class Occurrence:
    """One term's frequency inside one document bucket."""

    document_id: int
    document_name: str
    bucket_number: int
    term_frequency: int

    def to_dict(self) -> Dict[str, object]:
        # field names are part of the serialized contract
        return {
            "documentId": self.document_id,
            "documentName": self.document_name,
            "bucketNumber": self.bucket_number,
            "termFrequency": self.term_frequency,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "Occurrence":
        return cls(
            document_id=int(data["documentId"]),
            document_name=str(data["documentName"]),
            bucket_number=int(data["bucketNumber"]),
            term_frequency=int(data["termFrequency"]),
        )


InvertedIndex = Dict[str, List[Occurrence]]


@dataclass(frozen=True)
class IndexSummary:
    term_count: int = 0
    total_occurrence_count: int = 0


@dataclass(frozen=True)
class DocumentWarning:
    """Why a document contributed nothing to the index."""

    document_id: int
    document_name: str
    reason: str


@dataclass(frozen=True)
class MapResult:
    """Output of one Mapper call: its buckets, or a warning when it failed."""

    document: Document
    buckets: Tuple[Bucket, ...] = ()
    warning: Optional[DocumentWarning] = None

    @property
    def failed(self) -> bool:
        return self.warning is not None


@dataclass(frozen=True)
class BatchResult:
    """Everything a finished batch hands back to its caller."""

    index: InvertedIndex
    summary: IndexSummary
    buckets: Tuple[Bucket, ...] = ()
    warnings: Tuple[DocumentWarning, ...] = ()
    location: Optional[str] = None

    def bucket_report(self) -> Iterator[str]:
        """Yield one human-readable line per bucket, in document/bucket order."""
        for bucket in sorted(self.buckets, key=lambda b: (b.document_id, b.bucket_number)):
            yield (
                f"Book: {bucket.document_name}, Section: {bucket.bucket_number}, "
                f"Unique Words: {len(bucket.frequencies)}"
            )
