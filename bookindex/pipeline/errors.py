"""Error kinds raised across the indexing pipeline."""


class IndexerError(Exception):
    """Base class for every pipeline error."""


class FetchError(IndexerError):
    """A document's text could not be obtained (network, file or timeout)."""


class TokenizationError(IndexerError):
    """Input handed to the tokenizer could not be turned into text."""


class SinkError(IndexerError):
    """The finished index could not be persisted."""


class InvalidInputError(IndexerError, ValueError):
    """A batch request or document list was rejected before mapping."""
